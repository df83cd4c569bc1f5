"""
Video-to-text app built with FastAPI, exposing
- an index.html UI,
- a POST endpoint that accepts a video URL,
- and a pipeline that hands the video to a transcription provider
(SupaData, AssemblyAI or Amazon Transcribe) and returns the text.
"""

__version__ = "0.2.0"
