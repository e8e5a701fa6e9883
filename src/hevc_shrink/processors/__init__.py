"""Media processors built on the core conversion engine."""

from .video_processor import VideoProcessor

__all__ = [
    "VideoProcessor",
]
