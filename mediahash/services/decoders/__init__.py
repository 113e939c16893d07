"""
Image and video decoding on top of OpenCV.
"""

from .image import DecodedImage, ImageDecoder
from .video import VideoHandle, VideoSource, open_video

__all__ = ["DecodedImage", "ImageDecoder", "VideoHandle", "VideoSource", "open_video"]
