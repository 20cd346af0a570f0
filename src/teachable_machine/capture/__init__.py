"""Frame sources feeding the feature extractor."""

from teachable_machine.capture.base import BaseWebcam, capture_frame
from teachable_machine.capture.replay import ReplayWebcam, build_frame_transform

__all__ = [
    "BaseWebcam",
    "ReplayWebcam",
    "build_frame_transform",
    "capture_frame",
]
