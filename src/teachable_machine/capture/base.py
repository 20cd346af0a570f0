"""Abstract base class for frame sources."""

from __future__ import annotations

from abc import ABC, abstractmethod

import torch

from teachable_machine.errors import CaptureUnavailableError


class BaseWebcam(ABC):
    """Synchronous source of camera frames.

    Subclasses implement ``capture``, which returns a float32 tensor of
    shape ``(1, 3, H, W)`` normalized to ``[-1, 1]``, or raises
    :class:`~teachable_machine.errors.CaptureUnavailableError`.
    """

    @abstractmethod
    def capture(self) -> torch.Tensor:
        """Grab one frame."""


def capture_frame(webcam: BaseWebcam) -> torch.Tensor:
    """Grab one frame, reporting every failure as CaptureUnavailableError.

    Raises:
        CaptureUnavailableError: The webcam raised, or returned no frame.
    """
    try:
        frame = webcam.capture()
    except CaptureUnavailableError:
        raise
    except Exception as e:
        raise CaptureUnavailableError(f"Webcam capture failed: {e}") from e
    if frame is None:
        raise CaptureUnavailableError("Webcam returned no frame")
    return frame
