"""Webcam stand-in that replays a fixed sequence of frames."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import torch
from loguru import logger
from PIL import Image
from torchvision.transforms import v2

from teachable_machine.capture.base import BaseWebcam
from teachable_machine.data.utils import IMAGE_EXTENSIONS, get_files
from teachable_machine.errors import CaptureUnavailableError


def build_frame_transform(image_size: int = 224) -> v2.Compose:
    """PIL image -> float32 ``(3, S, S)`` tensor scaled to ``[-1, 1]``."""
    return v2.Compose(
        [
            v2.ToImage(),
            v2.Resize((image_size, image_size), antialias=True),
            v2.ToDtype(torch.float32, scale=True),
            v2.Normalize(mean=[0.5, 0.5, 0.5], std=[0.5, 0.5, 0.5]),
        ]
    )


class ReplayWebcam(BaseWebcam):
    """Serve frames from memory in order, as if they came from a camera.

    PIL images go through :func:`build_frame_transform`.  Tensors are taken
    to be already normalized and are used as-is (a missing batch dimension
    is added).

    Args:
        frames: Images or ``(3, H, W)`` / ``(1, 3, H, W)`` tensors.
        image_size: Side length PIL images are resized to.
        loop: Restart from the first frame when the sequence runs out.
            When ``False`` an exhausted sequence raises
            :class:`CaptureUnavailableError`.
    """

    def __init__(
        self,
        frames: Sequence[Image.Image | torch.Tensor],
        image_size: int = 224,
        loop: bool = True,
    ) -> None:
        self.frames = list(frames)
        self.loop = loop
        self.transform = build_frame_transform(image_size)
        self._cursor = 0
        self.frames_served = 0

    @classmethod
    def from_directory(
        cls, root: str | Path, image_size: int = 224, loop: bool = True
    ) -> ReplayWebcam:
        """Replay every image file under *root*, sorted by path."""
        paths = get_files(Path(root), IMAGE_EXTENSIONS)
        logger.debug(f"ReplayWebcam: {len(paths)} frame(s) under {root}")
        images = [Image.open(p).convert("RGB") for p in paths]
        return cls(images, image_size=image_size, loop=loop)

    def __len__(self) -> int:
        return len(self.frames)

    def capture(self) -> torch.Tensor:
        if not self.frames:
            raise CaptureUnavailableError("ReplayWebcam has no frames")
        if self._cursor >= len(self.frames):
            if not self.loop:
                raise CaptureUnavailableError(
                    f"ReplayWebcam exhausted after {len(self.frames)} frame(s)"
                )
            self._cursor = 0

        frame = self.frames[self._cursor]
        self._cursor += 1
        self.frames_served += 1

        if isinstance(frame, Image.Image):
            tensor = self.transform(frame.convert("RGB"))
        else:
            tensor = frame.to(torch.float32)
        if tensor.dim() == 3:
            tensor = tensor.unsqueeze(0)
        return tensor  # type: ignore[no-any-return]
