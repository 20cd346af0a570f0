"""Frozen feature extractors mapping camera frames to activations."""

from __future__ import annotations

from abc import ABC, abstractmethod

import torch
import torchvision.models as tv_models
from loguru import logger
from torch import nn

from teachable_machine.utils.hydra import register


class BaseFeatureExtractor(ABC):
    """Pure, stateless frame -> activation mapping.

    Implementations must not track gradients and must return the same
    activation for the same frame.
    """

    @abstractmethod
    def predict(self, frame: torch.Tensor) -> torch.Tensor:
        """Map a ``(1, 3, H, W)`` frame to an activation tensor."""

    def output_shape(self, image_size: int = 224) -> tuple[int, ...]:
        """Activation shape (without batch dim) for a square input."""
        with torch.inference_mode():
            probe = torch.zeros(1, 3, image_size, image_size)
            return tuple(self.predict(probe).shape[1:])


class ModuleFeatureExtractor(BaseFeatureExtractor):
    """Wrap an arbitrary ``nn.Module`` as a frozen extractor.

    The module is put in eval mode and its parameters stop requiring grad.
    """

    def __init__(self, module: nn.Module) -> None:
        self.module = module.eval()
        for p in self.module.parameters():
            p.requires_grad_(False)

    def predict(self, frame: torch.Tensor) -> torch.Tensor:
        with torch.no_grad():
            return self.module(frame)  # type: ignore[no-any-return]


@register(group="extractor", name="mobilenet_v2", pretrained=True, width_mult=1.0)
class MobileNetFeatureExtractor(ModuleFeatureExtractor):
    """MobileNetV2 truncated after its last convolutional block.

    Outputs the ``(1280, 7, 7)`` activation for a 224x224 frame.  Pass
    ``pretrained=False`` in tests to skip the ImageNet weight download.

    Args:
        pretrained: Load ImageNet weights.
        width_mult: MobileNetV2 width multiplier (only 1.0 has weights).
    """

    def __init__(self, pretrained: bool = True, width_mult: float = 1.0) -> None:
        weights = tv_models.MobileNet_V2_Weights.DEFAULT if pretrained else None
        backbone = tv_models.mobilenet_v2(weights=weights, width_mult=width_mult)
        super().__init__(backbone.features)
        logger.info(
            f"MobileNetV2 feature extractor ready (pretrained={pretrained}, "
            f"width_mult={width_mult})"
        )
