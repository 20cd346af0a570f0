"""Trainable classifier head sitting on frozen feature-extractor activations."""

from __future__ import annotations

import math
from collections.abc import Sequence

import lightning as L
import torch
from torch import nn

from teachable_machine.config import ClassifierConfig
from teachable_machine.losses import CategoricalCrossEntropyLoss
from teachable_machine.types import TrainingBatch
from teachable_machine.utils.hydra import register


def _variance_scaling_(weight: torch.Tensor) -> None:
    """Truncated normal init with ``std = sqrt(1 / fan_in)``."""
    fan_in = weight.shape[1]
    std = math.sqrt(1.0 / fan_in)
    nn.init.trunc_normal_(weight, mean=0.0, std=std, a=-2.0 * std, b=2.0 * std)


@register(group="model", name="head", hidden_units=100, learning_rate=1e-4)
class ClassifierHead(L.LightningModule):
    """Two-layer fully connected classifier over flattened activations.

    ``flatten -> Linear(F, hidden) -> ReLU -> Linear(hidden, C, bias=False)
    -> Softmax``.  Keeping it a separate module from the feature extractor
    is what freezes the extractor: only these weights are optimized.

    The Adam optimizer is created once and reused by every training call,
    so repeated training continues from the previous weights and moments.
    """

    def __init__(
        self,
        num_classes: int = 4,
        feature_shape: Sequence[int] = (7, 7, 256),
        hidden_units: int = 100,
        learning_rate: float = 1e-4,
    ) -> None:
        super().__init__()
        config = ClassifierConfig(
            num_classes=num_classes,
            feature_shape=tuple(feature_shape),
            hidden_units=hidden_units,
            learning_rate=learning_rate,
        )
        self.save_hyperparameters(config.model_dump())
        self.config = config

        self.model = nn.Sequential(
            nn.Flatten(),
            nn.Linear(config.feature_dim, hidden_units, bias=True),
            nn.ReLU(),
            nn.Linear(hidden_units, num_classes, bias=False),
            nn.Softmax(dim=-1),
        )
        for layer in self.model:
            if isinstance(layer, nn.Linear):
                _variance_scaling_(layer.weight)
                if layer.bias is not None:
                    nn.init.zeros_(layer.bias)

        self.loss_fn = CategoricalCrossEntropyLoss()
        self._optimizer: torch.optim.Optimizer | None = None

    @classmethod
    def from_config(cls, config: ClassifierConfig) -> ClassifierHead:
        return cls(**config.model_dump())

    @property
    def num_classes(self) -> int:
        return self.config.num_classes

    def forward(self, features: torch.Tensor) -> torch.Tensor:
        """Return class probabilities of shape ``(B, num_classes)``."""
        return self.model(features)  # type: ignore[no-any-return]

    def training_step(self, batch: TrainingBatch, batch_idx: int) -> torch.Tensor:
        probs = self(batch["features"])
        loss: torch.Tensor = self.loss_fn(probs, batch["labels"])
        return loss

    def configure_optimizers(self) -> torch.optim.Optimizer:
        return torch.optim.Adam(self.parameters(), lr=self.config.learning_rate)

    def get_optimizer(self) -> torch.optim.Optimizer:
        """Optimizer shared by all training calls, created on first use."""
        if self._optimizer is None:
            self._optimizer = self.configure_optimizers()
        return self._optimizer
