"""Type aliases and TypedDicts for teachable_machine inter-module contracts."""

from collections.abc import Callable
from typing import TypedDict

import torch

BatchEndCallback = Callable[[float], None]
"""Observer invoked with the loss of each finished training mini-batch."""

PredictionCallback = Callable[[int], None]
"""Observer invoked with the arg-max class id of each classified frame."""


class TrainingBatch(TypedDict):
    """A single shuffled mini-batch drawn from the ExampleStore.

    features: Float tensor of shape (B, F), flattened activations.
    labels: Float tensor of shape (B, num_classes), one-hot rows.
    """

    features: torch.Tensor
    labels: torch.Tensor
