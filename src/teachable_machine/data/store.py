"""Append-only store of (feature vector, one-hot label) training examples."""

from __future__ import annotations

import numbers

import torch
from loguru import logger
from torch.utils.data import TensorDataset

from teachable_machine.errors import FeatureShapeError, InvalidLabelError

_INITIAL_CAPACITY = 16


class ExampleStore:
    """Accumulates labeled activations into two growing tensors.

    ``features`` has shape ``(n, feature_dim)`` and ``labels`` has shape
    ``(n, num_classes)``, rows in insertion order, labels one-hot encoded
    on insert.  Both are views of backing buffers that double in capacity,
    so an append costs amortized constant time.  Examples cannot be edited
    or removed individually; :meth:`reset` drops everything.

    Args:
        num_classes: Width of the one-hot label rows.  Fixed for the
            lifetime of the store.
        feature_dim: Number of elements in one feature vector.
    """

    def __init__(self, num_classes: int, feature_dim: int) -> None:
        if num_classes < 1:
            raise ValueError(f"num_classes must be >= 1, got {num_classes}")
        if feature_dim < 1:
            raise ValueError(f"feature_dim must be >= 1, got {feature_dim}")
        self._num_classes = num_classes
        self._feature_dim = feature_dim
        self._features: torch.Tensor | None = None
        self._labels: torch.Tensor | None = None
        self._size = 0

    @property
    def num_classes(self) -> int:
        return self._num_classes

    @property
    def feature_dim(self) -> int:
        return self._feature_dim

    @property
    def features(self) -> torch.Tensor:
        """Float tensor of shape ``(n, feature_dim)``."""
        if self._features is None:
            return torch.empty(0, self._feature_dim)
        return self._features[: self._size]

    @property
    def labels(self) -> torch.Tensor:
        """Float one-hot tensor of shape ``(n, num_classes)``."""
        if self._labels is None:
            return torch.empty(0, self._num_classes)
        return self._labels[: self._size]

    def __len__(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    def validate_label(self, label: object) -> None:
        """Raise :class:`InvalidLabelError` unless *label* is an int in range."""
        if (
            isinstance(label, bool)
            or not isinstance(label, numbers.Integral)
            or not 0 <= label < self._num_classes
        ):
            raise InvalidLabelError(label, self._num_classes)

    def add_example(self, feature_vector: torch.Tensor, label: int) -> None:
        """Append one example.

        ``feature_vector`` may carry a leading batch dimension of one (the
        raw extractor output); it is flattened to ``feature_dim`` elements.
        The store keeps its own detached copy.

        Raises:
            InvalidLabelError: ``label`` is not an integer in
                ``[0, num_classes)``.
            FeatureShapeError: ``feature_vector`` has the wrong number of
                elements.

        Both checks run before anything is written.
        """
        self.validate_label(label)
        if feature_vector.numel() != self._feature_dim:
            raise FeatureShapeError(feature_vector.numel(), self._feature_dim)

        # Stored rows feed autograd later, so they must not be inference tensors.
        with torch.inference_mode(False):
            row = feature_vector.detach().reshape(-1).to(torch.float32)
            features, labels = self._grow_to(self._size + 1, row.device)
            features[self._size].copy_(row)
            labels[self._size].zero_()
            labels[self._size, int(label)] = 1.0
        self._size += 1

    def class_counts(self) -> list[int]:
        """Number of stored examples per class, indexed by label."""
        return [int(c) for c in self.labels.sum(dim=0).round().tolist()]

    def as_dataset(self) -> TensorDataset:
        """Dataset over the current rows, for shuffled mini-batching."""
        return TensorDataset(self.features, self.labels)

    def reset(self) -> None:
        """Drop every example and release the backing buffers."""
        logger.debug(f"Resetting ExampleStore ({self._size} examples dropped)")
        self._features = None
        self._labels = None
        self._size = 0

    def _grow_to(
        self, needed: int, device: torch.device
    ) -> tuple[torch.Tensor, torch.Tensor]:
        """Return backing buffers holding at least *needed* rows."""
        if (
            self._features is not None
            and self._labels is not None
            and needed <= self._features.shape[0]
        ):
            return self._features, self._labels

        capacity = 0 if self._features is None else self._features.shape[0]
        new_capacity = max(_INITIAL_CAPACITY, capacity * 2)
        features = torch.empty(new_capacity, self._feature_dim, device=device)
        labels = torch.zeros(new_capacity, self._num_classes, device=device)
        if self._features is not None and self._labels is not None:
            features[: self._size].copy_(self._features[: self._size])
            labels[: self._size].copy_(self._labels[: self._size])
        self._features = features
        self._labels = labels
        return features, labels
