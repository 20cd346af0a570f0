"""Exception hierarchy for teachable_machine.

Every error is raised synchronously to the immediate caller of the failing
operation.  Nothing is retried.
"""

from __future__ import annotations


class TeachableMachineError(Exception):
    """Base class for all teachable_machine errors."""


class InvalidLabelError(TeachableMachineError, ValueError):
    """Label outside ``[0, num_classes)``.  Raised before the store mutates."""

    def __init__(self, label: object, num_classes: int) -> None:
        self.label = label
        self.num_classes = num_classes
        super().__init__(
            f"Label {label!r} is outside the valid range [0, {num_classes})"
        )


class FeatureShapeError(TeachableMachineError, ValueError):
    """Feature vector does not have the configured number of elements."""

    def __init__(self, numel: int, feature_dim: int) -> None:
        self.numel = numel
        self.feature_dim = feature_dim
        super().__init__(
            f"Feature vector has {numel} elements, expected {feature_dim}"
        )


class EmptyDatasetError(TeachableMachineError):
    """Training was requested before any example was added."""

    def __init__(self) -> None:
        super().__init__("Add some examples before training!")


class TrainingStepError(TeachableMachineError):
    """A mini-batch fit step failed; the training call is aborted."""

    def __init__(self, epoch: int, batch_idx: int, reason: str) -> None:
        self.epoch = epoch
        self.batch_idx = batch_idx
        super().__init__(
            f"Training step failed at epoch {epoch}, batch {batch_idx}: {reason}"
        )


class CaptureUnavailableError(TeachableMachineError):
    """The webcam could not produce a frame."""


class AlreadyRunningError(TeachableMachineError):
    """``InferenceLoop.start`` was called while the loop is running."""


class TrainingInProgressError(TeachableMachineError):
    """An operation conflicts with a training call that is still in flight."""
