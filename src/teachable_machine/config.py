"""Pydantic frozen configuration models for teachable_machine."""

import math

from pydantic import BaseModel, Field, field_validator, model_validator


class ClassifierConfig(BaseModel, frozen=True):
    """Hyperparameters of the trainable classifier head.

    All fields are validated at construction time. Frozen, no mutation after creation.
    """

    num_classes: int = Field(default=4, ge=1)
    feature_shape: tuple[int, ...] = (7, 7, 256)
    hidden_units: int = Field(default=100, ge=1)
    learning_rate: float = Field(default=1e-4, gt=0.0)

    @field_validator("feature_shape")
    @classmethod
    def _positive_dims(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value or any(dim < 1 for dim in value):
            raise ValueError(f"feature_shape must hold positive dims, got {value}")
        return value

    @property
    def feature_dim(self) -> int:
        """Length of the flattened feature vector."""
        return math.prod(self.feature_shape)


class TrainingConfig(BaseModel, frozen=True):
    """Fixed hyperparameters for one ``TrainingController.train`` call."""

    batch_size_ratio: float = Field(default=0.4, gt=0.0, le=1.0)
    epochs: int = Field(default=20, ge=1)
    min_batch_size: int = Field(default=1, ge=1)
    seed: int | None = None

    def batch_size_for(self, num_examples: int) -> int:
        """``floor(n * ratio)``, clamped to ``min_batch_size``."""
        return max(self.min_batch_size, math.floor(num_examples * self.batch_size_ratio))

    def batches_per_epoch(self, num_examples: int) -> int:
        return math.ceil(num_examples / self.batch_size_for(num_examples))


class SessionConfig(BaseModel, frozen=True):
    """Configuration for a ``TeachableMachine`` session.

    ``class_names`` defaults to the stringified class indices.
    """

    num_classes: int = Field(default=4, ge=1)
    class_names: tuple[str, ...] = ()
    image_size: int = Field(default=224, ge=1)

    @model_validator(mode="after")
    def _default_class_names(self) -> "SessionConfig":
        """Fill in names, or reject a list that disagrees with num_classes."""
        if not self.class_names:
            # Use object.__setattr__ because model is frozen
            object.__setattr__(
                self, "class_names", tuple(str(i) for i in range(self.num_classes))
            )
        elif len(self.class_names) != self.num_classes:
            raise ValueError(
                f"class_names has {len(self.class_names)} entries, "
                f"expected {self.num_classes}"
            )
        return self
