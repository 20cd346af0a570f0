"""Shared pytest fixtures for teachable_machine tests."""

import pytest
import torch
from torch import nn

from teachable_machine.capture import ReplayWebcam
from teachable_machine.data import ExampleStore
from teachable_machine.models import ClassifierHead, ModuleFeatureExtractor

NUM_CLASSES = 4
# Tiny extractor: average-pool a (3, 8, 8) frame down to (3, 2, 2) -> F = 12.
FEATURE_SHAPE = (3, 2, 2)
FEATURE_DIM = 12
FRAME_SIZE = 8


@pytest.fixture()
def extractor() -> ModuleFeatureExtractor:
    """Deterministic, parameter-free frozen extractor."""
    return ModuleFeatureExtractor(nn.AdaptiveAvgPool2d(2))


@pytest.fixture()
def frames() -> list[torch.Tensor]:
    """Eight random (1, 3, 8, 8) frames in [-1, 1]."""
    gen = torch.Generator().manual_seed(0)
    return [
        torch.rand(1, 3, FRAME_SIZE, FRAME_SIZE, generator=gen) * 2 - 1
        for _ in range(8)
    ]


@pytest.fixture()
def webcam(frames: list[torch.Tensor]) -> ReplayWebcam:
    return ReplayWebcam(frames, image_size=FRAME_SIZE)


@pytest.fixture()
def head() -> ClassifierHead:
    """Small 4-class head over the tiny extractor's output."""
    torch.manual_seed(0)
    return ClassifierHead(
        num_classes=NUM_CLASSES,
        feature_shape=FEATURE_SHAPE,
        hidden_units=8,
        learning_rate=1e-2,
    )


@pytest.fixture()
def store() -> ExampleStore:
    return ExampleStore(num_classes=NUM_CLASSES, feature_dim=FEATURE_DIM)


@pytest.fixture()
def filled_store(store: ExampleStore) -> ExampleStore:
    """Ten examples with labels 0,0,1,1,2,2,2,3,3,3."""
    gen = torch.Generator().manual_seed(1)
    for label in (0, 0, 1, 1, 2, 2, 2, 3, 3, 3):
        store.add_example(torch.randn(1, *FEATURE_SHAPE, generator=gen), label)
    return store
