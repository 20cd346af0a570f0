"""Classifier head and frozen feature extractors."""

from teachable_machine.models.feature_extractor import (
    BaseFeatureExtractor,
    MobileNetFeatureExtractor,
    ModuleFeatureExtractor,
)
from teachable_machine.models.head import ClassifierHead

__all__ = [
    "BaseFeatureExtractor",
    "ClassifierHead",
    "MobileNetFeatureExtractor",
    "ModuleFeatureExtractor",
]
