"""Training observers and reports for teachable_machine."""

from teachable_machine.callbacks.history import LossHistory
from teachable_machine.callbacks.model_info import print_model_info
from teachable_machine.callbacks.statistics import print_class_distribution

__all__ = [
    "LossHistory",
    "print_class_distribution",
    "print_model_info",
]
