"""Live classification of camera frames."""

from teachable_machine.inference.loop import InferenceLoop, InferenceState

__all__ = [
    "InferenceLoop",
    "InferenceState",
]
