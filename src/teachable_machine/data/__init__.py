"""Example storage for teachable_machine."""

from teachable_machine.data.store import ExampleStore
from teachable_machine.data.utils import IMAGE_EXTENSIONS, get_files, list_class_dirs

__all__ = [
    "IMAGE_EXTENSIONS",
    "ExampleStore",
    "get_files",
    "list_class_dirs",
]
