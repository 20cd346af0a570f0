"""Filesystem helpers for loading demo frames."""

from pathlib import Path

IMAGE_EXTENSIONS: tuple[str, ...] = (".jpg", ".jpeg", ".png", ".bmp")


def get_files(root: Path, extensions: tuple[str, ...] = IMAGE_EXTENSIONS) -> list[Path]:
    """Recursively find files matching extensions under root.

    Args:
        root: Directory to search recursively.
        extensions: Tuple of lowercase extensions including dot.

    Returns:
        Sorted list of matching file paths.
    """
    return sorted(
        p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in extensions
    )


def list_class_dirs(root: Path, class_names: tuple[str, ...]) -> list[Path]:
    """Resolve one subdirectory of *root* per class name, in label order.

    Raises:
        FileNotFoundError: A class has no directory under *root*.
    """
    dirs = [root / name for name in class_names]
    missing = [d.name for d in dirs if not d.is_dir()]
    if missing:
        raise FileNotFoundError(f"No directory for class(es) {missing} under {root}")
    return dirs
