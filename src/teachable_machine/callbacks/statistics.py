"""Example statistics: prints the class distribution of an ExampleStore."""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger
from rich import box
from rich.console import Console
from rich.table import Table

from teachable_machine.data.store import ExampleStore


def print_class_distribution(
    store: ExampleStore,
    class_names: Sequence[str] | None = None,
    console: Console | None = None,
) -> dict[int, int]:
    """Print a rich table of examples per class and return the counts."""
    counts = dict(enumerate(store.class_counts()))
    total = len(store)
    logger.info(f"ExampleStore: {total} examples over {store.num_classes} classes")

    table = Table(
        title="Example Class Distribution",
        header_style="bold magenta",
        box=box.SQUARE,
        show_lines=True,
    )
    table.add_column("Class Name", style="cyan")
    table.add_column("Index", justify="right")
    table.add_column("Count", justify="right", style="green")
    table.add_column("Percentage", justify="right", style="yellow")

    for idx, count in counts.items():
        name = class_names[idx] if class_names is not None else str(idx)
        pct = count / total * 100 if total > 0 else 0.0
        table.add_row(name, str(idx), str(count), f"{pct:.1f}%")

    (console or Console()).print(table)
    return counts
