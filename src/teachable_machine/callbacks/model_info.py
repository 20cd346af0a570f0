"""Model info report: parameter counts and size of the classifier head."""

from __future__ import annotations

from loguru import logger
from rich import box
from rich.console import Console
from rich.table import Table
from torch import nn


def print_model_info(module: nn.Module, console: Console | None = None) -> dict[str, float]:
    """Print total/trainable parameters and size in MB, and return them.

    Frozen modules (the feature extractor) report zero trainable parameters.
    """
    total_params = sum(p.numel() for p in module.parameters())
    trainable_params = sum(p.numel() for p in module.parameters() if p.requires_grad)
    param_size = sum(p.numel() * p.element_size() for p in module.parameters())
    buffer_size = sum(b.numel() * b.element_size() for b in module.buffers())
    model_size_mb = (param_size + buffer_size) / (1024 * 1024)

    table = Table(
        title="Model Information",
        header_style="bold magenta",
        box=box.SQUARE,
        show_lines=True,
    )
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Model Class", type(module).__name__)
    table.add_row("Total Parameters", f"{total_params:,}")
    table.add_row("Trainable Parameters", f"{trainable_params:,}")
    table.add_row("Model Size", f"{model_size_mb:.2f} MB")
    (console or Console()).print(table)

    logger.info(
        f"Model: {type(module).__name__} | "
        f"Params: {total_params:,} ({trainable_params:,} trainable) | "
        f"Size: {model_size_mb:.2f} MB"
    )
    return {
        "total_params": total_params,
        "trainable_params": trainable_params,
        "size_mb": model_size_mb,
    }
