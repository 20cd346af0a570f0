"""Loss history observer: records per-batch loss and plots the curve."""

from __future__ import annotations

from pathlib import Path

import matplotlib
import matplotlib.pyplot as plt
from loguru import logger


class LossHistory:
    """Batch-end observer that accumulates losses across training calls.

    Pass an instance wherever an ``on_batch_end`` callable is expected.
    Each training call appends to the same history, matching the head's
    cumulative training.

    Args:
        output_dir: Directory :meth:`save_plot` writes into.
    """

    def __init__(self, output_dir: str = "outputs") -> None:
        self.output_dir = Path(output_dir) / "training_history"
        self.losses: list[float] = []

    def __call__(self, loss: float) -> None:
        self.losses.append(loss)

    def __len__(self) -> int:
        return len(self.losses)

    def save_plot(self, filename: str = "loss_history.png") -> Path | None:
        """Write the loss curve as a PNG.  Returns ``None`` if nothing was recorded."""
        if not self.losses:
            logger.warning("No losses recorded. Skipping loss plot.")
            return None

        matplotlib.use("Agg")
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename

        fig, ax = plt.subplots(figsize=(10, 6))
        ax.plot(range(1, len(self.losses) + 1), self.losses, label="Train Loss")
        ax.set_title("Training Loss per Batch")
        ax.set_xlabel("Batch")
        ax.set_ylabel("Loss")
        ax.legend()
        ax.grid(True, linestyle="--", alpha=0.7)
        fig.tight_layout()
        fig.savefig(path, dpi=150)
        plt.close(fig)

        logger.info(f"Loss history plot written to {path}")
        return path
