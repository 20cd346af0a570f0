"""Loss functions for training the classifier head."""

from __future__ import annotations

import torch
import torch.nn as nn


def categorical_crossentropy(
    probs: torch.Tensor, targets: torch.Tensor, eps: float = 1e-7
) -> torch.Tensor:
    """Mean categorical cross-entropy between probabilities and one-hot rows.

    Parameters
    ----------
    probs:
        Softmax output of shape ``(B, C)``.  Each row sums to one.
    targets:
        One-hot (or soft) labels of shape ``(B, C)``.
    eps:
        Probabilities are clipped to ``[eps, 1 - eps]`` before the log.
    """
    if probs.shape != targets.shape:
        msg = (
            f"probs shape {tuple(probs.shape)} does not match "
            f"targets shape {tuple(targets.shape)}"
        )
        raise ValueError(msg)
    clipped = probs.clamp(min=eps, max=1.0 - eps)
    return -(targets * clipped.log()).sum(dim=-1).mean()


class CategoricalCrossEntropyLoss(nn.Module):
    """Module wrapper around :func:`categorical_crossentropy`.

    The head already ends in a softmax, so unlike ``nn.CrossEntropyLoss``
    this takes probabilities, not logits.
    """

    def __init__(self, eps: float = 1e-7) -> None:
        super().__init__()
        self.eps = eps

    def forward(self, probs: torch.Tensor, targets: torch.Tensor) -> torch.Tensor:
        return categorical_crossentropy(probs, targets, eps=self.eps)
