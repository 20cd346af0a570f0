"""Cooperative mini-batch training of the classifier head.

``TrainingController.train`` is a coroutine.  After each mini-batch it
reports the loss to an observer and then awaits ``asyncio.sleep(0)``, so
the event loop gets to run other work (UI updates, logging) between
batches.  Training cannot be cancelled once started; it runs every epoch.
"""

from __future__ import annotations

import asyncio

import torch
from loguru import logger
from pydantic import BaseModel
from torch.utils.data import DataLoader

from teachable_machine.config import TrainingConfig
from teachable_machine.data.store import ExampleStore
from teachable_machine.errors import EmptyDatasetError, TrainingStepError
from teachable_machine.models.head import ClassifierHead
from teachable_machine.types import BatchEndCallback, TrainingBatch


class TrainingSummary(BaseModel, frozen=True):
    """Outcome of one completed training call."""

    num_examples: int
    batch_size: int
    epochs: int
    batches_per_epoch: int
    losses: tuple[float, ...]

    @property
    def num_batches(self) -> int:
        return len(self.losses)

    @property
    def final_loss(self) -> float:
        return self.losses[-1]


class TrainingController:
    """Fit a :class:`ClassifierHead` on the contents of an :class:`ExampleStore`.

    Every call reads the whole store, reshuffles it each epoch, and keeps
    the trailing partial batch, so one call runs
    ``epochs * ceil(n / batch_size)`` optimizer steps.

    Calling ``train`` twice concurrently on the same head is not guarded
    here; :class:`~teachable_machine.session.TeachableMachine` serializes it.

    Args:
        config: Batch-size ratio, epochs and shuffle seed.
    """

    def __init__(self, config: TrainingConfig | None = None) -> None:
        self.config = config or TrainingConfig()

    async def train(
        self,
        classifier: ClassifierHead,
        store: ExampleStore,
        on_batch_end: BatchEndCallback | None = None,
    ) -> TrainingSummary:
        """Run the configured number of epochs over every stored example.

        Raises:
            EmptyDatasetError: The store holds no examples.  Raised before
                the optimizer is touched.
            TrainingStepError: A forward/backward/optimizer step failed or
                produced a non-finite loss.  Weights keep whatever state the
                failing step left them in.
        """
        if store.is_empty():
            raise EmptyDatasetError()

        num_examples = len(store)
        batch_size = self.config.batch_size_for(num_examples)
        batches_per_epoch = self.config.batches_per_epoch(num_examples)
        generator = torch.Generator()
        if self.config.seed is not None:
            generator.manual_seed(self.config.seed)
        loader = DataLoader(
            store.as_dataset(),
            batch_size=batch_size,
            shuffle=True,
            drop_last=False,
            generator=generator,
        )
        optimizer = classifier.get_optimizer()
        device = classifier.device

        logger.info(
            f"Training on {num_examples} examples: batch_size={batch_size}, "
            f"epochs={self.config.epochs}, {batches_per_epoch} batches/epoch"
        )
        classifier.train()
        losses: list[float] = []
        for epoch in range(self.config.epochs):
            for batch_idx, (features, labels) in enumerate(loader):
                batch: TrainingBatch = {
                    "features": features.to(device),
                    "labels": labels.to(device),
                }
                loss = self._fit_step(classifier, optimizer, batch, epoch, batch_idx)
                losses.append(loss)
                logger.debug(f"epoch {epoch} batch {batch_idx}: loss={loss:.6f}")
                if on_batch_end is not None:
                    on_batch_end(loss)
                await asyncio.sleep(0)

        logger.info(
            f"Training finished after {len(losses)} batches, "
            f"final loss {losses[-1]:.6f}"
        )
        return TrainingSummary(
            num_examples=num_examples,
            batch_size=batch_size,
            epochs=self.config.epochs,
            batches_per_epoch=batches_per_epoch,
            losses=tuple(losses),
        )

    @staticmethod
    def _fit_step(
        classifier: ClassifierHead,
        optimizer: torch.optim.Optimizer,
        batch: TrainingBatch,
        epoch: int,
        batch_idx: int,
    ) -> float:
        try:
            optimizer.zero_grad()
            loss = classifier.training_step(batch, batch_idx)
            if not torch.isfinite(loss):
                raise TrainingStepError(epoch, batch_idx, f"non-finite loss {loss.item()}")
            loss.backward()
            optimizer.step()
        except TrainingStepError:
            raise
        except Exception as e:
            raise TrainingStepError(epoch, batch_idx, str(e)) from e
        return float(loss.detach().item())
