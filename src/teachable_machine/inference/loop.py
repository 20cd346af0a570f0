"""Cancellable per-frame classification loop."""

from __future__ import annotations

import asyncio
import enum

import torch
from loguru import logger

from teachable_machine.capture.base import BaseWebcam, capture_frame
from teachable_machine.errors import AlreadyRunningError
from teachable_machine.models.feature_extractor import BaseFeatureExtractor
from teachable_machine.models.head import ClassifierHead
from teachable_machine.types import PredictionCallback


class InferenceState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"


class InferenceLoop:
    """Continuously classify camera frames until stopped.

    Each iteration captures one frame, runs it through the feature
    extractor and the classifier head, and reports the arg-max class id.
    The loop then yields to the event loop before checking its running
    flag again.

    Stopping is cooperative: :meth:`stop` only clears the flag, so the
    frame being classified at that moment still completes and is reported.
    Starting a loop that is already running raises
    :class:`AlreadyRunningError`.

    State is per instance; separate loops never share a flag.
    """

    def __init__(self) -> None:
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._generation = 0
        self.last_class_id: int | None = None
        self.frames_processed = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def state(self) -> InferenceState:
        return InferenceState.RUNNING if self._running else InferenceState.IDLE

    def start(
        self,
        webcam: BaseWebcam,
        feature_extractor: BaseFeatureExtractor,
        classifier: ClassifierHead,
        on_prediction: PredictionCallback | None = None,
        max_frames: int | None = None,
    ) -> asyncio.Task[None]:
        """Schedule the loop on the running event loop and return its task.

        Args:
            max_frames: Stop on its own after this many frames.  ``None``
                runs until :meth:`stop`.

        Raises:
            AlreadyRunningError: A previous ``start`` has not finished.
        """
        if self._running:
            raise AlreadyRunningError("InferenceLoop is already running; stop() it first")
        self._running = True
        self._generation += 1
        self.frames_processed = 0
        self._task = asyncio.get_running_loop().create_task(
            self._run(
                self._generation,
                webcam,
                feature_extractor,
                classifier,
                on_prediction,
                max_frames,
            )
        )
        return self._task

    async def run(
        self,
        webcam: BaseWebcam,
        feature_extractor: BaseFeatureExtractor,
        classifier: ClassifierHead,
        on_prediction: PredictionCallback | None = None,
        max_frames: int | None = None,
    ) -> None:
        """Start the loop and wait until it ends."""
        await self.start(webcam, feature_extractor, classifier, on_prediction, max_frames)

    def stop(self) -> None:
        """Ask the loop to exit at its next iteration boundary."""
        if not self._running:
            logger.debug("InferenceLoop.stop() called while idle")
        self._running = False

    async def wait(self) -> None:
        """Wait for the current (or last) loop task to finish.

        Re-raises whatever error ended the loop.
        """
        if self._task is not None:
            await self._task

    def _is_current(self, generation: int) -> bool:
        return self._running and self._generation == generation

    async def _run(
        self,
        generation: int,
        webcam: BaseWebcam,
        feature_extractor: BaseFeatureExtractor,
        classifier: ClassifierHead,
        on_prediction: PredictionCallback | None,
        max_frames: int | None,
    ) -> None:
        logger.info("Inference loop started")
        classifier.eval()
        try:
            # A stop() followed by a fresh start() retires this run too.
            while self._is_current(generation) and (
                max_frames is None or self.frames_processed < max_frames
            ):
                class_id = self._classify_frame(webcam, feature_extractor, classifier)
                self.last_class_id = class_id
                self.frames_processed += 1
                logger.debug(f"frame {self.frames_processed}: class {class_id}")
                if on_prediction is not None:
                    on_prediction(class_id)
                await asyncio.sleep(0)
        except Exception:
            logger.exception("Inference loop failed")
            raise
        finally:
            if self._generation == generation:
                self._running = False
            logger.info(f"Inference loop stopped after {self.frames_processed} frame(s)")

    @staticmethod
    def _classify_frame(
        webcam: BaseWebcam,
        feature_extractor: BaseFeatureExtractor,
        classifier: ClassifierHead,
    ) -> int:
        """One capture -> extract -> classify step.

        Every intermediate tensor is local to this call and freed on return.
        """
        with torch.inference_mode():
            frame = capture_frame(webcam)
            activation = feature_extractor.predict(frame)
            probs = classifier(activation.to(classifier.device))
            return int(probs.reshape(-1).argmax().item())
