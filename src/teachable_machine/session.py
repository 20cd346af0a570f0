"""Session orchestration: one store, one head, training XOR inference.

:class:`TeachableMachine` is the only owner of the example store and the
classifier head.  It enforces the scheduling rule the components rely on:
the head is never trained and used for live prediction at the same time.

- ``train`` stops a running inference loop (and waits for its in-flight
  frame) before the first optimizer step.
- ``train`` while another ``train`` is in flight raises
  :class:`TrainingInProgressError`.
- ``start_inference`` during training raises the same error, since
  training cannot be cancelled.
"""

from __future__ import annotations

import asyncio

import torch
from loguru import logger

from teachable_machine.capture.base import BaseWebcam, capture_frame
from teachable_machine.config import ClassifierConfig, SessionConfig, TrainingConfig
from teachable_machine.data.store import ExampleStore
from teachable_machine.errors import TrainingInProgressError
from teachable_machine.inference.loop import InferenceLoop
from teachable_machine.models.feature_extractor import BaseFeatureExtractor
from teachable_machine.models.head import ClassifierHead
from teachable_machine.training import TrainingController, TrainingSummary
from teachable_machine.types import BatchEndCallback, PredictionCallback


class TeachableMachine:
    """Collect examples from a webcam, train the head, classify live.

    Args:
        webcam: Frame source.
        feature_extractor: Frozen activation model.
        classifier: Head to train.  Its ``num_classes`` must match
            ``config.num_classes``.
        config: Class names and frame size.
        training_config: Hyperparameters for each ``train`` call.
    """

    def __init__(
        self,
        webcam: BaseWebcam,
        feature_extractor: BaseFeatureExtractor,
        classifier: ClassifierHead,
        config: SessionConfig | None = None,
        training_config: TrainingConfig | None = None,
    ) -> None:
        self.config = config or SessionConfig(num_classes=classifier.num_classes)
        if classifier.num_classes != self.config.num_classes:
            raise ValueError(
                f"Classifier predicts {classifier.num_classes} classes, "
                f"session is configured for {self.config.num_classes}"
            )
        self.webcam = webcam
        self.feature_extractor = feature_extractor
        self.classifier = classifier
        self.store = ExampleStore(
            num_classes=self.config.num_classes,
            feature_dim=classifier.config.feature_dim,
        )
        self.controller = TrainingController(training_config)
        self.inference = InferenceLoop()
        self._training = False

    @classmethod
    def build(
        cls,
        webcam: BaseWebcam,
        feature_extractor: BaseFeatureExtractor,
        config: SessionConfig | None = None,
        training_config: TrainingConfig | None = None,
        hidden_units: int = 100,
        learning_rate: float = 1e-4,
    ) -> TeachableMachine:
        """Create a session whose head is sized from the extractor output."""
        config = config or SessionConfig()
        classifier = ClassifierHead.from_config(
            ClassifierConfig(
                num_classes=config.num_classes,
                feature_shape=feature_extractor.output_shape(config.image_size),
                hidden_units=hidden_units,
                learning_rate=learning_rate,
            )
        )
        return cls(webcam, feature_extractor, classifier, config, training_config)

    @property
    def training(self) -> bool:
        return self._training

    @property
    def predicting(self) -> bool:
        return self.inference.running

    @property
    def prediction(self) -> int | None:
        """Most recent class id emitted by the inference loop."""
        return self.inference.last_class_id

    def class_name(self, class_id: int) -> str:
        return self.config.class_names[class_id]

    def add_example(self, label: int) -> int:
        """Capture a frame, extract its features and store them under *label*.

        Returns the number of stored examples.

        Raises:
            InvalidLabelError: *label* is out of range.  Nothing is captured.
            CaptureUnavailableError: The webcam raised or returned no frame.
        """
        self.store.validate_label(label)
        with torch.no_grad():
            frame = capture_frame(self.webcam)
            activation = self.feature_extractor.predict(frame)
        self.store.add_example(activation, label)
        logger.info(f"Added sample for class {self.class_name(label)}")
        return len(self.store)

    def reset_examples(self) -> None:
        self.store.reset()
        logger.info("Cleared all examples")

    async def train(self, on_batch_end: BatchEndCallback | None = None) -> TrainingSummary:
        """Stop live prediction, then fit the head on every stored example."""
        if self._training:
            raise TrainingInProgressError("A training call is already in flight")
        self._training = True
        try:
            await self.stop_inference()

            def _report(loss: float) -> None:
                logger.info(f"Training batch. Loss: {loss:.6f}")
                if on_batch_end is not None:
                    on_batch_end(loss)

            return await self.controller.train(self.classifier, self.store, _report)
        finally:
            self._training = False

    def start_inference(
        self,
        on_prediction: PredictionCallback | None = None,
        max_frames: int | None = None,
    ) -> asyncio.Task[None]:
        """Start the live loop; returns its ``asyncio.Task``."""
        if self._training:
            raise TrainingInProgressError("Cannot predict while training is running")
        return self.inference.start(
            self.webcam,
            self.feature_extractor,
            self.classifier,
            on_prediction,
            max_frames=max_frames,
        )

    async def stop_inference(self) -> None:
        """Stop the live loop and wait for its last frame to finish."""
        if not self.inference.running:
            return
        self.inference.stop()
        await self.inference.wait()
