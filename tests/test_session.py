"""Tests for TeachableMachine session orchestration."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
import torch

from teachable_machine.capture import ReplayWebcam
from teachable_machine.config import SessionConfig, TrainingConfig
from teachable_machine.errors import (
    CaptureUnavailableError,
    EmptyDatasetError,
    InvalidLabelError,
    TrainingInProgressError,
)
from teachable_machine.models import ClassifierHead, ModuleFeatureExtractor
from teachable_machine.session import TeachableMachine


@pytest.fixture()
def session(
    webcam: ReplayWebcam, extractor: ModuleFeatureExtractor, head: ClassifierHead
) -> TeachableMachine:
    return TeachableMachine(
        webcam,
        extractor,
        head,
        SessionConfig(num_classes=4, class_names=("up", "down", "left", "right")),
        TrainingConfig(epochs=2),
    )


def _collect(session: TeachableMachine, labels: tuple[int, ...]) -> None:
    for label in labels:
        session.add_example(label)


class TestSessionConstruction:
    def test_store_sized_from_head(self, session: TeachableMachine) -> None:
        assert session.store.num_classes == 4
        assert session.store.feature_dim == 12

    def test_class_count_mismatch(
        self, webcam: ReplayWebcam, extractor: ModuleFeatureExtractor, head: ClassifierHead
    ) -> None:
        with pytest.raises(ValueError, match="4 classes"):
            TeachableMachine(webcam, extractor, head, SessionConfig(num_classes=3))

    def test_build_sizes_head_from_extractor(
        self, webcam: ReplayWebcam, extractor: ModuleFeatureExtractor
    ) -> None:
        session = TeachableMachine.build(
            webcam, extractor, SessionConfig(num_classes=2, image_size=8)
        )
        assert session.classifier.num_classes == 2
        assert session.classifier.config.feature_shape == (3, 2, 2)
        assert session.store.feature_dim == 12

    def test_class_name_lookup(self, session: TeachableMachine) -> None:
        assert [session.class_name(i) for i in range(4)] == ["up", "down", "left", "right"]


class TestSessionExamples:
    def test_add_example_captures_and_stores(self, session: TeachableMachine) -> None:
        assert session.add_example(2) == 1
        assert session.add_example(0) == 2
        assert session.store.labels.argmax(dim=1).tolist() == [2, 0]
        assert session.webcam.frames_served == 2  # type: ignore[attr-defined]

    def test_stored_features_match_extractor(
        self,
        session: TeachableMachine,
        frames: list[torch.Tensor],
        extractor: ModuleFeatureExtractor,
    ) -> None:
        session.add_example(1)
        expected = extractor.predict(frames[0]).reshape(-1)
        assert torch.allclose(session.store.features[0], expected)

    def test_invalid_label_rejected_before_capture(
        self, extractor: ModuleFeatureExtractor, head: ClassifierHead
    ) -> None:
        webcam = MagicMock()
        session = TeachableMachine(webcam, extractor, head)
        with pytest.raises(InvalidLabelError):
            session.add_example(7)
        webcam.capture.assert_not_called()
        assert session.store.is_empty()

    def test_capture_error_is_wrapped(
        self, extractor: ModuleFeatureExtractor, head: ClassifierHead
    ) -> None:
        webcam = MagicMock()
        webcam.capture.side_effect = OSError("device busy")
        session = TeachableMachine(webcam, extractor, head)

        with pytest.raises(CaptureUnavailableError) as exc_info:
            session.add_example(1)

        assert isinstance(exc_info.value.__cause__, OSError)
        assert session.store.is_empty()

    def test_missing_frame(self, extractor: ModuleFeatureExtractor, head: ClassifierHead) -> None:
        webcam = MagicMock()
        webcam.capture.return_value = None
        session = TeachableMachine(webcam, extractor, head)

        with pytest.raises(CaptureUnavailableError, match="no frame"):
            session.add_example(1)
        assert session.store.is_empty()

    def test_exhausted_webcam_passes_through(
        self,
        frames: list[torch.Tensor],
        extractor: ModuleFeatureExtractor,
        head: ClassifierHead,
    ) -> None:
        session = TeachableMachine(ReplayWebcam(frames[:1], loop=False), extractor, head)
        session.add_example(0)

        with pytest.raises(CaptureUnavailableError, match="exhausted") as exc_info:
            session.add_example(0)

        assert exc_info.value.__cause__ is None
        assert len(session.store) == 1

    def test_reset_examples(self, session: TeachableMachine) -> None:
        _collect(session, (0, 1, 2))
        session.reset_examples()
        assert session.store.is_empty()


class TestSessionTraining:
    def test_train_reports_each_batch(self, session: TeachableMachine) -> None:
        _collect(session, (0, 0, 1, 1, 2, 2, 2, 3, 3, 3))
        losses: list[float] = []
        summary = asyncio.run(session.train(losses.append))
        assert len(losses) == 2 * 3
        assert summary.batch_size == 4
        assert not session.training

    def test_train_empty_store(self, session: TeachableMachine) -> None:
        with pytest.raises(EmptyDatasetError):
            asyncio.run(session.train())
        assert not session.training

    def test_train_stops_running_inference_first(self, session: TeachableMachine) -> None:
        _collect(session, (0, 1, 2, 3))
        predictions: list[int] = []
        frames_seen_during_training: list[int] = []

        async def scenario() -> None:
            task = session.start_inference(predictions.append)
            for _ in range(3):
                await asyncio.sleep(0)
            assert session.predicting
            await session.train(
                lambda loss: frames_seen_during_training.append(len(predictions))
            )
            assert task.done()

        asyncio.run(scenario())
        assert not session.predicting
        # No frame was classified once the first optimizer step ran.
        assert len(set(frames_seen_during_training)) == 1
        assert frames_seen_during_training[0] == len(predictions)

    def test_overlapping_training_rejected(self, session: TeachableMachine) -> None:
        _collect(session, (0, 1, 2, 3))

        async def scenario() -> None:
            first = asyncio.create_task(session.train())
            await asyncio.sleep(0)
            assert session.training
            with pytest.raises(TrainingInProgressError):
                await session.train()
            with pytest.raises(TrainingInProgressError):
                session.start_inference()
            await first

        asyncio.run(scenario())
        assert not session.training

    def test_training_changes_predictions_source(self, session: TeachableMachine) -> None:
        _collect(session, (0, 1, 2, 3))
        before = {k: v.clone() for k, v in session.classifier.state_dict().items()}
        asyncio.run(session.train())
        after = session.classifier.state_dict()
        assert any(not torch.equal(before[k], after[k]) for k in before)


class TestSessionInference:
    def test_start_and_stop(self, session: TeachableMachine) -> None:
        predictions: list[int] = []

        async def scenario() -> None:
            session.start_inference(predictions.append)
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            await session.stop_inference()

        asyncio.run(scenario())
        assert not session.predicting
        assert predictions
        assert session.prediction == predictions[-1]

    def test_max_frames(self, session: TeachableMachine) -> None:
        async def scenario() -> None:
            await session.start_inference(max_frames=4)

        asyncio.run(scenario())
        assert session.inference.frames_processed == 4

    def test_stop_when_idle(self, session: TeachableMachine) -> None:
        asyncio.run(session.stop_inference())
        assert not session.predicting

    def test_predict_after_train(self, session: TeachableMachine) -> None:
        _collect(session, (0, 1, 2, 3, 0, 1, 2, 3))
        predictions: list[int] = []

        async def scenario() -> None:
            await session.train()
            await session.start_inference(predictions.append, max_frames=8)

        asyncio.run(scenario())
        assert len(predictions) == 8
        assert all(0 <= p < 4 for p in predictions)
