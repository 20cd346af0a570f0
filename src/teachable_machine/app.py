"""Headless teachable-machine demo.

Collects examples from per-class image folders, trains the head, then
replays a second set of labeled folders through the live inference loop
and reports accuracy.

Usage:
    teachable-demo data_root=/path/to/frames            # defaults
    teachable-demo training.epochs=50                   # override epochs
    teachable-demo session.class_names=[rock,paper,scissors,none]
    teachable-demo extractor.pretrained=false           # skip weight download
"""

import asyncio
import sys
from pathlib import Path

import hydra
import lightning as L
import torch
from loguru import logger
from omegaconf import DictConfig, OmegaConf
from PIL import Image
from torchmetrics.classification import MulticlassAccuracy

# Import models to trigger @register decorators before Hydra parses config
import teachable_machine.models  # noqa: F401
from teachable_machine.callbacks import (
    LossHistory,
    print_class_distribution,
    print_model_info,
)
from teachable_machine.capture import ReplayWebcam
from teachable_machine.config import SessionConfig, TrainingConfig
from teachable_machine.data.utils import get_files, list_class_dirs
from teachable_machine.models.feature_extractor import BaseFeatureExtractor
from teachable_machine.models.head import ClassifierHead
from teachable_machine.session import TeachableMachine


def load_labeled_frames(
    root: Path, class_names: tuple[str, ...]
) -> tuple[list[Image.Image], list[int]]:
    """Read ``root/<class_name>/*`` images, returning frames and labels in class order."""
    frames: list[Image.Image] = []
    labels: list[int] = []
    for label, class_dir in enumerate(list_class_dirs(root, class_names)):
        for path in get_files(class_dir):
            frames.append(Image.open(path).convert("RGB"))
            labels.append(label)
    return frames, labels


def build_session(cfg: DictConfig) -> TeachableMachine:
    """Instantiate extractor and head from config and wire them into a session."""
    session_cfg = SessionConfig(**OmegaConf.to_container(cfg.session, resolve=True))  # type: ignore[arg-type]
    training_cfg = TrainingConfig(**OmegaConf.to_container(cfg.training, resolve=True))  # type: ignore[arg-type]

    extractor: BaseFeatureExtractor = hydra.utils.instantiate(cfg.extractor)
    feature_shape = extractor.output_shape(session_cfg.image_size)
    classifier: ClassifierHead = hydra.utils.instantiate(
        cfg.model,
        num_classes=session_cfg.num_classes,
        feature_shape=list(feature_shape),
    )
    webcam = ReplayWebcam([], image_size=session_cfg.image_size)
    return TeachableMachine(webcam, extractor, classifier, session_cfg, training_cfg)


async def run_demo(cfg: DictConfig, session: TeachableMachine) -> float:
    """Collect, train, predict.  Returns live top-1 accuracy."""
    class_names = session.config.class_names
    image_size = session.config.image_size

    train_frames, train_labels = load_labeled_frames(Path(cfg.data_root), class_names)
    session.webcam = ReplayWebcam(train_frames, image_size=image_size, loop=False)
    for label in train_labels:
        session.add_example(label)
    print_class_distribution(session.store, class_names)
    print_model_info(session.classifier)

    history = LossHistory(output_dir=cfg.output_dir)
    summary = await session.train(on_batch_end=history)
    logger.info(
        f"Trained {summary.num_batches} batches "
        f"(batch_size={summary.batch_size}), final loss {summary.final_loss:.4f}"
    )
    history.save_plot()

    live_frames, live_labels = load_labeled_frames(Path(cfg.live_root), class_names)
    max_frames = min(cfg.max_frames, len(live_frames))
    if max_frames < 1:
        logger.warning(f"No live frames under {cfg.live_root}. Skipping inference.")
        return 0.0
    session.webcam = ReplayWebcam(live_frames, image_size=image_size, loop=False)
    accuracy = MulticlassAccuracy(num_classes=session.config.num_classes, average="micro")
    targets = iter(live_labels)

    def on_prediction(class_id: int) -> None:
        accuracy.update(torch.tensor([class_id]), torch.tensor([next(targets)]))
        logger.info(f"Prediction: {session.class_name(class_id)}")

    await session.start_inference(on_prediction, max_frames=max_frames)
    top1 = float(accuracy.compute())
    logger.info(f"Live accuracy over {max_frames} frame(s): {top1:.3f}")
    return top1


@hydra.main(version_base=None, config_path="conf", config_name="teachable_machine")
def main(cfg: DictConfig) -> None:
    """Run the demo with the given Hydra config."""
    # Setup logging
    logger.remove()
    logger.add(sys.stderr, level=cfg.get("log_level", "INFO"))

    logger.info(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    # Seed everything for reproducibility
    L.seed_everything(cfg.get("seed", 42), workers=True)

    session = build_session(cfg)
    asyncio.run(run_demo(cfg, session))


if __name__ == "__main__":
    main()
