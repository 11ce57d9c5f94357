"""Training entrypoint for face_attributes.

Usage:
    python -m face_attributes.train data_root=data/UTKFace
    python -m face_attributes.train model=resnet18
    python -m face_attributes.train session.fit.epochs=20
    python -m face_attributes.train session.assembly.sample_limit=500
"""

import sys
from pathlib import Path
from typing import Any

import hydra
import lightning as L
from hydra.core.hydra_config import HydraConfig
from loguru import logger
from omegaconf import DictConfig, OmegaConf

# CRITICAL: import models to trigger @register decorators BEFORE Hydra parses config
import face_attributes.models  # noqa: F401
from face_attributes.config import SessionConfig
from face_attributes.data.samples import iter_raw_samples
from face_attributes.errors import FaceAttributesError
from face_attributes.session import TrainingSession


def build_session(cfg: DictConfig, output_dir: str) -> TrainingSession:
    """Instantiate model, callbacks and session config from a composed config."""
    session_dict: dict[str, Any] = OmegaConf.to_container(cfg.session, resolve=True)  # type: ignore[assignment]
    session_cfg = SessionConfig(**session_dict, output_dir=output_dir)

    model: L.LightningModule = hydra.utils.instantiate(cfg.model)

    callbacks: list[L.Callback] = []
    if cfg.get("callbacks"):
        for v in cfg.callbacks.values():
            if v is not None and "_target_" in v:
                callbacks.append(hydra.utils.instantiate(v, output_dir=output_dir))

    return TrainingSession(model, session_cfg, callbacks)  # type: ignore[arg-type]


@hydra.main(version_base=None, config_path="conf", config_name="train_utkface")
def main(cfg: DictConfig) -> None:
    """Run training with the given Hydra config."""
    logger.remove()
    logger.add(sys.stderr, level=cfg.get("log_level", "INFO"))

    logger.info(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    output_dir = HydraConfig.get().runtime.output_dir
    session = build_session(cfg, output_dir)

    data_root = Path(hydra.utils.to_absolute_path(cfg.data_root))
    if not data_root.is_dir():
        logger.error(f"Data root not found: {data_root}")
        sys.exit(1)

    try:
        for event in session.train(iter_raw_samples(data_root)):
            logger.debug(f"Epoch metrics: {event.metrics}")
    except FaceAttributesError as e:
        logger.error(f"Training aborted: {e}")
        sys.exit(1)

    summary = session.last_assembly
    if summary is not None and summary.dropped:
        logger.warning(
            f"{summary.dropped} file(s) skipped for unparseable filenames "
            f"({summary.samples} used)"
        )
    session.save_checkpoint(Path(output_dir) / "checkpoints" / "last.ckpt")


if __name__ == "__main__":
    main()
