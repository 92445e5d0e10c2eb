"""
Marketplace configuration.

Defaults live here; a YAML file and dotlist overrides are merged on top
with OmegaConf, the same way the Hydra-driven scripts compose configs.
"""

import logging
from pathlib import Path
from typing import Sequence

from omegaconf import DictConfig, OmegaConf

DEFAULTS = {
    "market": {
        "fee_rate_bps": 300,
        "owner": None,
        "beneficiary": None,
    },
    "events": {
        "log_events": False,
        "log_dir": "logs",
        "experiment_id": "market",
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    },
}


def load_config(
    path: str | Path | None = None, overrides: Sequence[str] | None = None
) -> DictConfig:
    """
    Build a config from defaults, an optional YAML file and overrides.

    Args:
        path: YAML file to merge over the defaults (missing file is ignored)
        overrides: Dotlist entries such as ``["market.fee_rate_bps=250"]``

    Returns:
        Merged configuration
    """
    cfg = OmegaConf.create(DEFAULTS)
    if path is not None and Path(path).exists():
        cfg = OmegaConf.merge(cfg, OmegaConf.load(path))
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))
    return cfg


def configure_logging(cfg: DictConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, str(cfg.logging.level).upper(), logging.INFO),
        format=cfg.logging.format,
    )
