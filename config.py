# config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from data_loader import MOVES_PATH, SPECIES_PATH, MoveData, SpeciesData, load_catalogs

logger = logging.getLogger(__name__)

DEFAULT_FIELD_DURATION = 5
DEFAULT_LEVEL = 50
DEFAULT_DATA_DIR = Path(__file__).resolve().parent

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_TRUTHY = ("1", "true", "yes", "on")


@dataclass
class EngineConfig:
    seed: Optional[int] = None
    chaos_mode: bool = False
    default_level: int = DEFAULT_LEVEL
    data_dir: Path = DEFAULT_DATA_DIR
    log_level: str = "WARNING"

    @property
    def species_path(self) -> Path:
        return self.data_dir / SPECIES_PATH.name

    @property
    def moves_path(self) -> Path:
        return self.data_dir / MOVES_PATH.name

    def load_catalogs(self) -> Tuple[Dict[str, SpeciesData], Dict[str, MoveData]]:
        return load_catalogs(self.data_dir)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        """Build a config from BATTLE_* environment variables; bad values fall back to defaults."""
        env = os.environ if environ is None else environ
        config = cls()

        seed = env.get("BATTLE_SEED")
        if seed:
            try:
                config.seed = int(seed)
            except ValueError:
                logger.warning("Ignoring non-integer BATTLE_SEED=%r", seed)

        chaos = env.get("BATTLE_CHAOS_MODE")
        if chaos:
            config.chaos_mode = chaos.strip().lower() in _TRUTHY

        data_dir = env.get("BATTLE_DATA_DIR")
        if data_dir:
            config.data_dir = Path(data_dir)

        level = env.get("BATTLE_LOG_LEVEL")
        if level:
            config.log_level = level.strip().upper()

        return config


def configure_logging(level: str = "WARNING") -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
