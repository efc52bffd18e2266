from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Mapping, Optional

ENV_PREFIX = "CALCI_"
_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

def _default_store_path() -> Path: return Path.home() / ".calci" / "store.json"

@dataclass
class Settings:
    store_path: Path = field(default_factory=_default_store_path)
    log_level: str = "WARNING"
    log_file: Optional[Path] = None
    highlight_ms: int = 200

    def validate(self) -> None:
        if self.log_level.upper() not in _LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LEVELS)}")
        if int(self.highlight_ms) < 0:
            raise ValueError("highlight_ms must be >= 0")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        s = cls()
        if env.get(ENV_PREFIX + "STORE_PATH"): s.store_path = Path(env[ENV_PREFIX + "STORE_PATH"]).expanduser()
        if env.get(ENV_PREFIX + "LOG_LEVEL"):  s.log_level = env[ENV_PREFIX + "LOG_LEVEL"].upper()
        if env.get(ENV_PREFIX + "LOG_FILE"):   s.log_file = Path(env[ENV_PREFIX + "LOG_FILE"]).expanduser()
        if env.get(ENV_PREFIX + "HIGHLIGHT_MS"):
            try: s.highlight_ms = int(env[ENV_PREFIX + "HIGHLIGHT_MS"])
            except ValueError: raise ValueError(f"{ENV_PREFIX}HIGHLIGHT_MS must be an integer") from None
        s.validate()
        return s

def setup_logging(settings: Settings) -> logging.Logger:
    """Configure the ``calci`` logger once; later calls only adjust the level."""
    level = getattr(logging, settings.log_level.upper())
    logger = logging.getLogger("calci")
    logger.setLevel(level)
    if logger.handlers: return logger

    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    sh = logging.StreamHandler(); sh.setFormatter(fmt); logger.addHandler(sh)
    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(settings.log_file, maxBytes=512_000, backupCount=2, encoding="utf-8")
        fh.setFormatter(fmt); logger.addHandler(fh)
    return logger
