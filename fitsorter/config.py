from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Union
import json
import logging

from .errors import ConfigError, FatalRunError
from .placer import DIR_MODE
from .utils import COLLISION_POLICIES, OVERWRITE

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class SorterConfig:
    input_root: Path = Path(".")
    output_root: Path = Path("out")
    suffix: str = ".fit"
    extension: str = "fit"
    workers: int = 1
    dry_run: bool = False
    collisions: str = OVERWRITE
    journal: bool = False
    log_level: str = "INFO"

    def __post_init__(self):
        # Accept plain strings for the paths
        object.__setattr__(self, "input_root", Path(self.input_root))
        object.__setattr__(self, "output_root", Path(self.output_root))
        object.__setattr__(self, "log_level", str(self.log_level).upper())

        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")
        if not self.suffix:
            raise ConfigError("suffix must not be empty")
        if self.collisions not in COLLISION_POLICIES:
            raise ConfigError(f"collisions must be one of {', '.join(COLLISION_POLICIES)}")
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"unknown log level: {self.log_level}")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SorterConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
        try:
            return cls(**data)
        except TypeError as exc:
            raise ConfigError(f"invalid config value: {exc}") from exc

    def replace(self, **overrides) -> "SorterConfig":
        """Copy with the given overrides; None values leave a field unchanged."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_config(path: Union[str, Path]) -> SorterConfig:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    try:
        data: Dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be an object: {path}")
    return SorterConfig.from_mapping(data)


def ensure_output_root(config: SorterConfig) -> Path:
    """Create the output root (with parents). Failure is fatal for the run."""
    root = config.output_root
    if config.dry_run:
        return root
    try:
        root.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    except OSError as exc:
        raise FatalRunError(f"cannot create output directory '{root}': {exc}") from exc
    logging.getLogger(__name__).debug("output root ready: %s", root)
    return root
