from pathlib import Path, PurePosixPath
from typing import Dict
import logging
import threading

log = logging.getLogger(__name__)

OVERWRITE = "overwrite"
SUFFIX = "suffix"
COLLISION_POLICIES = (OVERWRITE, SUFFIX)


def ensure_path(path_str: str) -> Path:
    """Return a resolved Path object and ensure it exists."""
    p = Path(path_str).expanduser().resolve()
    if not p.exists():
        raise FileNotFoundError(f"Path does not exist: {p}")
    return p


def unique_name(relative: str, taken) -> str:
    """
    If relative is taken, append ' (1)', ' (2)', ... before the suffix.
    Returns a name that is not in taken.
    """
    if relative not in taken:
        return relative

    path = PurePosixPath(relative)
    i = 1
    while True:
        candidate = str(path.with_name(f"{path.stem} ({i}){path.suffix}"))
        if candidate not in taken:
            return candidate
        i += 1


class DestinationRegistry:
    """Tracks which source claimed each destination name during one run."""

    def __init__(self, policy: str = OVERWRITE):
        if policy not in COLLISION_POLICIES:
            raise ValueError(f"unknown collision policy: {policy}")
        self.policy = policy
        self.collisions = 0
        self._claims: Dict[str, Path] = {}
        self._lock = threading.Lock()

    def claim(self, relative: str, source: Path) -> str:
        with self._lock:
            owner = self._claims.get(relative)
            if owner is None or owner == source:
                self._claims[relative] = source
                return relative

            self.collisions += 1
            if self.policy == OVERWRITE:
                log.warning("'%s' and '%s' both map to '%s', the later copy wins", owner, source, relative)
                self._claims[relative] = source
                return relative

            renamed = unique_name(relative, self._claims)
            log.warning("'%s' already claimed by '%s', using '%s'", relative, owner, renamed)
            self._claims[renamed] = source
            return renamed
