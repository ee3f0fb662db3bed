from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple
import os
import stat


@dataclass(frozen=True)
class SourceFile:
    path: Path
    is_regular: bool

    @classmethod
    def from_path(cls, path: Path) -> "SourceFile":
        """Describe ``path`` without following symlinks. Raises OSError if it cannot be stat'ed."""
        path = Path(path)
        return cls(path=path, is_regular=stat.S_ISREG(os.lstat(path).st_mode))


@dataclass(frozen=True)
class DecodedActivity:
    activity_type: str
    timestamp: datetime
    total_timer_millis: int
    sports: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ActivitySession:
    sport: str
    start: datetime
    duration_millis: int


class NotQualifyingReason(str, Enum):
    WRONG_TYPE = "wrong_type"
    SPORT_COUNT_MISMATCH = "sport_count_mismatch"


class OutcomeKind(str, Enum):
    SKIPPED = "skipped"
    DECODE_FAILED = "decode_failed"
    NOT_QUALIFYING = "not_qualifying"
    COPY_FAILED = "copy_failed"
    COPIED = "copied"


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    source: Path
    reason: str = ""
    destination: Optional[Path] = None
    performed: bool = False  # False for dry-run copies and non-copies

    @classmethod
    def skipped(cls, source: Path, reason: str) -> "Outcome":
        return cls(OutcomeKind.SKIPPED, source, reason)

    @classmethod
    def decode_failed(cls, source: Path, reason: str) -> "Outcome":
        return cls(OutcomeKind.DECODE_FAILED, source, reason)

    @classmethod
    def not_qualifying(cls, source: Path, reason: str) -> "Outcome":
        return cls(OutcomeKind.NOT_QUALIFYING, source, reason)

    @classmethod
    def copy_failed(cls, source: Path, reason: str) -> "Outcome":
        return cls(OutcomeKind.COPY_FAILED, source, reason)

    @classmethod
    def copied(cls, source: Path, destination: Path, performed: bool = True, reason: str = "") -> "Outcome":
        return cls(OutcomeKind.COPIED, source, reason, destination, performed)

    @property
    def failed(self) -> bool:
        return self.kind in (OutcomeKind.DECODE_FAILED, OutcomeKind.NOT_QUALIFYING, OutcomeKind.COPY_FAILED)


@dataclass(frozen=True)
class CopyResult:
    src: Path
    dst: Path
    performed: bool  # False if dry-run
    reason: str = ""  # e.g. "same location"


@dataclass
class RunSummary:
    counts: dict = field(default_factory=lambda: {kind: 0 for kind in OutcomeKind})
    failures: List[Outcome] = field(default_factory=list)
    collisions: int = 0
    cancelled: bool = False

    def add(self, outcome: Outcome) -> None:
        self.counts[outcome.kind] += 1
        if outcome.failed:
            self.failures.append(outcome)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    @property
    def copied(self) -> int:
        return self.counts[OutcomeKind.COPIED]

    @property
    def skipped(self) -> int:
        return self.counts[OutcomeKind.SKIPPED]

    @property
    def failed(self) -> int:
        return len(self.failures)
