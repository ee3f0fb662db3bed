import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Iterable

from .models import Outcome, RunSummary
from .utils import unique_name

JOURNAL_DIR = ".fitsort"


class RunJournal:
    """Append-only record of every run. Also writes a JSON summary per run."""
    def __init__(self, root: Path):
        self.root = Path(root)
        self.meta_dir = self.root / JOURNAL_DIR
        self.meta_dir.mkdir(parents=True, exist_ok=True)
        self.csv_path = self.meta_dir / "runs.csv"

        # Ensure CSV header exists
        if not self.csv_path.exists():
            with self.csv_path.open("w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(["run_id", "kind", "source", "destination", "reason", "timestamp"])

    @staticmethod
    def new_run_id() -> str:
        return datetime.now().strftime("%Y%m%d-%H%M%S-%f")

    def write_run(self, run_id: str, outcomes: Iterable[Outcome], summary: RunSummary) -> Path:
        outcomes = list(outcomes)
        now = datetime.now().isoformat(timespec="seconds")

        with self.csv_path.open("a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            for o in outcomes:
                writer.writerow([
                    run_id,
                    o.kind.value,
                    str(o.source),
                    str(o.destination) if o.destination else "",
                    o.reason,
                    now,
                ])

        data = {
            "run_id": run_id,
            "finished": now,
            "cancelled": summary.cancelled,
            "collisions": summary.collisions,
            "counts": {kind.value: count for kind, count in summary.counts.items()},
            "failures": [
                {"source": str(o.source), "kind": o.kind.value, "reason": o.reason}
                for o in summary.failures
            ],
        }
        taken = {p.name for p in self.meta_dir.glob("*.json")}
        run_file = self.meta_dir / unique_name(f"{run_id}.json", taken)
        run_file.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return run_file
