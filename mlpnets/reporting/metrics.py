"""Per-epoch metric sinks attached to the trainer as callbacks."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Dict, List, Mapping

from .artifacts import git_sha


def _numeric(metrics: Mapping[str, object]) -> Dict[str, float]:
    return {
        key: float(value)
        for key, value in metrics.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool)
    }


class _EpochSink:
    """Truncate ``path`` on creation, then append one row per epoch."""

    def __init__(self, path: str | Path, *, split: str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self.rows = 0

    def _record(self, epoch: int, metrics: Mapping[str, object]) -> Dict[str, object]:
        record: Dict[str, object] = {"epoch": int(epoch), "split": self.split}
        record.update(_numeric(metrics))
        return record

    def _append(self, record: Mapping[str, object]) -> None:
        raise NotImplementedError

    def on_epoch(self, epoch: int, metrics: Mapping[str, object]) -> None:
        self._append(self._record(epoch, metrics))
        self.rows += 1

    def __call__(self, epoch: int, metrics: Mapping[str, object]) -> None:
        self.on_epoch(epoch, metrics)


class JsonlSink(_EpochSink):
    """JSON-lines metrics tagged with the run's seed and git revision."""

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        super().__init__(path, split=split)
        self.seed = seed
        self.sha = sha or git_sha()

    def _record(self, epoch: int, metrics: Mapping[str, object]) -> Dict[str, object]:
        record: Dict[str, object] = {
            "epoch": int(epoch),
            "split": self.split,
            "seed": self.seed,
            "sha": self.sha,
        }
        record.update(_numeric(metrics))
        return record

    def _append(self, record: Mapping[str, object]) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")


class CsvSink(_EpochSink):
    """CSV metrics; the columns are fixed by the first epoch written."""

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        super().__init__(path, split=split)
        self._fieldnames: List[str] | None = None

    def _append(self, record: Mapping[str, object]) -> None:
        if self._fieldnames is None:
            self._fieldnames = sorted(record)
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=self._fieldnames, extrasaction="ignore")
            if self.rows == 0:
                writer.writeheader()
            writer.writerow(record)


__all__ = ["CsvSink", "JsonlSink"]
