"""Daily metric storage behind the ingestion handler.

The handler only needs three operations, captured by :class:`MetricStore`.
:class:`JsonlMetricStore` keeps one JSON object per line in a local file,
which is enough for the CLI and for tests; a database-backed store only has
to provide the same methods.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import date
from pathlib import Path
from typing import Protocol

from coachscore.models import DailyMetric

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """The backing store could not be read or written."""


class MetricStore(Protocol):
    def fetch_history(self, user_id: str, start: date, end: date) -> list[DailyMetric]:
        """Metrics with ``start <= date < end``, newest first."""
        ...

    def upsert(self, metric: DailyMetric) -> DailyMetric:
        """Insert or replace the row keyed on ``(user_id, date)``."""
        ...

    def resolve_ingest_key(self, key: str) -> str | None:
        """Map a per-user ingest token to its user id."""
        ...


def load_ingest_keys(path: str | Path) -> dict[str, str]:
    """Read a ``{"<token>": "<user_id>", ...}`` JSON file."""
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise StorageError(f"cannot read ingest keys from {path}: {e}") from e
    if not isinstance(data, dict):
        raise StorageError(f"ingest keys file {path} must hold a JSON object")
    return {str(k): str(v) for k, v in data.items()}


class JsonlMetricStore:
    """File-backed :class:`MetricStore`, one :class:`DailyMetric` per line."""

    def __init__(self, path: str | Path, ingest_keys: dict[str, str] | None = None):
        self.path = Path(path)
        self.ingest_keys = dict(ingest_keys or {})
        # Serialises read-modify-write cycles between request threads
        self._lock = threading.Lock()

    def _read_all(self) -> list[DailyMetric]:
        if not self.path.exists():
            return []
        metrics: list[DailyMetric] = []
        try:
            with open(self.path) as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        metrics.append(DailyMetric.from_dict(json.loads(line)))
                    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
                        raise StorageError(f"{self.path.name} line {line_num}: {e}") from e
        except OSError as e:
            raise StorageError(f"cannot read {self.path}: {e}") from e
        return metrics

    def _write_all(self, metrics: list[DailyMetric]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w") as f:
                for m in metrics:
                    f.write(json.dumps(m.to_dict()) + "\n")
            tmp.replace(self.path)
        except OSError as e:
            raise StorageError(f"cannot write {self.path}: {e}") from e

    def fetch_history(self, user_id: str, start: date, end: date) -> list[DailyMetric]:
        rows = [
            m for m in self._read_all()
            if m.user_id == user_id and start <= m.date < end
        ]
        rows.sort(key=lambda m: m.date, reverse=True)
        return rows

    def upsert(self, metric: DailyMetric) -> DailyMetric:
        with self._lock:
            rows = [
                m for m in self._read_all()
                if (m.user_id, m.date) != (metric.user_id, metric.date)
            ]
            rows.append(metric)
            rows.sort(key=lambda m: (m.user_id, m.date))
            self._write_all(rows)
        logger.info("upserted metric for %s on %s", metric.user_id, metric.date.isoformat())
        return metric

    def resolve_ingest_key(self, key: str) -> str | None:
        return self.ingest_keys.get(key)

    def all_metrics(self, user_id: str | None = None) -> list[DailyMetric]:
        """Every stored row (optionally for one user), oldest first."""
        rows = self._read_all()
        if user_id is not None:
            rows = [m for m in rows if m.user_id == user_id]
        rows.sort(key=lambda m: m.date)
        return rows
