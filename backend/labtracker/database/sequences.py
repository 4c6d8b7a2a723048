import json
import logging
import os
import tempfile
from pathlib import Path

from labtracker.core.errors import StoreReadError, StoreWriteError

logger = logging.getLogger("uvicorn.error")

MAINTENANCE_ID_SEQUENCE = "maintenance_id"


def asset_sequence_name(prefix: str) -> str:
    return f"asset:{prefix}"


class SequenceStore:
    """Named monotonic counters persisted as one JSON object."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> dict[str, int]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                decoded = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.error("Error reading sequences (%s): %s", self.path, exc)
            raise StoreReadError("Sequence counters are unreadable") from exc
        if not isinstance(decoded, dict):
            raise StoreReadError("Sequence counters are unreadable")
        counters: dict[str, int] = {}
        for name, value in decoded.items():
            try:
                counters[str(name)] = int(value)
            except (TypeError, ValueError):
                continue
        return counters

    def _save(self, counters: dict[str, int]) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.path.parent, suffix=".tmp", delete=False
            ) as handle:
                tmp_name = handle.name
                json.dump(counters, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            logger.exception("Error writing sequences to %s", self.path)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreWriteError("Failed to save sequence counters") from exc

    def peek(self, name: str) -> int:
        return self._load().get(name, 0)

    def next_value(self, name: str, floor: int = 1, observed: int = 0) -> int:
        counters = self._load()
        value = max(counters.get(name, 0), observed, floor - 1) + 1
        counters[name] = value
        self._save(counters)
        return value
