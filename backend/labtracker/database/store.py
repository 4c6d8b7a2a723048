import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger("uvicorn.error")


@dataclass
class StoreReadResult:
    records: list[dict] = field(default_factory=list)
    error: Optional[str] = None
    missing: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class JsonRecordStore:
    """A JSON array document on disk, always loaded and saved whole."""

    def __init__(self, path: Path, label: str):
        self.path = Path(path)
        self.label = label

    def exists(self) -> bool:
        return self.path.exists()

    def read_result(self) -> StoreReadResult:
        if not self.path.exists():
            return StoreReadResult(missing=True)
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                decoded = json.load(handle)
        except (OSError, ValueError) as exc:
            return StoreReadResult(error=f"{type(exc).__name__}: {exc}")
        if not isinstance(decoded, list):
            return StoreReadResult(error=f"expected a JSON array, got {type(decoded).__name__}")
        invalid = sum(1 for item in decoded if not isinstance(item, dict))
        if invalid:
            return StoreReadResult(error=f"{invalid} array element(s) are not JSON objects")
        return StoreReadResult(records=decoded)

    def read(self) -> list[dict]:
        result = self.read_result()
        if result.missing:
            logger.warning("No %s data file at %s", self.label, self.path)
        elif not result.ok:
            logger.error("Error reading %s data (%s): %s", self.label, self.path, result.error)
        return result.records

    def write(self, records: list[dict]) -> bool:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(records, handle, indent=2, ensure_ascii=False)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
            return True
        except (OSError, TypeError, ValueError):
            logger.exception("Error writing %s data to %s", self.label, self.path)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            return False
