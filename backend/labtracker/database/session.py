import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from labtracker.core import config
from labtracker.core.errors import StoreReadError, StoreWriteError
from labtracker.database.sequences import SequenceStore
from labtracker.database.store import JsonRecordStore
from labtracker.services.attachments import AttachmentStore


@dataclass
class LabDatabase:
    equipment: JsonRecordStore
    maintenance: JsonRecordStore
    sequences: SequenceStore
    attachments: AttachmentStore
    # Held across every read-modify-write so requests in the thread pool never interleave.
    lock: threading.RLock = field(default_factory=threading.RLock)

    def load(self, store: JsonRecordStore) -> list[dict]:
        result = store.read_result()
        if not result.ok:
            raise StoreReadError(f"Stored {store.label} data is unreadable")
        return result.records

    def save(self, store: JsonRecordStore, records: list[dict], message: Optional[str] = None) -> None:
        if not store.write(records):
            raise StoreWriteError(message or f"Failed to save {store.label}")


def build_database(
    data_dir: Path,
    uploads_dir: Path,
    max_upload_bytes: int = config.MAX_UPLOAD_BYTES,
    max_upload_files: int = config.MAX_UPLOAD_FILES,
) -> LabDatabase:
    data_dir = Path(data_dir)
    return LabDatabase(
        equipment=JsonRecordStore(data_dir / config.EQUIPMENT_FILE, "equipment"),
        maintenance=JsonRecordStore(data_dir / config.MAINTENANCE_FILE, "maintenance"),
        sequences=SequenceStore(data_dir / config.SEQUENCES_FILE),
        attachments=AttachmentStore(Path(uploads_dir), max_upload_bytes, max_upload_files),
    )


_database: Optional[LabDatabase] = None
_database_lock = threading.Lock()


def get_database() -> LabDatabase:
    global _database
    with _database_lock:
        if _database is None:
            _database = build_database(config.DATA_DIR, config.UPLOADS_DIR)
        return _database
