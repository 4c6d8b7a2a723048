import io
import os
import tempfile
from pathlib import Path
from uuid import uuid4

import pytest

TEST_ROOT = Path(tempfile.gettempdir()) / f"labtracker_tests_{uuid4().hex}"
os.environ["DATA_DIR"] = str(TEST_ROOT / "data")
os.environ["UPLOADS_DIR"] = str(TEST_ROOT / "uploads")
os.environ["PUBLIC_DIR"] = str(TEST_ROOT / "public")
os.environ.setdefault("DATA_BOOTSTRAP_MODE", "off")
(TEST_ROOT / "public").mkdir(parents=True, exist_ok=True)
(TEST_ROOT / "public" / "index.html").write_text(
    "<html><head><link rel=\"stylesheet\" href=\"styles.css\"></head><body>Lab Equipment Tracker</body></html>",
    encoding="utf-8",
)
(TEST_ROOT / "public" / "styles.css").write_text("body { margin: 0; }", encoding="utf-8")

from fastapi import UploadFile  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from starlette.datastructures import Headers  # noqa: E402

from labtracker.database.deps import get_db  # noqa: E402
from labtracker.database.session import build_database  # noqa: E402
from labtracker.main import app  # noqa: E402


@pytest.fixture
def db(tmp_path):
    return build_database(tmp_path / "data", tmp_path / "uploads")


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_upload():
    def factory(filename: str, content: bytes = b"data", content_type: str = "application/pdf") -> UploadFile:
        return UploadFile(
            file=io.BytesIO(content),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )

    return factory


@pytest.fixture
def make_equipment():
    def factory(asset_number: str, **overrides) -> dict:
        record = {
            "asset_number": asset_number,
            "name": "Digital Oscilloscope",
            "model": "DS1054Z",
            "serial_number": f"SN-{asset_number}",
            "manufacturer": "Rigol",
            "category": "Oscilloscope",
            "location": "Test Bench 1",
            "purchase_date": "2024-06-15",
            "warranty_expiry": "2027-06-15",
            "cost": 2500,
            "status": "Operational",
            "last_maintenance": "",
            "next_maintenance": "",
        }
        record.update(overrides)
        return record

    return factory
