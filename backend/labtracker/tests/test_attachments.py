import re

import pytest

from labtracker.core.errors import AttachmentRejected
from labtracker.services.attachments import AttachmentStore, build_attachment_filename


@pytest.fixture
def store(tmp_path):
    return AttachmentStore(tmp_path / "uploads", max_bytes=1024, max_files=3)


def test_filename_keeps_dashes_and_underscores():
    assert (
        build_attachment_filename("LAB-2026_OSC-001", "2026-03-01", "scan.jpeg")
        == "LAB-2026_OSC-001-2026-03-01-maintenance-file.jpeg"
    )


def test_filename_falls_back_for_missing_hints():
    filename = build_attachment_filename(None, None, "notes")

    assert re.fullmatch(r"unknown-asset-\d{4}-\d{2}-\d{2}-maintenance-file", filename)


def test_save_overwrites_same_generated_name(store, make_upload):
    store.save(make_upload("one.pdf", b"first"), "LAB-2026-OSC-001", "2026-03-01")
    second = store.save(make_upload("two.pdf", b"second"), "LAB-2026-OSC-001", "2026-03-01")

    assert store.path_for(second["filename"]).read_bytes() == b"second"
    assert len(list(store.base_dir.iterdir())) == 1


def test_oversize_save_keeps_previous_blob(store, make_upload):
    kept = store.save(make_upload("one.pdf", b"first"), "LAB-2026-OSC-001", "2026-03-01")

    with pytest.raises(AttachmentRejected):
        store.save(make_upload("huge.pdf", b"x" * 2048), "LAB-2026-OSC-001", "2026-03-01")

    assert store.path_for(kept["filename"]).read_bytes() == b"first"
    assert len(list(store.base_dir.iterdir())) == 1


def test_validate_checks_type_and_count(store, make_upload):
    store.validate([make_upload("a.docx", content_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document")])

    with pytest.raises(AttachmentRejected, match="application/zip"):
        store.validate([make_upload("a.zip", content_type="application/zip")])
    with pytest.raises(AttachmentRejected, match="Too many files"):
        store.validate([make_upload(f"{index}.pdf") for index in range(4)])


def test_path_for_rejects_names_outside_uploads(store, tmp_path):
    store.ensure_dir()
    (tmp_path / "secret.txt").write_text("nope", encoding="utf-8")

    assert store.path_for("../secret.txt") is None
    assert store.path_for("") is None
    assert store.delete("../secret.txt") is False
    assert (tmp_path / "secret.txt").exists()


def test_delete_reports_whether_file_existed(store, make_upload):
    saved = store.save(make_upload("one.pdf"), "LAB-2026-OSC-001", "2026-03-01")

    assert store.delete(saved["filename"]) is True
    assert store.delete(saved["filename"]) is False
