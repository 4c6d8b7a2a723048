import pytest

from labtracker.core.errors import AttachmentRejected, RecordNotFound, StoreWriteError
from labtracker.database.session import build_database
from labtracker.services import maintenance as maintenance_service


def maintenance_fields(**overrides):
    fields = {
        "equipment_asset": "LAB-2026-OSC-001",
        "type": "Calibration",
        "date": "2026-01-05",
        "description": "Annual calibration",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def oscilloscope(db, make_equipment):
    db.equipment.write([make_equipment("LAB-2026-OSC-001", status="Calibration Due")])
    return db


def test_ids_start_at_floor_and_increase(db):
    first = maintenance_service.create_maintenance(db, maintenance_fields())
    second = maintenance_service.create_maintenance(db, maintenance_fields())

    assert first["id"] == 1001
    assert second["id"] == 1002


def test_ids_are_not_reused_after_deleting_highest(db):
    maintenance_service.create_maintenance(db, maintenance_fields())
    highest = maintenance_service.create_maintenance(db, maintenance_fields())

    maintenance_service.delete_maintenance(db, highest["id"])
    replacement = maintenance_service.create_maintenance(db, maintenance_fields())

    assert replacement["id"] == highest["id"] + 1


def test_ids_continue_after_existing_records(db):
    db.maintenance.write([{"id": 1500, "equipment_asset": "LAB-2026-OSC-001", "files": []}])

    created = maintenance_service.create_maintenance(db, maintenance_fields())

    assert created["id"] == 1501


def test_create_defaults_optional_fields(db):
    created = maintenance_service.create_maintenance(db, maintenance_fields(cost="not a number"))

    assert created["technician"] == ""
    assert created["next_due"] == ""
    assert created["equipment_status"] == ""
    assert created["cost"] == 0
    assert created["files"] == []
    assert db.maintenance.read() == [created]


def test_create_propagates_to_equipment(oscilloscope):
    maintenance_service.create_maintenance(
        oscilloscope,
        maintenance_fields(next_due="2026-07-05", equipment_status="Operational", cost="150.5"),
    )

    equipment = oscilloscope.equipment.read()[0]
    assert equipment["status"] == "Operational"
    assert equipment["last_maintenance"] == "2026-01-05"
    assert equipment["next_maintenance"] == "2026-07-05"
    assert "updated_at" in equipment


@pytest.mark.parametrize("status", ["", "   ", None])
def test_blank_status_leaves_equipment_status(oscilloscope, status):
    maintenance_service.create_maintenance(oscilloscope, maintenance_fields(equipment_status=status))

    equipment = oscilloscope.equipment.read()[0]
    assert equipment["status"] == "Calibration Due"
    assert equipment["last_maintenance"] == "2026-01-05"
    assert equipment["next_maintenance"] == ""


def test_create_without_matching_equipment_still_saves(oscilloscope):
    created = maintenance_service.create_maintenance(
        oscilloscope, maintenance_fields(equipment_asset="LAB-2026-GEN-404", equipment_status="Out of Service")
    )

    assert maintenance_service.get_maintenance(oscilloscope, created["id"]) == created
    assert oscilloscope.equipment.read()[0]["status"] == "Calibration Due"


def test_update_merges_and_propagates(oscilloscope):
    created = maintenance_service.create_maintenance(oscilloscope, maintenance_fields())

    updated = maintenance_service.update_maintenance(
        oscilloscope, created["id"], {"equipment_status": "Out of Service", "date": "2026-01-20"}
    )

    assert updated["description"] == "Annual calibration"
    assert updated["equipment_status"] == "Out of Service"
    assert "updated_at" in updated
    equipment = oscilloscope.equipment.read()[0]
    assert equipment["status"] == "Out of Service"
    assert equipment["last_maintenance"] == "2026-01-20"


@pytest.mark.parametrize(
    "fields",
    [
        {"description": "Fixed typo"},
        {"description": "Fixed typo", "equipment_status": None, "next_due": None},
        {"description": "Fixed typo", "equipment_status": "", "next_due": ""},
    ],
)
def test_update_does_not_reapply_stored_status_or_due_date(oscilloscope, fields):
    created = maintenance_service.create_maintenance(
        oscilloscope, maintenance_fields(equipment_status="Out of Service", next_due="2026-07-05")
    )
    equipment = oscilloscope.equipment.read()
    equipment[0].update(status="Operational", next_maintenance="2026-09-01")
    oscilloscope.equipment.write(equipment)

    updated = maintenance_service.update_maintenance(oscilloscope, created["id"], fields)

    assert updated["description"] == "Fixed typo"
    equipment = oscilloscope.equipment.read()[0]
    assert equipment["status"] == "Operational"
    assert equipment["next_maintenance"] == "2026-09-01"
    assert equipment["last_maintenance"] == "2026-01-05"


def test_update_unknown_record(db):
    with pytest.raises(RecordNotFound):
        maintenance_service.update_maintenance(db, 4242, {"type": "Repair"})


def test_uploads_are_named_after_asset_and_date(db, make_upload):
    created = maintenance_service.create_maintenance(
        db,
        maintenance_fields(equipment_asset="LAB/2026 OSC#1", date="2026/01/05"),
        [make_upload("Report Final.PDF", b"%PDF-1.4")],
    )

    attachment = created["files"][0]
    assert attachment["filename"] == "LAB_2026_OSC_1-2026_01_05-maintenance-file.PDF"
    assert attachment["originalname"] == "Report Final.PDF"
    assert attachment["mimetype"] == "application/pdf"
    assert attachment["size"] == 8
    assert db.attachments.path_for(attachment["filename"]).read_bytes() == b"%PDF-1.4"


def test_uploads_in_one_request_are_deduplicated(db, make_upload):
    created = maintenance_service.create_maintenance(
        db,
        maintenance_fields(),
        [make_upload("first.pdf", b"one"), make_upload("second.pdf", b"two"), make_upload("notes.txt", content_type="text/plain")],
    )

    assert [attachment["filename"] for attachment in created["files"]] == [
        "LAB-2026-OSC-001-2026-01-05-maintenance-file.pdf",
        "LAB-2026-OSC-001-2026-01-05-maintenance-file.txt",
    ]
    assert created["files"][0]["originalname"] == "first.pdf"


def test_update_appends_new_files(db, make_upload):
    created = maintenance_service.create_maintenance(db, maintenance_fields(), [make_upload("a.pdf")])

    updated = maintenance_service.update_maintenance(
        db, created["id"], {}, [make_upload("b.png", content_type="image/png"), make_upload("again.pdf")]
    )

    assert [attachment["filename"] for attachment in updated["files"]] == [
        "LAB-2026-OSC-001-2026-01-05-maintenance-file.pdf",
        "LAB-2026-OSC-001-2026-01-05-maintenance-file.png",
    ]


def test_disallowed_mimetype_creates_nothing(db, make_upload):
    with pytest.raises(AttachmentRejected):
        maintenance_service.create_maintenance(
            db, maintenance_fields(), [make_upload("ok.pdf"), make_upload("bundle.zip", content_type="application/zip")]
        )

    assert db.maintenance.read() == []
    assert list(db.attachments.base_dir.glob("*")) == []


def test_oversize_upload_creates_nothing(tmp_path, make_upload):
    small_db = build_database(tmp_path / "data", tmp_path / "uploads", max_upload_bytes=16)

    with pytest.raises(AttachmentRejected):
        maintenance_service.create_maintenance(
            small_db,
            maintenance_fields(),
            [make_upload("ok.txt", b"small", "text/plain"), make_upload("big.pdf", b"x" * 17)],
        )

    assert small_db.maintenance.read() == []
    assert [path for path in small_db.attachments.base_dir.iterdir()] == []


def test_too_many_files_rejected(tmp_path, make_upload):
    small_db = build_database(tmp_path / "data", tmp_path / "uploads", max_upload_files=2)

    with pytest.raises(AttachmentRejected):
        maintenance_service.create_maintenance(
            small_db, maintenance_fields(), [make_upload(f"{index}.pdf") for index in range(3)]
        )


def test_failed_propagation_rolls_back_record_and_files(oscilloscope, make_upload, monkeypatch):
    monkeypatch.setattr(oscilloscope.equipment, "write", lambda records: False)

    with pytest.raises(StoreWriteError):
        maintenance_service.create_maintenance(oscilloscope, maintenance_fields(), [make_upload("a.pdf")])

    assert oscilloscope.maintenance.read() == []
    assert list(oscilloscope.attachments.base_dir.iterdir()) == []


def test_delete_removes_record_and_files(db, make_upload):
    created = maintenance_service.create_maintenance(db, maintenance_fields(), [make_upload("a.pdf")])
    filename = created["files"][0]["filename"]

    maintenance_service.delete_maintenance(db, created["id"])

    assert db.maintenance.read() == []
    assert not db.attachments.exists(filename)
    with pytest.raises(RecordNotFound):
        maintenance_service.delete_maintenance(db, created["id"])


def test_delete_keeps_file_still_referenced_elsewhere(db, make_upload):
    first = maintenance_service.create_maintenance(db, maintenance_fields(), [make_upload("a.pdf")])
    maintenance_service.create_maintenance(db, maintenance_fields(), [make_upload("b.pdf")])

    maintenance_service.delete_maintenance(db, first["id"])

    assert db.attachments.exists(first["files"][0]["filename"])


def test_delete_attachment_strips_references(db, make_upload):
    first = maintenance_service.create_maintenance(db, maintenance_fields(), [make_upload("a.pdf")])
    maintenance_service.create_maintenance(db, maintenance_fields(), [make_upload("b.pdf")])
    filename = first["files"][0]["filename"]

    removed = maintenance_service.delete_attachment(db, filename)

    assert removed == 2
    assert not db.attachments.exists(filename)
    assert all(record["files"] == [] for record in db.maintenance.read())


def test_delete_attachment_is_idempotent(db):
    assert maintenance_service.delete_attachment(db, "missing-file.pdf") == 0
    assert maintenance_service.delete_attachment(db, "missing-file.pdf") == 0
    assert not db.maintenance.exists()
