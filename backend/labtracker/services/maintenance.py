import logging
import math
from typing import Iterable, Optional

from fastapi import UploadFile

from labtracker.core.clock import utc_now_iso
from labtracker.core.errors import LabTrackerError, RecordNotFound
from labtracker.database.sequences import MAINTENANCE_ID_SEQUENCE
from labtracker.database.session import LabDatabase
from labtracker.services.attachments import dedupe_by_filename
from labtracker.services.equipment import attachment_filenames, find_index as find_equipment_index

logger = logging.getLogger("uvicorn.error")

FIRST_MAINTENANCE_ID = 1001
RECORD_FIELDS = (
    "equipment_asset",
    "type",
    "date",
    "description",
    "technician",
    "cost",
    "next_due",
    "equipment_status",
)
OPTIONAL_TEXT_FIELDS = {"technician", "next_due", "equipment_status"}


def parse_cost(value: object) -> float:
    try:
        parsed = float(str(value).strip())
    except (TypeError, ValueError):
        return 0
    if math.isnan(parsed) or math.isinf(parsed):
        return 0
    return parsed


def normalize_fields(fields: dict, partial: bool = False) -> dict:
    """Coerce submitted form values; with ``partial`` unsubmitted (None) fields are left out."""
    result = {}
    for name in RECORD_FIELDS:
        value = fields.get(name)
        if value is None and partial:
            continue
        if name == "cost":
            result[name] = parse_cost(value) if value not in (None, "") else 0
        elif name in OPTIONAL_TEXT_FIELDS:
            result[name] = value or ""
        else:
            result[name] = value
    return result


def find_index(records: list[dict], record_id: int) -> int:
    for index, record in enumerate(records):
        if record.get("id") == record_id:
            return index
    return -1


def max_id(records: list[dict]) -> int:
    ids = [record.get("id") for record in records if isinstance(record.get("id"), int)]
    return max(ids, default=0)


def release_files(db: LabDatabase, files: Iterable[dict], still_referenced: set[str]) -> int:
    """Delete blobs no longer referenced by any maintenance record."""
    filenames = {attachment.get("filename") for attachment in files if attachment.get("filename")}
    return db.attachments.delete_many(sorted(filenames - still_referenced))


def clean_uploads(uploads: Optional[list[UploadFile]]) -> list[UploadFile]:
    # Browsers send an empty part when the file input is left blank.
    return [upload for upload in uploads or [] if upload is not None and upload.filename]


def save_uploads(
    db: LabDatabase,
    uploads: list[UploadFile],
    asset_hint: Optional[str],
    date_hint: Optional[str],
    protected: set[str],
) -> list[dict]:
    saved: list[dict] = []
    try:
        for upload in uploads:
            saved.append(db.attachments.save(upload, asset_hint, date_hint))
    except LabTrackerError:
        release_files(db, saved, protected)
        raise
    return saved


def propagate_to_equipment(db: LabDatabase, record: dict, submitted: Optional[dict] = None) -> bool:
    """Copy maintenance dates and status onto the referenced equipment.

    ``next_due`` and ``equipment_status`` come from ``submitted``, the fields
    sent with the current request (defaults to ``record``).
    Returns False when no equipment matches ``equipment_asset``.
    """
    submitted = record if submitted is None else submitted
    asset_number = record.get("equipment_asset")
    equipment = db.load(db.equipment)
    index = find_equipment_index(equipment, asset_number)
    if index == -1:
        logger.warning("No equipment %s to update from maintenance #%s", asset_number, record.get("id"))
        return False

    target = equipment[index]
    target["last_maintenance"] = record.get("date")
    if submitted.get("next_due"):
        target["next_maintenance"] = submitted["next_due"]
    new_status = submitted.get("equipment_status")
    if new_status and str(new_status).strip():
        logger.info("Status updated from %r to %r for %s", target.get("status"), new_status, asset_number)
        target["status"] = new_status
    target["updated_at"] = utc_now_iso()
    db.save(db.equipment, equipment, "Failed to update equipment from maintenance record")
    return True


def commit_with_propagation(
    db: LabDatabase,
    previous: list[dict],
    updated: list[dict],
    record: dict,
    message: str,
    submitted: Optional[dict] = None,
):
    db.save(db.maintenance, updated, message)
    try:
        propagate_to_equipment(db, record, submitted)
    except LabTrackerError:
        if not db.maintenance.write(previous):
            logger.error("Rollback of maintenance record #%s failed", record.get("id"))
        raise


def list_maintenance(db: LabDatabase) -> list[dict]:
    return db.maintenance.read()


def get_maintenance(db: LabDatabase, record_id: int) -> dict:
    records = db.maintenance.read()
    index = find_index(records, record_id)
    if index == -1:
        raise RecordNotFound("Maintenance record not found")
    return records[index]


def create_maintenance(db: LabDatabase, fields: dict, uploads: Optional[list[UploadFile]] = None) -> dict:
    uploads = clean_uploads(uploads)
    logger.info("Adding maintenance record for %s with %d files", fields.get("equipment_asset"), len(uploads))
    db.attachments.validate(uploads)
    with db.lock:
        maintenance = db.load(db.maintenance)
        protected = attachment_filenames(maintenance)
        saved = save_uploads(db, uploads, fields.get("equipment_asset"), fields.get("date"), protected)
        try:
            record_id = db.sequences.next_value(
                MAINTENANCE_ID_SEQUENCE,
                floor=FIRST_MAINTENANCE_ID,
                observed=max_id(maintenance),
            )
            record = {
                "id": record_id,
                **normalize_fields(fields),
                "files": dedupe_by_filename(saved),
                "created_at": utc_now_iso(),
            }
            commit_with_propagation(
                db, maintenance, maintenance + [record], record, "Failed to save maintenance record"
            )
        except LabTrackerError:
            release_files(db, saved, protected)
            raise
    logger.info("Maintenance record #%s added with %d files", record_id, len(record["files"]))
    return record


def update_maintenance(
    db: LabDatabase,
    record_id: int,
    fields: dict,
    uploads: Optional[list[UploadFile]] = None,
) -> dict:
    uploads = clean_uploads(uploads)
    logger.info("Updating maintenance record #%s", record_id)
    db.attachments.validate(uploads)
    with db.lock:
        maintenance = db.load(db.maintenance)
        index = find_index(maintenance, record_id)
        if index == -1:
            raise RecordNotFound("Maintenance record not found")

        current = maintenance[index]
        changes = normalize_fields(fields, partial=True)
        merged = {**current, **changes}
        protected = attachment_filenames(maintenance)
        saved = save_uploads(db, uploads, merged.get("equipment_asset"), merged.get("date"), protected)
        existing_files = list(current.get("files") or [])
        existing_names = {attachment.get("filename") for attachment in existing_files}
        new_files = [attachment for attachment in dedupe_by_filename(saved) if attachment["filename"] not in existing_names]
        merged["files"] = existing_files + new_files
        merged["updated_at"] = utc_now_iso()

        updated = list(maintenance)
        updated[index] = merged
        try:
            commit_with_propagation(
                db, maintenance, updated, merged, "Failed to update maintenance record", submitted=changes
            )
        except LabTrackerError:
            release_files(db, saved, protected)
            raise
    logger.info("Maintenance record #%s updated", record_id)
    return merged


def delete_maintenance(db: LabDatabase, record_id: int) -> dict:
    logger.info("Deleting maintenance record #%s", record_id)
    with db.lock:
        maintenance = db.load(db.maintenance)
        index = find_index(maintenance, record_id)
        if index == -1:
            raise RecordNotFound("Maintenance record not found")
        record = maintenance.pop(index)
        db.save(db.maintenance, maintenance, "Failed to delete maintenance record")
        release_files(db, record.get("files") or [], attachment_filenames(maintenance))
    logger.info("Maintenance record #%s deleted", record_id)
    return record


def delete_attachment(db: LabDatabase, filename: str) -> int:
    """Remove a file and every reference to it. Missing files are not an error.

    Returns the number of references stripped.
    """
    logger.info("Deleting file: %s", filename)
    with db.lock:
        db.attachments.delete(filename)
        result = db.maintenance.read_result()
        if not result.ok:
            logger.error("Maintenance data unreadable, references to %s kept: %s", filename, result.error)
            return 0
        maintenance = result.records
        removed = 0
        for record in maintenance:
            files = record.get("files") or []
            kept = [attachment for attachment in files if attachment.get("filename") != filename]
            if len(kept) < len(files):
                removed += len(files) - len(kept)
                record["files"] = kept
        if removed:
            db.save(db.maintenance, maintenance, "Failed to update maintenance records")
    return removed
