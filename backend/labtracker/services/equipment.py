import logging
import math
import re
from datetime import datetime
from typing import Optional

from labtracker.core import config
from labtracker.core.clock import isoformat_utc, parse_calendar_date, utc_now
from labtracker.core.errors import DuplicateRecord, RecordNotFound, StoreWriteError
from labtracker.database.sequences import asset_sequence_name
from labtracker.database.session import LabDatabase

logger = logging.getLogger("uvicorn.error")

CATEGORY_CODES = {
    "Oscilloscope": "OSC",
    "Multimeter": "DMM",
    "Power Supply": "PSU",
    "Generator": "GEN",
    "Analyzer": "ANA",
    "Computer": "CPU",
    "Mechanical": "MEC",
    "Other": "OTH",
}
FALLBACK_CATEGORY_CODE = "OTH"

STATUS_OPERATIONAL = "Operational"
STATUS_MAINTENANCE_REQUIRED = "Maintenance Required"

EQUIPMENT_DEFAULTS = {
    "name": "",
    "model": "",
    "serial_number": "",
    "manufacturer": "",
    "category": "",
    "location": "",
    "purchase_date": "",
    "warranty_expiry": "",
    "cost": 0,
    "status": STATUS_OPERATIONAL,
    "last_maintenance": "",
    "next_maintenance": "",
}


def find_index(records: list[dict], asset_number: str) -> int:
    for index, record in enumerate(records):
        if record.get("asset_number") == asset_number:
            return index
    return -1


def attachment_filenames(maintenance: list[dict]) -> set[str]:
    return {
        attachment.get("filename")
        for record in maintenance
        for attachment in record.get("files") or []
        if attachment.get("filename")
    }


def days_until(next_maintenance: object, now: datetime) -> Optional[int]:
    due = parse_calendar_date(next_maintenance)
    if due is None:
        return None
    return math.ceil((due - now).total_seconds() / 86400)


def apply_derived_status(
    records: list[dict],
    now: datetime,
    window_days: int = config.MAINTENANCE_WINDOW_DAYS,
) -> list[dict]:
    """Flag operational equipment whose next maintenance falls inside the window.

    Mutates the records in place and returns the ones that changed.
    """
    changed = []
    stamp = isoformat_utc(now)
    for record in records:
        if record.get("status") != STATUS_OPERATIONAL or not record.get("next_maintenance"):
            continue
        remaining = days_until(record.get("next_maintenance"), now)
        if remaining is None or remaining > window_days:
            continue
        record["status"] = STATUS_MAINTENANCE_REQUIRED
        record["updated_at"] = stamp
        changed.append(record)
    return changed


def list_equipment(db: LabDatabase, now: Optional[datetime] = None) -> list[dict]:
    now = now or utc_now()
    with db.lock:
        result = db.equipment.read_result()
        if not result.ok:
            logger.error("Error reading equipment data: %s", result.error)
            return []
        records = result.records
        changed = apply_derived_status(records, now)
        if changed:
            logger.info(
                "Status set to %r for %s",
                STATUS_MAINTENANCE_REQUIRED,
                ", ".join(str(record.get("asset_number")) for record in changed),
            )
            if not db.equipment.write(records):
                logger.error("Derived status changes for %d equipment were not persisted", len(changed))
        return records


def get_equipment(db: LabDatabase, asset_number: str, now: Optional[datetime] = None) -> dict:
    records = list_equipment(db, now=now)
    index = find_index(records, asset_number)
    if index == -1:
        raise RecordNotFound("Equipment not found")
    return records[index]


def create_equipment(db: LabDatabase, fields: dict) -> dict:
    asset_number = str(fields.get("asset_number") or "").strip()
    logger.info("Adding new equipment: %s (%s)", fields.get("name"), asset_number)
    with db.lock:
        records = db.load(db.equipment)
        if find_index(records, asset_number) != -1:
            raise DuplicateRecord(f"Equipment {asset_number} already exists")
        record = {**EQUIPMENT_DEFAULTS, **fields}
        record["asset_number"] = asset_number
        record["next_maintenance"] = fields.get("next_maintenance") or ""
        record["created_at"] = isoformat_utc(utc_now())
        records.append(record)
        db.save(db.equipment, records, "Failed to save equipment")
    return record


def update_equipment(db: LabDatabase, asset_number: str, fields: dict) -> dict:
    logger.info("Updating equipment: %s", asset_number)
    changes = {key: value for key, value in fields.items() if key not in {"asset_number", "created_at"}}
    with db.lock:
        records = db.load(db.equipment)
        index = find_index(records, asset_number)
        if index == -1:
            raise RecordNotFound("Equipment not found")
        records[index] = {
            **records[index],
            **changes,
            "updated_at": isoformat_utc(utc_now()),
        }
        db.save(db.equipment, records, "Failed to update equipment")
        return records[index]


def delete_equipment(db: LabDatabase, asset_number: str) -> int:
    """Delete equipment together with its maintenance records and their files.

    The maintenance collection is committed first; if the equipment write then
    fails the maintenance collection is restored before the error propagates.
    Attachment files go last so a failed commit never loses a blob.
    Returns the number of maintenance records removed.
    """
    logger.info("Deleting equipment: %s", asset_number)
    with db.lock:
        equipment = db.load(db.equipment)
        remaining_equipment = [record for record in equipment if record.get("asset_number") != asset_number]
        if len(remaining_equipment) == len(equipment):
            raise RecordNotFound("Equipment not found")

        maintenance = db.load(db.maintenance)
        dependent = [record for record in maintenance if record.get("equipment_asset") == asset_number]
        remaining_maintenance = [record for record in maintenance if record.get("equipment_asset") != asset_number]

        if dependent:
            db.save(db.maintenance, remaining_maintenance, "Failed to delete equipment")
        if not db.equipment.write(remaining_equipment):
            if dependent and not db.maintenance.write(maintenance):
                logger.error("Rollback of maintenance records for %s failed", asset_number)
            raise StoreWriteError("Failed to delete equipment")

        removed_files = db.attachments.delete_many(
            sorted(attachment_filenames(dependent) - attachment_filenames(remaining_maintenance))
        )
    logger.info(
        "Deleted equipment %s with %d maintenance records and %d files",
        asset_number,
        len(dependent),
        removed_files,
    )
    return len(dependent)


def category_code(category: Optional[str]) -> str:
    return CATEGORY_CODES.get(category or "", FALLBACK_CATEGORY_CODE)


def generate_asset_number(db: LabDatabase, category: Optional[str], now: Optional[datetime] = None) -> str:
    now = now or utc_now()
    prefix = f"LAB-{now.year}-{category_code(category)}"
    pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)$")
    logger.info("Generating asset number for: %s", category)
    with db.lock:
        equipment = db.equipment.read()
        in_category = sum(1 for record in equipment if record.get("category") == category)
        highest_used = 0
        for record in equipment:
            match = pattern.match(str(record.get("asset_number") or ""))
            if match:
                highest_used = max(highest_used, int(match.group(1)))
        sequence = db.sequences.next_value(
            asset_sequence_name(prefix),
            floor=1,
            observed=max(in_category, highest_used),
        )
    return f"{prefix}-{sequence:03d}"
