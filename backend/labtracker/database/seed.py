import logging

from labtracker.database.session import LabDatabase

logger = logging.getLogger("uvicorn.error")

SAMPLE_EQUIPMENT = [
    {
        "asset_number": "LAB-2025-OSC-001",
        "name": "Digital Oscilloscope",
        "model": "DS1054Z",
        "serial_number": "DS1ZA123456789",
        "manufacturer": "Rigol",
        "category": "Oscilloscope",
        "location": "Test Bench 1",
        "purchase_date": "2024-06-15",
        "warranty_expiry": "2027-06-15",
        "cost": 2500,
        "status": "Operational",
        "last_maintenance": "2024-12-01",
        "next_maintenance": "2025-06-01",
    },
    {
        "asset_number": "LAB-2025-DMM-001",
        "name": "Digital Multimeter",
        "model": "34465A",
        "serial_number": "MY54123456",
        "manufacturer": "Keysight",
        "category": "Multimeter",
        "location": "Test Bench 2",
        "purchase_date": "2024-03-10",
        "warranty_expiry": "2027-03-10",
        "cost": 1800,
        "status": "Calibration Due",
        "last_maintenance": "2024-09-10",
        "next_maintenance": "2025-03-10",
    },
    {
        "asset_number": "LAB-2025-PSU-001",
        "name": "Power Supply",
        "model": "E3634A",
        "serial_number": "US44123456",
        "manufacturer": "Keysight",
        "category": "Power Supply",
        "location": "Test Bench 1",
        "purchase_date": "2024-01-20",
        "warranty_expiry": "2027-01-20",
        "cost": 3200,
        "status": "Operational",
        "last_maintenance": "2024-11-15",
        "next_maintenance": "2025-05-15",
    },
]

SAMPLE_MAINTENANCE = [
    {
        "id": 1001,
        "equipment_asset": "LAB-2025-OSC-001",
        "type": "Calibration",
        "date": "2024-12-01",
        "description": "Annual calibration performed. All channels within specifications.",
        "technician": "John Smith",
        "cost": 150,
        "next_due": "2025-06-01",
        "equipment_status": "Operational",
        "files": [],
        "created_at": "2024-12-01T10:00:00.000Z",
    }
]


def ensure_directories(db: LabDatabase) -> None:
    db.equipment.path.parent.mkdir(parents=True, exist_ok=True)
    db.maintenance.path.parent.mkdir(parents=True, exist_ok=True)
    db.attachments.ensure_dir()


def seed_equipment(db: LabDatabase) -> bool:
    if db.equipment.exists():
        return False
    db.save(db.equipment, [dict(record) for record in SAMPLE_EQUIPMENT])
    logger.info("Created sample equipment data")
    return True


def seed_maintenance(db: LabDatabase) -> bool:
    if db.maintenance.exists():
        return False
    db.save(db.maintenance, [dict(record, files=[]) for record in SAMPLE_MAINTENANCE])
    logger.info("Created sample maintenance data")
    return True
