import socket

import psutil

from labtracker.database.session import LabDatabase


def lan_ipv4_addresses() -> list[str]:
    addresses: list[str] = []
    for snics in psutil.net_if_addrs().values():
        for snic in snics:
            if snic.family != socket.AF_INET:
                continue
            if not snic.address or snic.address.startswith("127."):
                continue
            if snic.address not in addresses:
                addresses.append(snic.address)
    return addresses


def server_info(port: int) -> dict:
    return {
        "port": port,
        "addresses": lan_ipv4_addresses(),
        "status": "online",
    }


def equipment_status_summary(db: LabDatabase) -> dict:
    equipment = db.equipment.read()
    return {
        "total_equipment": len(equipment),
        "equipment_status": [
            {
                "asset_number": record.get("asset_number"),
                "name": record.get("name"),
                "status": record.get("status"),
                "last_updated": record.get("updated_at") or "Never",
            }
            for record in equipment
        ],
    }


def maintenance_files_summary(db: LabDatabase) -> dict:
    files = []
    for record in db.maintenance.read():
        for attachment in record.get("files") or []:
            filename = attachment.get("filename")
            files.append(
                {
                    "maintenance_id": record.get("id"),
                    "filename": filename,
                    "original_name": attachment.get("originalname"),
                    "size": attachment.get("size"),
                    "exists": db.attachments.exists(filename),
                }
            )
    return {"total_files": len(files), "files": files}
