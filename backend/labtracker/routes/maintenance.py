from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from labtracker.core.errors import RecordNotFound
from labtracker.database.deps import get_db
from labtracker.database.session import LabDatabase
from labtracker.schemas.common import SuccessOut
from labtracker.schemas.maintenance import MaintenanceOut
from labtracker.services import maintenance as maintenance_service

router = APIRouter(prefix="/api/maintenance", tags=["Maintenance"])


@router.get("", response_model=list[MaintenanceOut])
def list_maintenance(db: LabDatabase = Depends(get_db)):
    return maintenance_service.list_maintenance(db)


@router.get("/files/{filename}")
def download_file(filename: str, db: LabDatabase = Depends(get_db)):
    file_path = db.attachments.path_for(filename)
    if file_path is None:
        raise RecordNotFound("File not found")
    return FileResponse(file_path)


@router.delete("/files/{filename}", response_model=SuccessOut)
def delete_file(filename: str, db: LabDatabase = Depends(get_db)):
    maintenance_service.delete_attachment(db, filename)
    return SuccessOut(message="File deleted")


@router.get("/{maintenance_id}", response_model=MaintenanceOut)
def read_maintenance(maintenance_id: int, db: LabDatabase = Depends(get_db)):
    return maintenance_service.get_maintenance(db, maintenance_id)


@router.post("", response_model=MaintenanceOut)
def create_maintenance(
    equipment_asset: str = Form(...),
    maintenance_type: str = Form(..., alias="type"),
    date: str = Form(...),
    description: str = Form(""),
    technician: Optional[str] = Form(None),
    cost: Optional[str] = Form(None),
    next_due: Optional[str] = Form(None),
    equipment_status: Optional[str] = Form(None),
    files: Optional[list[UploadFile]] = File(None),
    db: LabDatabase = Depends(get_db),
):
    fields = {
        "equipment_asset": equipment_asset,
        "type": maintenance_type,
        "date": date,
        "description": description,
        "technician": technician,
        "cost": cost,
        "next_due": next_due,
        "equipment_status": equipment_status,
    }
    return maintenance_service.create_maintenance(db, fields, files)


@router.put("/{maintenance_id}", response_model=MaintenanceOut)
def update_maintenance(
    maintenance_id: int,
    equipment_asset: Optional[str] = Form(None),
    maintenance_type: Optional[str] = Form(None, alias="type"),
    date: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    technician: Optional[str] = Form(None),
    cost: Optional[str] = Form(None),
    next_due: Optional[str] = Form(None),
    equipment_status: Optional[str] = Form(None),
    files: Optional[list[UploadFile]] = File(None),
    db: LabDatabase = Depends(get_db),
):
    fields = {
        "equipment_asset": equipment_asset,
        "type": maintenance_type,
        "date": date,
        "description": description,
        "technician": technician,
        "cost": cost,
        "next_due": next_due,
        "equipment_status": equipment_status,
    }
    return maintenance_service.update_maintenance(db, maintenance_id, fields, files)


@router.delete("/{maintenance_id}", response_model=SuccessOut)
def delete_maintenance(maintenance_id: int, db: LabDatabase = Depends(get_db)):
    maintenance_service.delete_maintenance(db, maintenance_id)
    return SuccessOut(message="Maintenance record deleted")
