from fastapi import APIRouter, Depends

from labtracker.core.config import PORT
from labtracker.database.deps import get_db
from labtracker.database.session import LabDatabase
from labtracker.schemas.common import ServerInfoOut
from labtracker.schemas.equipment import AssetNumberOut, AssetNumberRequest, EquipmentStatusSummaryOut
from labtracker.schemas.maintenance import MaintenanceFilesSummaryOut
from labtracker.services import diagnostics
from labtracker.services.equipment import generate_asset_number

router = APIRouter(prefix="/api", tags=["Utility"])


@router.post("/generate-asset-number", response_model=AssetNumberOut)
def create_asset_number(payload: AssetNumberRequest, db: LabDatabase = Depends(get_db)):
    return AssetNumberOut(asset_number=generate_asset_number(db, payload.category))


@router.get("/server-info", response_model=ServerInfoOut)
def read_server_info():
    return diagnostics.server_info(PORT)


@router.get("/debug/equipment-status", response_model=EquipmentStatusSummaryOut)
def debug_equipment_status(db: LabDatabase = Depends(get_db)):
    return diagnostics.equipment_status_summary(db)


@router.get("/debug/maintenance-files", response_model=MaintenanceFilesSummaryOut)
def debug_maintenance_files(db: LabDatabase = Depends(get_db)):
    return diagnostics.maintenance_files_summary(db)
