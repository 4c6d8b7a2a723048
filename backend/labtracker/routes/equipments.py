from fastapi import APIRouter, Depends

from labtracker.database.deps import get_db
from labtracker.database.session import LabDatabase
from labtracker.schemas.common import SuccessOut
from labtracker.schemas.equipment import EquipmentCreate, EquipmentOut, EquipmentUpdate
from labtracker.services import equipment as equipment_service

router = APIRouter(prefix="/api/equipment", tags=["Equipment"])


def payload_data(payload, exclude_unset: bool = False) -> dict:
    if hasattr(payload, "model_dump"):
        return payload.model_dump(exclude_unset=exclude_unset)
    return payload.dict(exclude_unset=exclude_unset)


@router.get("", response_model=list[EquipmentOut])
def list_equipment(db: LabDatabase = Depends(get_db)):
    return equipment_service.list_equipment(db)


@router.get("/{asset_number}", response_model=EquipmentOut)
def read_equipment(asset_number: str, db: LabDatabase = Depends(get_db)):
    return equipment_service.get_equipment(db, asset_number)


@router.post("", response_model=EquipmentOut)
def create_equipment(payload: EquipmentCreate, db: LabDatabase = Depends(get_db)):
    return equipment_service.create_equipment(db, payload_data(payload))


@router.put("/{asset_number}", response_model=EquipmentOut)
def update_equipment(asset_number: str, payload: EquipmentUpdate, db: LabDatabase = Depends(get_db)):
    return equipment_service.update_equipment(db, asset_number, payload_data(payload, exclude_unset=True))


@router.delete("/{asset_number}", response_model=SuccessOut)
def delete_equipment(asset_number: str, db: LabDatabase = Depends(get_db)):
    equipment_service.delete_equipment(db, asset_number)
    return SuccessOut(message="Equipment and associated data deleted")
