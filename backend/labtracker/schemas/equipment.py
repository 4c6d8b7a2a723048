from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class EquipmentBase(BaseModel):
    name: str = ""
    model: str = ""
    serial_number: str = ""
    manufacturer: str = ""
    category: str = ""
    location: str = ""
    purchase_date: str = ""
    warranty_expiry: str = ""
    cost: float = Field(default=0, ge=0)
    status: str = Field(default="Operational")
    last_maintenance: str = ""
    next_maintenance: str = ""

    model_config = ConfigDict(extra="allow")


class EquipmentCreate(EquipmentBase):
    asset_number: str = Field(min_length=1, max_length=120)


class EquipmentUpdate(BaseModel):
    name: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    manufacturer: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    purchase_date: Optional[str] = None
    warranty_expiry: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    status: Optional[str] = None
    last_maintenance: Optional[str] = None
    next_maintenance: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class EquipmentOut(BaseModel):
    asset_number: Optional[str] = None
    name: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    manufacturer: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    purchase_date: Optional[str] = None
    warranty_expiry: Optional[str] = None
    cost: Union[float, str, None] = None
    status: Optional[str] = None
    last_maintenance: Optional[str] = None
    next_maintenance: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class AssetNumberRequest(BaseModel):
    category: Optional[str] = None


class AssetNumberOut(BaseModel):
    asset_number: str


class EquipmentStatusItem(BaseModel):
    asset_number: Optional[str] = None
    name: Optional[str] = None
    status: Optional[str] = None
    last_updated: str


class EquipmentStatusSummaryOut(BaseModel):
    total_equipment: int
    equipment_status: list[EquipmentStatusItem]
