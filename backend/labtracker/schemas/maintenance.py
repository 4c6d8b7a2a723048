from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class AttachmentOut(BaseModel):
    filename: str
    originalname: Optional[str] = None
    mimetype: Optional[str] = None
    size: Optional[int] = None
    path: Optional[str] = None


class MaintenanceOut(BaseModel):
    id: int
    equipment_asset: Optional[str] = None
    type: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None
    technician: str = ""
    cost: Union[float, str, None] = 0
    next_due: str = ""
    equipment_status: str = ""
    files: list[AttachmentOut] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class MaintenanceFileItem(BaseModel):
    maintenance_id: Optional[int] = None
    filename: Optional[str] = None
    original_name: Optional[str] = None
    size: Optional[int] = None
    exists: bool


class MaintenanceFilesSummaryOut(BaseModel):
    total_files: int
    files: list[MaintenanceFileItem]
