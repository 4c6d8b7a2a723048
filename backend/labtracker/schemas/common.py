from pydantic import BaseModel, Field


class SuccessOut(BaseModel):
    success: bool = True
    message: str = ""


class ServerInfoOut(BaseModel):
    port: int
    addresses: list[str] = Field(default_factory=list)
    status: str = "online"
