"""
Health and status schemas.

The health endpoint is polled by the hosting platform right after the process
starts, so it reports the store connection state instead of failing while the
store is still connecting.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .availability import AvailabilityCounts


class ConnectionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str
    connected: bool
    retry_count: int = Field(0, alias="retryCount")
    last_error: Optional[str] = Field(None, alias="lastError")
    last_checked: Optional[str] = Field(None, alias="lastChecked")


class HealthOut(BaseModel):
    status: str
    service: str
    version: str
    environment: str
    storage: str
    connected: bool
    connection: ConnectionOut
    data: AvailabilityCounts
    timestamp: str


class AdminStatusOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    admin_enabled: bool = Field(..., alias="adminEnabled")
    storage: str
    connected: bool
    data: AvailabilityCounts
    timestamp: str
    message: str
