"""
Pydantic models for the Docker volume plugin protocol.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class VolumeRequest(BaseModel):
    """Request body shared by the VolumeDriver.* endpoints."""

    Name: str = Field(..., description="Volume name", min_length=1)
    Opts: Optional[Dict[str, str]] = Field(None, description="Driver options")
    ID: Optional[str] = Field(None, description="Caller ID (mount/unmount only)")

    @property
    def options(self) -> Dict[str, str]:
        return self.Opts or {}


class ErrorResponse(BaseModel):
    """Plain acknowledgement; `Err` is empty on success."""

    Err: str = ""


class ActivateResponse(BaseModel):
    Implements: List[str]


class MountResponse(BaseModel):
    Mountpoint: str = ""
    Err: str = ""


class VolumeSummary(BaseModel):
    Name: str
    Mountpoint: str = ""
    Status: Optional[Dict[str, str]] = None


class GetResponse(BaseModel):
    Volume: Optional[VolumeSummary] = None
    Err: str = ""


class ListResponse(BaseModel):
    Volumes: List[VolumeSummary] = Field(default_factory=list)
    Err: str = ""


class CapabilitiesResponse(BaseModel):
    Capabilities: Dict[str, str]
