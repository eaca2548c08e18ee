"""
FastAPI application implementing the Docker volume plugin protocol.
"""

import logging
import uuid
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from quobyte_volumes.api.models import (
    ActivateResponse,
    CapabilitiesResponse,
    ErrorResponse,
    GetResponse,
    ListResponse,
    MountResponse,
    VolumeRequest,
)
from quobyte_volumes.driver.driver import QuobyteDriver, mount_point_option, reference_only_option
from quobyte_volumes.driver.exceptions import QuobyteDriverException

logger = logging.getLogger(__name__)


def get_driver(request: Request) -> QuobyteDriver:
    return request.app.state.driver


def create_app(driver: QuobyteDriver) -> FastAPI:
    """Build the plugin application around an initialized driver."""
    app = FastAPI(
        title="Quobyte Volume Plugin",
        description="Docker volume plugin for Quobyte volumes",
        version="0.1.0",
    )
    app.state.driver = driver

    @app.exception_handler(QuobyteDriverException)
    async def driver_exception_handler(request: Request, exc: QuobyteDriverException) -> JSONResponse:
        logger.warning("%s failed: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"Err": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        logger.warning("%s rejected malformed request: %s", request.url.path, errors)
        return JSONResponse(status_code=400, content={"Err": f"Invalid request: {errors}"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler."""
        request_id = str(uuid.uuid4())
        logger.exception("Unhandled error (request_id=%s, path=%s)", request_id, request.url.path)
        return JSONResponse(status_code=500, content={"Err": f"Internal error (request_id={request_id})"})

    @app.post("/Plugin.Activate", response_model=ActivateResponse)
    def activate() -> Dict[str, Any]:
        return {"Implements": ["VolumeDriver"]}

    @app.post("/VolumeDriver.Create", response_model=ErrorResponse)
    def create_volume(req: VolumeRequest, driver: QuobyteDriver = Depends(get_driver)) -> Dict[str, Any]:
        """
        Create a new volume.
        """
        driver.create_volume(req.Name)
        return {"Err": ""}

    @app.post("/VolumeDriver.Remove", response_model=ErrorResponse)
    def remove_volume(req: VolumeRequest, driver: QuobyteDriver = Depends(get_driver)) -> Dict[str, Any]:
        """
        Delete a volume. `reference-only` keeps the remote volume.
        """
        driver.delete_volume(req.Name, reference_only=reference_only_option(req.options))
        return {"Err": ""}

    @app.post("/VolumeDriver.Mount", response_model=MountResponse)
    def mount_volume(req: VolumeRequest, driver: QuobyteDriver = Depends(get_driver)) -> Dict[str, Any]:
        mount_point = driver.mount_volume(req.Name, mount_point_option(req.options))
        return {"Mountpoint": mount_point, "Err": ""}

    @app.post("/VolumeDriver.Unmount", response_model=ErrorResponse)
    def unmount_volume(req: VolumeRequest, driver: QuobyteDriver = Depends(get_driver)) -> Dict[str, Any]:
        driver.unmount_volume(req.Name)
        return {"Err": ""}

    @app.post("/VolumeDriver.Path", response_model=MountResponse)
    def volume_path(req: VolumeRequest, driver: QuobyteDriver = Depends(get_driver)) -> Dict[str, Any]:
        return {"Mountpoint": driver.mount_point(req.Name), "Err": ""}

    @app.post("/VolumeDriver.Get", response_model=GetResponse)
    def get_volume(req: VolumeRequest, driver: QuobyteDriver = Depends(get_driver)) -> Dict[str, Any]:
        info = driver.get_volume_info(req.Name)
        return {
            "Volume": {"Name": req.Name, "Mountpoint": info["MountPoint"], "Status": info},
            "Err": "",
        }

    @app.post("/VolumeDriver.List", response_model=ListResponse)
    def list_volumes(driver: QuobyteDriver = Depends(get_driver)) -> Dict[str, Any]:
        volumes = driver.list_volumes()
        return {
            "Volumes": [{"Name": name, "Mountpoint": info["MountPoint"]} for name, info in volumes.items()],
            "Err": "",
        }

    @app.post("/VolumeDriver.Capabilities", response_model=CapabilitiesResponse)
    def capabilities() -> Dict[str, Any]:
        return {"Capabilities": {"Scope": "local"}}

    return app
