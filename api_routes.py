# flock_monitor/api_routes.py
"""API route handlers"""
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from datetime import datetime
import logging

from config import monitor_config
from exceptions import FileValidationError
from refresh_controller import RefreshController
from services import build_line_view
from utils import SHIFT_CHANGE_SLOT, SHIFT_LABELS

logger = logging.getLogger(__name__)
router = APIRouter()


class AutoRefreshRequest(BaseModel):
    """Body for switching auto-refresh on or off"""
    enabled: bool


def get_controller(request: Request) -> RefreshController:
    return request.app.state.controller


def _state_payload(controller: RefreshController) -> dict:
    return {
        "state": controller.state.to_dict(),
        "refresh_interval_seconds": controller.refresh_interval
    }


@router.post("/api/upload", response_class=JSONResponse)
async def upload_file(
    file: UploadFile = File(...),
    controller: RefreshController = Depends(get_controller)
):
    """Cache an uploaded workbook, decode it and start auto-refresh"""
    # One byte past the limit is enough for validation to reject the upload
    content = await file.read(monitor_config.max_upload_bytes + 1)
    try:
        published = await controller.upload(file.filename, content, file.content_type)
    except FileValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not published:
        logger.error(f"Upload of {file.filename} could not be processed: {controller.state.error}")
        raise HTTPException(status_code=422, detail=controller.state.error or "Failed to process file")

    return {
        **_state_payload(controller),
        "dashboard": controller.snapshot.to_dict()
    }


@router.delete("/api/upload", response_class=JSONResponse)
async def clear_upload(controller: RefreshController = Depends(get_controller)):
    """Forget the cached file and stop auto-refresh"""
    controller.teardown()
    return _state_payload(controller)


@router.post("/api/refresh", response_class=JSONResponse)
async def manual_refresh(controller: RefreshController = Depends(get_controller)):
    """Re-read the cached file now; ignored while a refresh is running"""
    refreshed = await controller.refresh()
    return {"refreshed": refreshed, **_state_payload(controller)}


@router.post("/api/auto-refresh", response_class=JSONResponse)
async def set_auto_refresh(
    body: AutoRefreshRequest,
    controller: RefreshController = Depends(get_controller)
):
    """Enable or disable the refresh timer"""
    if body.enabled:
        if not controller.enable_auto_refresh():
            raise HTTPException(status_code=409, detail="No file available. Please upload a file.")
    else:
        controller.disable_auto_refresh()
    return _state_payload(controller)


@router.post("/api/auto-refresh/toggle", response_class=JSONResponse)
async def toggle_auto_refresh(controller: RefreshController = Depends(get_controller)):
    controller.toggle_auto_refresh()
    return _state_payload(controller)


@router.get("/api/state", response_class=JSONResponse)
async def get_state(controller: RefreshController = Depends(get_controller)):
    return _state_payload(controller)


@router.get("/api/dashboard", response_class=JSONResponse)
async def get_dashboard(controller: RefreshController = Depends(get_controller)):
    """Current status, graphs and totals for every displayed line"""
    snapshot = controller.snapshot
    if snapshot is None:
        # Nothing decoded yet: placeholder status and an empty grid per line
        lines = {line_id: build_line_view(line_id, []).to_dict() for line_id in controller.display_lines}
        dashboard = {"lines": lines, "aggregates": None, "refreshed_at": None, "record_count": 0}
    else:
        dashboard = snapshot.to_dict()

    return {
        **_state_payload(controller),
        "dashboard": dashboard,
        "shift_change": SHIFT_CHANGE_SLOT,
        "shift_labels": SHIFT_LABELS,
        "server_time": datetime.now().isoformat()
    }


@router.get("/api/lines/{line_id}", response_class=JSONResponse)
async def get_line(line_id: str, controller: RefreshController = Depends(get_controller)):
    """Status and 36-slot graph for one line"""
    if line_id not in controller.display_lines:
        raise HTTPException(status_code=404, detail=f"Line {line_id} is not displayed")

    snapshot = controller.snapshot
    view = snapshot.lines[line_id] if snapshot else build_line_view(line_id, [])
    return {
        **view.to_dict(),
        "shift_change": SHIFT_CHANGE_SLOT,
        "placeholder": view.record_count == 0
    }


@router.get("/api/records", response_class=JSONResponse)
async def get_records(controller: RefreshController = Depends(get_controller)):
    """Normalized rows of the last decoded file"""
    snapshot = controller.snapshot
    if snapshot is None:
        return {"count": 0, "records": []}
    return {
        "count": len(snapshot.records),
        "records": [record.to_dict() for record in snapshot.records]
    }


@router.get("/health")
async def health_check(controller: RefreshController = Depends(get_controller)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "controller": controller.state.status.value
    }
