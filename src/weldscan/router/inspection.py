"""Router – inspection station (upload, camera, results)."""

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.responses import FileResponse, Response

from src.weldscan.schemas.inspection import DisplaySize, InspectionView
from src.weldscan.services.camera_service import CameraNotActiveError
from src.weldscan.services.station import InspectionStation

router = APIRouter(prefix="/inspection", tags=["Inspection"])


def get_station(request: Request) -> InspectionStation:
    return request.app.state.station


@router.get("", response_model=InspectionView)
def get_view(station: InspectionStation = Depends(get_station)) -> InspectionView:
    """Current state of the station."""
    return station.view()


@router.post("/upload", response_model=InspectionView)
async def upload_image(
    file: UploadFile = File(...),
    station: InspectionStation = Depends(get_station),
) -> InspectionView:
    """
    Replace the current image and analyze it.

    The previous image is released before the new one is analyzed;
    the response carries the predictions or the error message.
    """
    content = await file.read()
    try:
        return await station.upload(
            content,
            file.filename or "upload",
            file.content_type or "application/octet-stream",
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/dimensions", response_model=InspectionView)
def set_dimensions(
    body: DisplaySize,
    station: InspectionStation = Depends(get_station),
) -> InspectionView:
    """Record the displayed size of the current image (on load and on resize)."""
    return station.set_display_size(body.width, body.height)


@router.post("/camera/start", response_model=InspectionView)
async def start_camera(
    request: Request,
    station: InspectionStation = Depends(get_station),
) -> InspectionView:
    return await station.start_camera(request.headers.get("user-agent"))


@router.post("/camera/switch", response_model=InspectionView)
async def switch_camera(station: InspectionStation = Depends(get_station)) -> InspectionView:
    if not station.camera.active:
        raise HTTPException(status_code=409, detail="Camera is not active")
    return await station.switch_camera()


@router.post("/camera/capture", response_model=InspectionView)
async def capture_photo(station: InspectionStation = Depends(get_station)) -> InspectionView:
    try:
        return await station.capture()
    except CameraNotActiveError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.post("/camera/stop", response_model=InspectionView)
def stop_camera(station: InspectionStation = Depends(get_station)) -> InspectionView:
    return station.stop_camera()


@router.get("/images/{image_id}")
def get_image(image_id: str, station: InspectionStation = Depends(get_station)) -> FileResponse:
    stored = station.images.get(image_id)
    if stored is None:
        raise HTTPException(status_code=404, detail=f"Image '{image_id}' not found")
    return FileResponse(stored.path, media_type=stored.ref.media_type)


@router.get("/overlay")
def get_overlay(station: InspectionStation = Depends(get_station)) -> Response:
    """Current image with prediction boxes drawn on it (PNG)."""
    png = station.overlay_png()
    if png is None:
        raise HTTPException(status_code=404, detail="Overlay not available")
    return Response(content=png, media_type="image/png")
