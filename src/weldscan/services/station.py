"""Service layer – the inspection station.

The station ties together the temporary image store, the camera session
and the analysis session, and produces the ``InspectionView`` the page
renders. One station instance lives for the lifetime of the application
and is closed at shutdown, which stops the camera and releases every
stored image.
"""

from __future__ import annotations

import logging

from src.weldscan.config import CAMERA_ERROR_MESSAGE, CAPTURE_FILENAME, settings
from src.weldscan.schemas.inspection import InspectionView
from src.weldscan.services.analysis_service import AnalysisSession
from src.weldscan.services.camera_service import (
    CameraSession,
    CameraSwitchError,
    CameraUnavailableError,
    is_mobile_user_agent,
)
from src.weldscan.services.image_store import StoredImage, TemporaryImageStore
from src.weldscan.services.render_service import (
    overall_verdict,
    overlay_boxes,
    render_overlay_png,
    result_rows,
    verdict_summary,
)

logger = logging.getLogger(__name__)


class InspectionStation:
    def __init__(
        self,
        images: TemporaryImageStore,
        camera: CameraSession,
        analysis: AnalysisSession,
        overlay_enabled: bool | None = None,
        defect_marker: str | None = None,
    ) -> None:
        self.images = images
        self.camera = camera
        self.analysis = analysis
        self.overlay_enabled = settings.overlay_enabled if overlay_enabled is None else overlay_enabled
        self.defect_marker = settings.defect_marker if defect_marker is None else defect_marker
        self.current: StoredImage | None = None

    # ── image input ──
    async def upload(self, content: bytes, filename: str, media_type: str) -> InspectionView:
        """Replace the current image with *content* and analyze it."""
        stored = self.images.create(content, filename, media_type)
        if self.current is not None:
            self.images.release(self.current.ref.id)
        self.current = stored
        logger.info("Analyzing %s (%s)", filename, stored.ref.id)
        await self.analysis.analyze(stored)
        return self.view()

    async def start_camera(self, user_agent: str | None = None) -> InspectionView:
        try:
            await self.camera.start(prefer_rear=is_mobile_user_agent(user_agent))
        except CameraUnavailableError:
            self.analysis.fail(CAMERA_ERROR_MESSAGE)
        return self.view()

    async def switch_camera(self) -> InspectionView:
        try:
            await self.camera.switch()
        except CameraSwitchError as exc:
            self.analysis.fail(str(exc))
        return self.view()

    async def capture(self) -> InspectionView:
        """Snapshot the camera, close it and analyze the still."""
        try:
            jpeg = await self.camera.capture()
        except CameraUnavailableError:
            logger.error("Capture failed", exc_info=True)
            self.analysis.fail(CAMERA_ERROR_MESSAGE)
            return self.view()
        return await self.upload(jpeg, CAPTURE_FILENAME, "image/jpeg")

    def stop_camera(self) -> InspectionView:
        self.camera.stop()
        return self.view()

    # ── rendering ──
    def set_display_size(self, width: float, height: float) -> InspectionView:
        if self.current is not None:
            self.analysis.set_display_size(width, height, self.current)
        return self.view()

    def view(self) -> InspectionView:
        predictions = self.analysis.predictions
        verdict = overall_verdict(predictions, self.defect_marker)
        return InspectionView(
            image=self.current.ref if self.current is not None else None,
            predictions=predictions,
            dimensions=self.analysis.dimensions,
            verdict=verdict,
            summary=verdict_summary(verdict),
            results=result_rows(predictions, self.defect_marker),
            overlay=(
                overlay_boxes(predictions, self.analysis.dimensions, self.defect_marker)
                if self.overlay_enabled
                else None
            ),
            loading=self.analysis.loading,
            scanning=self.analysis.scanning,
            error=self.analysis.error,
            camera=self.camera.state(),
        )

    def overlay_png(self) -> bytes | None:
        if not self.overlay_enabled or self.current is None:
            return None
        return render_overlay_png(self.current.content, self.analysis.predictions, self.defect_marker)

    def close(self) -> None:
        """Release the camera and every stored image."""
        self.camera.stop()
        self.analysis.close()
        self.images.release_all()
        self.current = None
        logger.info("Inspection station closed.")
