from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from src.weldscan.schemas.prediction import Prediction

FacingMode = Literal["user", "environment"]


class ImageDimensions(BaseModel):
    """Displayed and natural size of the current image."""
    model_config = ConfigDict(populate_by_name=True)

    width: float
    height: float
    natural_width: int = Field(alias="naturalWidth")
    natural_height: int = Field(alias="naturalHeight")


class DisplaySize(BaseModel):
    """Body schema for POST /inspection/dimensions."""
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class OverlayBox(BaseModel):
    """One prediction positioned in displayed pixels."""
    left: float
    top: float
    width: float
    height: float
    label: str
    color: str


class ResultRow(BaseModel):
    """One entry of the results list."""
    label: str
    confidence: str
    tone: Literal["defect", "ok"]
    color: str


class CameraState(BaseModel):
    active: bool
    facing_mode: FacingMode
    active_tracks: int


class ImageRef(BaseModel):
    """Temporary stored image."""
    id: str
    url: str
    filename: str
    media_type: str


class InspectionView(BaseModel):
    """Response schema for every /inspection endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    image: ImageRef | None = None
    predictions: list[Prediction] = []
    dimensions: ImageDimensions | None = None
    verdict: str | None = None
    summary: str | None = None
    results: list[ResultRow] = []
    overlay: list[OverlayBox] | None = None
    loading: bool = False
    scanning: bool = False
    error: str | None = None
    camera: CameraState
