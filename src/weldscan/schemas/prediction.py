from pydantic import BaseModel, ConfigDict, Field, field_validator


class Prediction(BaseModel):
    """Single detected region returned by the inference service."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    bbox: tuple[float, float, float, float]  # x1, y1, x2, y2 in original pixels
    class_name: str = Field(alias="class")
    confidence: float


class PredictionsResponse(BaseModel):
    """Body returned by the inference service (and relayed by the proxy)."""
    predictions: list[Prediction] = []

    @field_validator("predictions", mode="before")
    @classmethod
    def _null_as_empty(cls, value):
        return [] if value is None else value


class ErrorResponse(BaseModel):
    """Body returned by the proxy route on failure."""
    error: str
