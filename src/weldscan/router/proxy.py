"""Router – pass-through to the inference service."""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from src.weldscan.schemas.prediction import ErrorResponse
from src.weldscan.services.upstream_service import forward_to_upstream

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Proxy"])


@router.post(
    "/api/model",
    responses={500: {"model": ErrorResponse}},
)
async def proxy_model(request: Request) -> JSONResponse:
    """
    Relay a multipart image upload to the inference service.

    The request body is forwarded byte-for-byte. A non-success upstream
    status is returned as ``{"error": ...}`` with the same status code;
    anything that goes wrong while forwarding becomes a 500.
    """
    try:
        body = await request.body()
        response = await forward_to_upstream(body, request.headers.get("content-type"))

        if not response.is_success:
            return JSONResponse(
                status_code=response.status_code,
                content={"error": f"API responded with status: {response.status_code}"},
            )

        return JSONResponse(content=response.json())

    except Exception as exc:
        logger.exception("Error in proxy route")
        return JSONResponse(
            status_code=500,
            content={"error": str(exc) or "Internal server error"},
        )
