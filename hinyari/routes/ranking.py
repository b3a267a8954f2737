"""
Temperature ranking endpoint.
"""
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from hinyari.dependencies import get_ranking_service, get_settings
from hinyari.exceptions import NoValidDataError, UpstreamFetchError
from hinyari.models.observation import ErrorResponse, RankingResponse, RankingType
from hinyari.services.ranking import RankingService
from hinyari.settings import Settings
from hinyari.utils.logger import get_logger

router = APIRouter()


def clamp_limit(limit: Optional[int], default: int, maximum: int) -> int:
    """Fall back to the default for missing or non-positive values, cap at maximum."""
    if limit is None or limit < 1:
        limit = default
    return min(limit, maximum)


def error_response(message: str, status_code: int) -> JSONResponse:
    body = ErrorResponse(error=message, timestamp=datetime.now(timezone.utc))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@router.get(
    "/temperature-ranking",
    response_model=RankingResponse,
    responses={
        502: {"model": ErrorResponse, "description": "Upstream observation source failed"},
        503: {"model": ErrorResponse, "description": "No valid temperature data"},
        500: {"model": ErrorResponse},
    },
    summary="Get temperature ranking",
    description="Rank AMeDAS stations by their latest temperature"
)
async def get_temperature_ranking(
    limit: Optional[int] = None,
    type: Optional[str] = None,
    service: RankingService = Depends(get_ranking_service),
    settings: Settings = Depends(get_settings)
):
    """
    Get the latest temperature ranking.

    Args:
        limit: Number of entries (default 10, clamped to the configured maximum)
        type: "hottest" or "coolest" (anything else ranks hottest first)

    Returns:
        RankingResponse, or the error envelope with 502/503/500
    """
    direction = RankingType.parse(type)
    limit = clamp_limit(limit, settings.ranking.default_limit, settings.ranking.max_limit)

    try:
        ranking = await service.get_temperature_ranking(limit=limit, direction=direction)
    except UpstreamFetchError as e:
        get_logger("hinyari.routes").error(f"Ranking upstream error: {e}")
        return error_response(str(e), status.HTTP_502_BAD_GATEWAY)
    except NoValidDataError as e:
        return error_response(str(e), status.HTTP_503_SERVICE_UNAVAILABLE)
    except Exception as e:
        get_logger("hinyari.routes").exception(f"Ranking failed: {e}")
        return error_response("不明なエラーが発生しました", status.HTTP_500_INTERNAL_SERVER_ERROR)

    return RankingResponse(
        data=ranking,
        timestamp=datetime.now(timezone.utc),
        type=direction,
        count=len(ranking)
    )
