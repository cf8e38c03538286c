"""pm_prediction REST endpoints.

POST /predictions                        — create (authenticated creator)
GET  /predictions?status=&limit=         — newest first, optional status filter
GET  /predictions/{id}                   — detail with stake summary and creator reputation
POST /predictions/{id}/cancel            — open -> cancelled (predictions:settle capability)
GET  /users/{user_id}/predictions        — a creator's track record with outcomes
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.enums import Capability
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import (
    Principal,
    get_current_principal,
    require_capability,
)
from src.pm_prediction.application.schemas import CreatePredictionRequest
from src.pm_prediction.application.service import PredictionApplicationService

router = APIRouter(tags=["predictions"])

_service = PredictionApplicationService()

StatusFilter = Literal["open", "settled", "cancelled"]


@router.post("/predictions", status_code=201)
async def create_prediction(
    body: CreatePredictionRequest,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.create_prediction(db, principal.user_id, body)
    return success_response(result.model_dump(), getattr(request.state, "request_id", None))


@router.get("/predictions")
async def list_predictions(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: StatusFilter | None = None,
    limit: int | None = None,
) -> ApiResponse:
    result = await _service.list_predictions(db, status, limit)
    return success_response(result.model_dump(), getattr(request.state, "request_id", None))


@router.get("/predictions/{prediction_id}")
async def get_prediction(
    prediction_id: int,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_detail(db, prediction_id)
    return success_response(result.model_dump(), getattr(request.state, "request_id", None))


@router.post("/predictions/{prediction_id}/cancel")
async def cancel_prediction(
    prediction_id: int,
    request: Request,
    principal: Annotated[
        Principal, Depends(require_capability(Capability.SETTLE_PREDICTIONS))
    ],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.cancel(db, prediction_id)
    return success_response(result.model_dump(), getattr(request.state, "request_id", None))


@router.get("/users/{user_id}/predictions")
async def list_user_predictions(
    user_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: StatusFilter | None = None,
    limit: int | None = None,
) -> ApiResponse:
    result = await _service.list_for_creator(db, user_id, status, limit)
    return success_response(result.model_dump(), getattr(request.state, "request_id", None))
