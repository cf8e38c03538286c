"""pm_stake REST endpoints.

POST /predictions/{prediction_id}/stakes          — place a stake (pending, or completed for DEMO)
GET  /predictions/{prediction_id}/stakes/summary  — completed-stake totals + pool shares
POST /stakes/{stake_id}/payment                   — payment result (stakes:confirm capability)
GET  /stakes/{stake_id}/status                    — payment status of one stake
"""

from typing import Annotated

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
from src.pm_stake.application.schemas import CreateStakeRequest, PaymentStatusRequest
from src.pm_stake.application.service import StakeApplicationService

router = APIRouter(tags=["stakes"])

_service = StakeApplicationService()


@router.post("/predictions/{prediction_id}/stakes", status_code=201)
async def create_stake(
    prediction_id: int,
    body: CreateStakeRequest,
    request: Request,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.record_stake(db, prediction_id, principal.user_id, body)
    return success_response(result.model_dump(), getattr(request.state, "request_id", None))


@router.get("/predictions/{prediction_id}/stakes/summary")
async def get_stake_summary(
    prediction_id: int,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.summarize(db, prediction_id)
    return success_response(result.model_dump(), getattr(request.state, "request_id", None))


@router.post("/stakes/{stake_id}/payment")
async def update_payment_status(
    stake_id: int,
    body: PaymentStatusRequest,
    request: Request,
    principal: Annotated[
        Principal, Depends(require_capability(Capability.CONFIRM_STAKES))
    ],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.mark_payment(db, stake_id, body.status)
    return success_response(result.model_dump(), getattr(request.state, "request_id", None))


@router.get("/stakes/{stake_id}/status")
async def get_stake_status(
    stake_id: int,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.get_stake(db, stake_id)
    return success_response(result.model_dump(), getattr(request.state, "request_id", None))
