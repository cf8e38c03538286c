"""pm_settlement REST endpoint.

POST /predictions/{prediction_id}/settle — run settlement (predictions:settle capability)

A 503 with data.retriable=true means the price feed was unavailable and the
prediction is still open; the caller may retry later.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.enums import Capability
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import Principal, require_capability
from src.pm_settlement.application.service import SettlementApplicationService

router = APIRouter(tags=["settlement"])

_service = SettlementApplicationService()


@router.post("/predictions/{prediction_id}/settle")
async def settle_prediction(
    prediction_id: int,
    request: Request,
    principal: Annotated[
        Principal, Depends(require_capability(Capability.SETTLE_PREDICTIONS))
    ],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.settle(db, prediction_id)
    return success_response(result.model_dump(), getattr(request.state, "request_id", None))
