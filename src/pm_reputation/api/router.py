"""pm_reputation REST endpoints.

GET /users/{user_id}/reputation  — aggregate reputation for one user
GET /leaderboard                 — ranked by reputation score
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_reputation.application.schemas import UserReputationOut
from src.pm_reputation.application.service import ReputationApplicationService

router = APIRouter(tags=["reputation"])

_service = ReputationApplicationService()


def _parse_user_ids(raw: str | None) -> list[str] | None:
    """'a,b' -> ['a', 'b']; '' -> [] (filter that matches nobody); None -> no filter."""
    if raw is None:
        return None
    return [part.strip() for part in raw.split(",") if part.strip()]


@router.get("/users/{user_id}/reputation")
async def get_user_reputation(
    user_id: str,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    reputation = await _service.reputation_for(db, user_id)
    return success_response(
        UserReputationOut.from_domain(reputation).model_dump(),
        getattr(request.state, "request_id", None),
    )


@router.get("/leaderboard")
async def get_leaderboard(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int | None = Query(None, description="Rows to return (clamped to 1..max)"),
    period: Literal["all", "week"] = Query("all", description="all | week (last 7 days)"),
    user_ids: str | None = Query(None, description="Comma-separated user ids to restrict to"),
) -> ApiResponse:
    result = await _service.leaderboard_page(db, limit, period, _parse_user_ids(user_ids))
    return success_response(result.model_dump(), getattr(request.state, "request_id", None))
