from typing import Optional

from fastapi import APIRouter, Query, Request

from apps.backend.routes import deps
from apps.backend.services.auth.authentication import authenticate, ensure_merchant_access
from apps.backend.utils.envelope import ok

router = APIRouter(prefix="/analytics/{merchant_id}", tags=["analytics"])


@router.get("/quick-overview")
async def quick_overview(request: Request, merchant_id: str):
    ensure_merchant_access(await authenticate(request), merchant_id)
    return ok(await deps.analytics_service().get_quick_overview(merchant_id))


@router.get("/users")
async def users_analytics(request: Request, merchant_id: str):
    ensure_merchant_access(await authenticate(request), merchant_id)
    return ok(await deps.analytics_service().get_users(merchant_id))


@router.get("/cards")
async def cards_analytics(request: Request, merchant_id: str):
    ensure_merchant_access(await authenticate(request), merchant_id)
    return ok(await deps.analytics_service().get_cards(merchant_id))


@router.get("/growth-trends")
async def growth_trends(
    request: Request, merchant_id: str, time_unit: str = Query("days", alias="timeUnit"),
    program_id: Optional[str] = Query(None, alias="programId"),
):
    ensure_merchant_access(await authenticate(request), merchant_id)
    return ok(await deps.analytics_service().get_growth_trends(merchant_id, time_unit, program_id))


@router.get("/activity-trends")
async def activity_trends(
    request: Request, merchant_id: str, time_unit: str = Query("days", alias="timeUnit"),
    program_id: Optional[str] = Query(None, alias="programId"),
):
    ensure_merchant_access(await authenticate(request), merchant_id)
    return ok(await deps.analytics_service().get_activity_trends(merchant_id, time_unit, program_id))


@router.get("/days-of-week")
async def days_of_week(request: Request, merchant_id: str, program_id: Optional[str] = Query(None, alias="programId")):
    ensure_merchant_access(await authenticate(request), merchant_id)
    return ok(await deps.analytics_service().get_days_of_week(merchant_id, program_id))


@router.get("/loyalty-programs")
async def loyalty_program_analytics(request: Request, merchant_id: str):
    ensure_merchant_access(await authenticate(request), merchant_id)
    return ok(await deps.analytics_service().get_loyalty_programs(merchant_id))
