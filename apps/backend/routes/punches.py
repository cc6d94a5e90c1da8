from fastapi import APIRouter, Request

from apps.backend.routes import deps
from apps.backend.routes.schemas import PunchCreate
from apps.backend.services.auth.authentication import authenticate, merchant_scope, require_merchant_user
from apps.backend.utils.envelope import ok

router = APIRouter(tags=["punches"])


@router.post("/punches")
async def create_punch(request: Request, inb: PunchCreate):
    auth = require_merchant_user(await authenticate(request))
    res = await deps.punch_service().record_punch(
        inb.user_id, inb.loyalty_program_id, merchant_id=merchant_scope(auth)
    )
    return ok(res, status=201)


@router.get("/punch-cards/{card_id}")
async def get_punch_card(card_id: str):
    return ok(await deps.punch_service().get_card(card_id))


@router.post("/punch-cards/{card_id}/redeem")
async def redeem_punch_card(request: Request, card_id: str):
    auth = require_merchant_user(await authenticate(request))
    return ok(await deps.punch_service().redeem(card_id, merchant_id=merchant_scope(auth)))
