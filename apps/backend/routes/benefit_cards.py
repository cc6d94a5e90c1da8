from fastapi import APIRouter, Request

from apps.backend.routes import deps
from apps.backend.routes.schemas import BenefitCardCreate
from apps.backend.services.auth.authentication import (
    acting_merchant_id,
    authenticate,
    merchant_scope,
    require_merchant_user,
)
from apps.backend.utils.envelope import ok

router = APIRouter(prefix="/benefit-cards", tags=["benefit-cards"])


@router.post("")
async def create_benefit_card(request: Request, inb: BenefitCardCreate):
    auth = require_merchant_user(await authenticate(request))
    merchant_id = acting_merchant_id(auth, inb.merchant_id)
    card = await deps.benefit_card_service().create_card(
        inb.user_id, merchant_id, inb.item_name, expires_at=inb.expires_at
    )
    return ok(card, status=201)


@router.get("/{card_id}")
async def get_benefit_card(request: Request, card_id: str):
    auth = require_merchant_user(await authenticate(request))
    return ok(await deps.benefit_card_service().get_card(card_id, merchant_id=merchant_scope(auth)))
