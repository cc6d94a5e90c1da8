from fastapi import APIRouter

from apps.backend.routes import deps
from apps.backend.utils.envelope import ok

# Customer app reads. Customers have no login: the device-generated user id
# is the only key to these collections.
router = APIRouter(prefix="/users/{user_id}", tags=["users"])


@router.get("/punch-cards")
async def user_punch_cards(user_id: str):
    return ok(await deps.punch_service().list_user_cards(user_id))


@router.get("/bundles")
async def user_bundles(user_id: str):
    return ok(await deps.bundle_service().list_user_bundles(user_id))


@router.get("/benefit-cards")
async def user_benefit_cards(user_id: str):
    return ok(await deps.benefit_card_service().list_user_cards(user_id))
