from fastapi import APIRouter, Request

from apps.backend.routes import deps
from apps.backend.routes.schemas import MerchantUserCreate, MerchantUserUpdate
from apps.backend.services.auth.authentication import ROLE_ADMIN, authenticate, ensure_merchant_access
from apps.backend.utils.envelope import ok

router = APIRouter(prefix="/merchants/{merchant_id}/users", tags=["merchant-users"])

# merchant admins manage their own staff; super admins manage everyone
ADMIN_ONLY = [ROLE_ADMIN]


@router.get("")
async def list_merchant_users(request: Request, merchant_id: str):
    ensure_merchant_access(await authenticate(request), merchant_id, roles=ADMIN_ONLY)
    return ok(await deps.merchant_user_service().list_users(merchant_id))


@router.post("")
async def create_merchant_user(request: Request, merchant_id: str, inb: MerchantUserCreate):
    ensure_merchant_access(await authenticate(request), merchant_id, roles=ADMIN_ONLY)
    user = await deps.merchant_user_service().create_user(merchant_id, inb.login, inb.password, inb.role)
    return ok(user, status=201)


@router.get("/{user_id}")
async def get_merchant_user(request: Request, merchant_id: str, user_id: str):
    ensure_merchant_access(await authenticate(request), merchant_id, roles=ADMIN_ONLY)
    return ok(await deps.merchant_user_service().get_user(merchant_id, user_id))


@router.put("/{user_id}")
async def update_merchant_user(request: Request, merchant_id: str, user_id: str, inb: MerchantUserUpdate):
    ensure_merchant_access(await authenticate(request), merchant_id, roles=ADMIN_ONLY)
    user = await deps.merchant_user_service().update_user(
        merchant_id, user_id, **inb.model_dump(exclude_unset=True)
    )
    return ok(user)


@router.delete("/{user_id}")
async def delete_merchant_user(request: Request, merchant_id: str, user_id: str):
    ensure_merchant_access(await authenticate(request), merchant_id, roles=ADMIN_ONLY)
    return ok(await deps.merchant_user_service().delete_user(merchant_id, user_id))
