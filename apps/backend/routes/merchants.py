from fastapi import APIRouter, Request

from apps.backend.routes import deps
from apps.backend.routes.schemas import FileUploadRequest, MerchantCreate, MerchantLogin, MerchantUpdate
from apps.backend.services.auth.auth_service import login_merchant_user
from apps.backend.services.auth.authentication import (
    ROLE_ADMIN,
    authenticate,
    ensure_merchant_access,
    require_super_admin,
)
from apps.backend.services.core_service import require_supabase
from apps.backend.services.merchant_users.merchant_user_repository import MerchantUserRepository
from apps.backend.services.merchants.merchant_repository import MerchantRepository
from apps.backend.utils.envelope import ok

router = APIRouter(prefix="/merchants", tags=["merchants"])


@router.post("/auth")
async def merchant_auth(inb: MerchantLogin):
    sb = require_supabase()
    res = await login_merchant_user(
        MerchantRepository(sb),
        MerchantUserRepository(sb),
        merchant_slug=inb.merchant_slug,
        login=inb.login,
        password=inb.password,
    )
    return ok(res)


@router.get("")
async def list_merchants(request: Request):
    require_super_admin(await authenticate(request))
    return ok(await deps.merchant_service().list_merchants())


@router.post("")
async def create_merchant(request: Request, inb: MerchantCreate):
    require_super_admin(await authenticate(request))
    merchant = await deps.merchant_service().create_merchant(
        name=inb.name,
        slug=inb.slug,
        address=inb.address,
        logo_url=inb.logo_url,
        login=inb.login,
        password=inb.password,
    )
    return ok(merchant, status=201)


@router.get("/slug/{slug}")
async def get_merchant_by_slug(slug: str):
    return ok(await deps.merchant_service().get_merchant_by_slug(slug))


@router.get("/{merchant_id}")
async def get_merchant(merchant_id: str):
    return ok(await deps.merchant_service().get_merchant(merchant_id))


@router.put("/{merchant_id}")
async def update_merchant(request: Request, merchant_id: str, inb: MerchantUpdate):
    ensure_merchant_access(await authenticate(request), merchant_id, roles=[ROLE_ADMIN])
    changes = inb.model_dump(exclude_unset=True)
    return ok(await deps.merchant_service().update_merchant(merchant_id, changes))


@router.delete("/{merchant_id}")
async def delete_merchant(request: Request, merchant_id: str):
    require_super_admin(await authenticate(request))
    return ok(await deps.merchant_service().delete_merchant(merchant_id))


@router.post("/{merchant_id}/file-upload-url")
async def file_upload_url(request: Request, merchant_id: str, inb: FileUploadRequest):
    ensure_merchant_access(await authenticate(request), merchant_id)
    return ok(await deps.file_upload_service().generate_upload_url(merchant_id, inb.file_name))
