from fastapi import APIRouter, Request

from apps.backend.routes import deps
from apps.backend.routes.schemas import LogoUpdate, PunchCardStyleIn
from apps.backend.services.auth.authentication import authenticate, ensure_merchant_access
from apps.backend.utils.envelope import ok

router = APIRouter(prefix="/punch-card-styles", tags=["punch-card-styles"])


@router.get("/merchants/{merchant_id}/default")
async def get_merchant_default_style(merchant_id: str):
    return ok(await deps.style_service().get_merchant_default(merchant_id))


@router.post("/merchants/{merchant_id}/default")
async def save_merchant_default_style(request: Request, merchant_id: str, inb: PunchCardStyleIn):
    ensure_merchant_access(await authenticate(request), merchant_id)
    return ok(await deps.style_service().save_merchant_default(merchant_id, inb.model_dump(by_alias=True)))


@router.put("/merchants/{merchant_id}/default/logo")
async def update_merchant_logo(request: Request, merchant_id: str, inb: LogoUpdate):
    ensure_merchant_access(await authenticate(request), merchant_id)
    return ok(await deps.style_service().update_merchant_logo(merchant_id, inb.logo_url))


@router.get("/loyalty-programs/{program_id}/merchants/{merchant_id}")
async def get_program_style(program_id: str, merchant_id: str):
    return ok(await deps.style_service().get_program_style(merchant_id, program_id))


@router.post("/loyalty-programs/{program_id}/merchants/{merchant_id}")
async def create_program_style(request: Request, program_id: str, merchant_id: str, inb: PunchCardStyleIn):
    ensure_merchant_access(await authenticate(request), merchant_id)
    style = await deps.style_service().save_program_style(merchant_id, program_id, inb.model_dump(by_alias=True))
    return ok(style, status=201)


@router.put("/loyalty-programs/{program_id}/merchants/{merchant_id}")
async def update_program_style(request: Request, program_id: str, merchant_id: str, inb: PunchCardStyleIn):
    ensure_merchant_access(await authenticate(request), merchant_id)
    style = await deps.style_service().save_program_style(merchant_id, program_id, inb.model_dump(by_alias=True))
    return ok(style)
