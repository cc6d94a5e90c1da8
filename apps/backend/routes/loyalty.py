from fastapi import APIRouter, Request

from apps.backend.routes import deps
from apps.backend.routes.schemas import LoyaltyProgramCreate, LoyaltyProgramUpdate
from apps.backend.services.auth.authentication import ROLE_ADMIN, authenticate, ensure_merchant_access
from apps.backend.utils.envelope import ok

router = APIRouter(tags=["loyalty-programs"])


def _can_see_inactive(auth, merchant_id: str) -> bool:
    if auth is None:
        return False
    if auth.super_admin:
        return True
    return bool(auth.merchant_user and auth.merchant_user.merchant_id == str(merchant_id))


@router.get("/merchants/{merchant_id}/loyalty-programs")
async def list_loyalty_programs(request: Request, merchant_id: str):
    auth = await authenticate(request)
    programs = await deps.loyalty_service().list_merchant_programs(
        merchant_id, include_inactive=_can_see_inactive(auth, merchant_id)
    )
    return ok(programs)


@router.post("/merchants/{merchant_id}/loyalty-programs")
async def create_loyalty_program(request: Request, merchant_id: str, inb: LoyaltyProgramCreate):
    ensure_merchant_access(await authenticate(request), merchant_id, roles=[ROLE_ADMIN])
    program = await deps.loyalty_service().create_program(merchant_id, inb.model_dump())
    return ok(program, status=201)


@router.get("/merchants/{merchant_id}/loyalty-programs/{program_id}")
async def get_merchant_loyalty_program(merchant_id: str, program_id: str):
    return ok(await deps.loyalty_service().get_merchant_program(merchant_id, program_id))


@router.put("/merchants/{merchant_id}/loyalty-programs/{program_id}")
async def update_loyalty_program(request: Request, merchant_id: str, program_id: str, inb: LoyaltyProgramUpdate):
    ensure_merchant_access(await authenticate(request), merchant_id, roles=[ROLE_ADMIN])
    changes = inb.model_dump(exclude_unset=True)
    return ok(await deps.loyalty_service().update_program(merchant_id, program_id, changes))


@router.delete("/merchants/{merchant_id}/loyalty-programs/{program_id}")
async def delete_loyalty_program(request: Request, merchant_id: str, program_id: str):
    ensure_merchant_access(await authenticate(request), merchant_id, roles=[ROLE_ADMIN])
    return ok(await deps.loyalty_service().delete_program(merchant_id, program_id))


@router.get("/loyalty-programs/{program_id}")
async def get_loyalty_program(program_id: str):
    return ok(await deps.loyalty_service().get_program(program_id))
