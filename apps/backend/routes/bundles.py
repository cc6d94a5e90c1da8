from fastapi import APIRouter, Request

from apps.backend.routes import deps
from apps.backend.routes.schemas import (
    BundleCreate,
    BundleProgramCreate,
    BundleProgramUpdate,
    BundleUpdate,
    BundleUse,
)
from apps.backend.services.auth.authentication import (
    acting_merchant_id,
    authenticate,
    ensure_merchant_access,
    merchant_scope,
    require_merchant_user,
)
from apps.backend.utils.envelope import ok

router = APIRouter(tags=["bundles"])


# ===== Bundle programs =====

@router.get("/merchants/{merchant_id}/bundle-programs")
async def list_bundle_programs(merchant_id: str):
    return ok(await deps.bundle_program_service().list_merchant_programs(merchant_id))


@router.post("/bundle-programs")
async def create_bundle_program(request: Request, inb: BundleProgramCreate):
    auth = require_merchant_user(await authenticate(request))
    merchant_id = acting_merchant_id(auth, inb.merchant_id)

    data = inb.model_dump(exclude={"merchant_id", "quantity_presets"})
    data["quantity_presets"] = [p.model_dump(by_alias=True) for p in inb.quantity_presets]
    return ok(await deps.bundle_program_service().create_program(merchant_id, data), status=201)


@router.get("/bundle-programs/{program_id}")
async def get_bundle_program(program_id: str):
    return ok(await deps.bundle_program_service().get_program(program_id))


@router.put("/bundle-programs/{program_id}")
async def update_bundle_program(request: Request, program_id: str, inb: BundleProgramUpdate):
    auth = await authenticate(request)
    service = deps.bundle_program_service()
    program = await service.get_program_row(program_id)
    ensure_merchant_access(auth, program["merchant_id"])

    changes = inb.model_dump(exclude_unset=True, exclude={"quantity_presets"})
    if inb.quantity_presets is not None:
        changes["quantity_presets"] = [p.model_dump(by_alias=True) for p in inb.quantity_presets]
    return ok(await service.update_program(program["merchant_id"], program_id, changes))


@router.delete("/bundle-programs/{program_id}")
async def delete_bundle_program(request: Request, program_id: str):
    auth = await authenticate(request)
    service = deps.bundle_program_service()
    program = await service.get_program_row(program_id)
    ensure_merchant_access(auth, program["merchant_id"])
    return ok(await service.delete_program(program["merchant_id"], program_id))


# ===== Bundles =====

@router.post("/bundles")
async def create_bundle(request: Request, inb: BundleCreate):
    auth = require_merchant_user(await authenticate(request))
    bundle = await deps.bundle_service().create_bundle(
        inb.user_id,
        inb.bundle_program_id,
        inb.quantity,
        validity_days=inb.validity_days,
        merchant_id=merchant_scope(auth),
    )
    return ok(bundle, status=201)


@router.get("/bundles/{bundle_id}")
async def get_bundle(request: Request, bundle_id: str):
    auth = require_merchant_user(await authenticate(request))
    return ok(await deps.bundle_service().get_bundle(bundle_id, merchant_id=merchant_scope(auth)))


@router.put("/bundles/{bundle_id}")
async def update_bundle(request: Request, bundle_id: str, inb: BundleUpdate):
    auth = require_merchant_user(await authenticate(request))
    bundle = await deps.bundle_service().update_bundle(
        bundle_id, inb.remaining_quantity, merchant_id=merchant_scope(auth)
    )
    return ok(bundle)


@router.post("/bundles/{bundle_id}/use")
async def use_bundle(request: Request, bundle_id: str, inb: BundleUse):
    auth = require_merchant_user(await authenticate(request))
    bundle = await deps.bundle_service().use_bundle(
        bundle_id, inb.quantity_used, merchant_id=merchant_scope(auth)
    )
    return ok(bundle)
