from fastapi import APIRouter

from apps.backend import flags
from apps.backend.services.core_service import require_supabase
from apps.backend.services.dev.dev_service import DevService
from apps.backend.utils.envelope import error, ok

router = APIRouter(prefix="/dev", tags=["dev"])


def _dev_service() -> DevService:
    return DevService(require_supabase())


def _disabled():
    return error("Dev routes are disabled", code="not_found", status=404)


@router.get("/status")
def dev_status():
    if not flags.enabled("DEV_ROUTES_ENABLED"):
        return _disabled()
    return ok(_dev_service().status())


@router.post("/generate-data")
def dev_generate_data():
    if not flags.enabled("DEV_ROUTES_ENABLED"):
        return _disabled()
    return ok(_dev_service().generate_test_data())


@router.post("/reset-data")
def dev_reset_data():
    if not flags.enabled("DEV_ROUTES_ENABLED"):
        return _disabled()
    return ok(_dev_service().reset_test_data())
