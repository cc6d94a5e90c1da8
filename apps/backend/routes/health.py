from fastapi import APIRouter

from apps.backend.services.admin.observability import system_snapshot
from apps.backend.services.core_service import health_core
from apps.backend.utils.envelope import ok

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health_root():
    return ok({"ok": True})


@router.get("/core")
def health_core_tables():
    res = health_core()
    return ok(res, status=200 if res.get("ok") else 503)


@router.get("/system")
def health_system():
    return ok(system_snapshot())
