from fastapi import APIRouter

from apps.backend.routes.schemas import AdminLogin
from apps.backend.services.auth.auth_service import login_admin
from apps.backend.utils.envelope import ok

# mounted at /admin in main.py
router = APIRouter(tags=["admin"])


@router.post("/auth")
def admin_auth(inb: AdminLogin):
    return ok(login_admin(inb.login, inb.password))
