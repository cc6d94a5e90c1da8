from typing import Optional

from fastapi import APIRouter

from apps.backend.services.icons.icons_service import IconsService
from apps.backend.utils.envelope import ok

router = APIRouter(prefix="/icons", tags=["icons"])


@router.get("/search")
def search_icons(q: Optional[str] = None, page: int = 1, limit: int = 50):
    return ok(IconsService().search_icons(q, page=page, limit=limit))
