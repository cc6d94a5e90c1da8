from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from apps.backend.services.mappers import style_to_dto
from apps.backend.services.styles.style_repository import StyleRepository

log = logging.getLogger("epunch.styles")

# wire name -> column
_FIELDS = {
    "primaryColor": "primary_color",
    "secondaryColor": "secondary_color",
    "logoUrl": "logo_url",
    "backgroundImageUrl": "background_image_url",
    "punchIcons": "punch_icons",
}


def _columns(style: Dict[str, Any]) -> Dict[str, Any]:
    # Saving a style replaces it: absent fields are cleared.
    return {column: style.get(field) or None for field, column in _FIELDS.items()}


class StyleService:
    """
    Punch card look resolution: program style, then merchant default,
    then the app default (every field null).
    """

    def __init__(self, repo: StyleRepository) -> None:
        self.repo = repo

    async def get_merchant_default(self, merchant_id: str) -> Dict[str, Any]:
        row = await self.repo.find_merchant_default(merchant_id)
        if not row:
            log.info("No default style for merchant %s, using app default", merchant_id)
        return style_to_dto(row)

    async def resolve(self, merchant_id: str, program_id: Optional[str]) -> Dict[str, Any]:
        if program_id:
            row = await self.repo.find_program_style(merchant_id, program_id)
            if row:
                return style_to_dto(row)
        return await self.get_merchant_default(merchant_id)

    async def resolve_many(self, pairs: Iterable[Tuple[str, Optional[str]]]) -> Dict[Tuple[str, Optional[str]], Dict[str, Any]]:
        """Batch variant of resolve() for listings: one query for every merchant involved."""
        pairs = list(pairs)
        rows = await self.repo.find_by_merchants(m for m, _ in pairs)

        defaults: Dict[str, Dict[str, Any]] = {}
        specific: Dict[Tuple[str, str], Dict[str, Any]] = {}
        for row in rows:
            mid = str(row["merchant_id"])
            pid = row.get("loyalty_program_id")
            if pid is None:
                defaults[mid] = row
            else:
                specific[(mid, str(pid))] = row

        out: Dict[Tuple[str, Optional[str]], Dict[str, Any]] = {}
        for merchant_id, program_id in pairs:
            mid = str(merchant_id)
            row = specific.get((mid, str(program_id))) if program_id else None
            out[(merchant_id, program_id)] = style_to_dto(row or defaults.get(mid))
        return out

    async def save_merchant_default(self, merchant_id: str, style: Dict[str, Any]) -> Dict[str, Any]:
        row = await self.repo.save_merchant_default(merchant_id, _columns(style))
        log.info("Saved default style for merchant %s", merchant_id)
        return style_to_dto(row)

    async def update_merchant_logo(self, merchant_id: str, logo_url: str) -> Dict[str, Any]:
        row = await self.repo.save_merchant_default(merchant_id, {"logo_url": logo_url})
        log.info("Updated default logo for merchant %s", merchant_id)
        return style_to_dto(row)

    async def get_program_style(self, merchant_id: str, program_id: str) -> Dict[str, Any]:
        return await self.resolve(merchant_id, program_id)

    async def save_program_style(self, merchant_id: str, program_id: str, style: Dict[str, Any]) -> Dict[str, Any]:
        row = await self.repo.save_program_style(merchant_id, program_id, _columns(style))
        log.info("Saved style for loyalty program %s of merchant %s", program_id, merchant_id)
        return style_to_dto(row)
