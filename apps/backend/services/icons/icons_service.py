from __future__ import annotations

import math
from typing import Any, Dict, Optional

from apps.backend.services.core_service import BadRequestError
from apps.backend.services.icons.icons_repository import IconIndex, icon_index

MAX_LIMIT = 200


class IconsService:
    def __init__(self, index: IconIndex = icon_index) -> None:
        self.index = index

    def search_icons(self, query: Optional[str] = None, page: int = 1, limit: int = 50) -> Dict[str, Any]:
        if page < 1:
            raise BadRequestError("page must be >= 1")
        if limit < 1 or limit > MAX_LIMIT:
            raise BadRequestError(f"limit must be between 1 and {MAX_LIMIT}")

        icons, total = self.index.search(query, limit=limit, offset=(page - 1) * limit)
        total_pages = math.ceil(total / limit)

        return {
            # icons that failed to render are not selectable
            "icons": [
                {"id": i.name, "name": i.display_name, "svg_content": i.svg_content}
                for i in icons
                if i.svg_content
            ],
            "total": total,
            "hasMore": page < total_pages,
            "page": page,
            "totalPages": total_pages,
        }
