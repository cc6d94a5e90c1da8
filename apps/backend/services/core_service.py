import logging
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from apps.backend.db import get_supabase

log = logging.getLogger("epunch.core")

CORE_TABLES = [
    "merchant",
    "merchant_user",
    "user",
    "loyalty_program",
    "punch_card",
    "punch",
    "punch_card_style",
    "bundle_program",
    "bundle",
    "benefit_card",
]


class CoreError(Exception):
    code = "error"

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class BadRequestError(CoreError):
    code = "bad_request"

    def __init__(self, message: str):
        super().__init__(message, 400)


class UnauthorizedError(CoreError):
    code = "unauthorized"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, 401)


class ForbiddenError(CoreError):
    code = "forbidden"

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, 403)


class NotFoundError(CoreError):
    code = "not_found"

    def __init__(self, message: str):
        super().__init__(message, 404)


class ConflictError(CoreError):
    code = "conflict"

    def __init__(self, message: str):
        super().__init__(message, 409)


def require_supabase():
    supabase = get_supabase()
    if not supabase:
        raise CoreError("Supabase not configured", 501)
    return supabase


def first(rows: Optional[List[Dict[str, Any]]]) -> Optional[Dict[str, Any]]:
    return rows[0] if rows else None


# PostgREST answers at most `max-rows` (1000 by default) rows per request.
PAGE_SIZE = 1000
# keeps `in.(...)` filters well under URL length limits
IN_CHUNK_SIZE = 200


def fetch_all(build_query: Callable[[], Any], page_size: int = PAGE_SIZE) -> List[Dict[str, Any]]:
    """
    Reads every row of a select by requesting consecutive `.range()` windows
    until a short page comes back. `build_query` must return a fresh, ordered
    query each call. page_size must not exceed the server's max-rows.
    """
    rows: List[Dict[str, Any]] = []
    start = 0
    while True:
        page = build_query().range(start, start + page_size - 1).execute().data or []
        rows.extend(page)
        if len(page) < page_size:
            return rows
        start += page_size


def chunked(values: Iterable[Any], size: int = IN_CHUNK_SIZE) -> Iterator[List[Any]]:
    batch: List[Any] = []
    for value in values:
        batch.append(value)
        if len(batch) == size:
            yield batch
            batch = []
    if batch:
        yield batch


def health_core() -> Dict[str, Any]:
    """Touches every core table with a one-row select."""
    supabase = get_supabase()
    if not supabase:
        return {"ok": False, "error": "Supabase not configured"}

    checks: Dict[str, Any] = {}
    for table in CORE_TABLES:
        try:
            supabase.table(table).select("id").limit(1).execute()
            checks[table] = True
        except Exception as e:
            log.warning("Health check failed for table %s: %s", table, e)
            checks[table] = False

    return {"ok": all(checks.values()), "checks": checks}
