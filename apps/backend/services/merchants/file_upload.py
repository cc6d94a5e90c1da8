from __future__ import annotations

import logging
import re
import time
from typing import Any, Dict, Optional

from apps.backend.services.core_service import BadRequestError, CoreError

log = logging.getLogger("epunch.uploads")

_UNSAFE = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_file_name(file_name: str) -> str:
    return _UNSAFE.sub("_", file_name.strip())


class FileUploadService:
    """
    Issues pre-signed upload URLs on Supabase Storage.
    The client PUTs the file body straight to uploadUrl and then stores publicUrl.
    """

    def __init__(self, supabase_client: Any, bucket: str) -> None:
        self.sb = supabase_client
        self.bucket = bucket

    def object_path(self, merchant_id: str, file_name: str, now_ms: Optional[int] = None) -> str:
        ts = now_ms if now_ms is not None else int(time.time() * 1000)
        return f"{merchant_id}/{ts}_{sanitize_file_name(file_name)}"

    async def generate_upload_url(self, merchant_id: str, file_name: str) -> Dict[str, str]:
        if not file_name or not file_name.strip():
            raise BadRequestError("fileName is required")

        path = self.object_path(merchant_id, file_name)
        log.info("Generating upload URL for merchant %s -> %s/%s", merchant_id, self.bucket, path)

        bucket = self.sb.storage.from_(self.bucket)
        try:
            signed = bucket.create_signed_upload_url(path)
        except Exception as e:
            log.error("Storage refused signed upload URL for %s: %s", path, e)
            raise CoreError("Could not create upload URL", 502)

        upload_url = signed.get("signed_url") or signed.get("signedUrl")
        if not upload_url:
            raise CoreError("Storage returned no upload URL", 502)

        return {
            "uploadUrl": upload_url,
            "publicUrl": bucket.get_public_url(path),
        }
