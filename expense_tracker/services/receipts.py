"""Saving uploaded receipts to the local upload directory."""
import logging
import os
import secrets
import time
from typing import Optional

from fastapi import UploadFile

from expense_tracker.errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".pdf"}
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "application/pdf"}
URL_PREFIX = "/uploads"


class ReceiptStorage:
    """Validates receipt uploads and writes them under upload_dir."""

    def __init__(self, upload_dir: str, max_size: int):
        self.upload_dir = upload_dir
        self.max_size = max_size

    async def save(self, upload: Optional[UploadFile]) -> Optional[str]:
        """Store the upload and return its public URL, or None when no file was sent."""
        if upload is None or not upload.filename:
            return None

        extension = os.path.splitext(upload.filename)[1].lower()
        if extension not in ALLOWED_EXTENSIONS or upload.content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError.for_field("receipt", "Only image and PDF files are allowed")

        content = await upload.read()
        if len(content) > self.max_size:
            raise ValidationError.for_field(
                "receipt", f"File too large, the limit is {self.max_size // (1024 * 1024)}MB"
            )

        filename = "receipt-{}-{}{}".format(int(time.time() * 1000), secrets.token_hex(8), extension)
        os.makedirs(self.upload_dir, exist_ok=True)
        with open(os.path.join(self.upload_dir, filename), "wb") as f:
            f.write(content)

        logger.info("Stored receipt %s (%d bytes)", filename, len(content))
        return f"{URL_PREFIX}/{filename}"

    def discard(self, url: Optional[str]) -> None:
        """Remove a receipt saved for a write that did not go through."""
        if not url:
            return
        path = os.path.join(self.upload_dir, os.path.basename(url))
        if os.path.exists(path):
            os.remove(path)
            logger.info("Discarded receipt %s", os.path.basename(url))
