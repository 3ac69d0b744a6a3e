"""
Storefront Backend — Product Image Storage
============================================

What:  Validates, stores and removes product images under the uploads root.
Why:   The uploads tree is served as-is at /uploads, so everything written
       there must be a vetted image with a server-chosen name.
How:   Extension and size checks, then an async write to
       uploads/products/<category-slug>/<uuid><ext>.

Security Model:
    1. Extension check:  only common web image formats
    2. Size check:       Content-Length first, then the actual byte count
    3. UUID filename:    no user input ever reaches the file system path
    4. Path containment: every path is resolved and checked against the root

Directory Structure:
    uploads/
    └── products/
        ├── shoes/
        │   └── 3f0c…e1.jpg
        └── books/
            └── 9ab2…4c.png
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Optional, Tuple

import aiofiles

from storefront.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

PRODUCTS_DIR = "products"


class FileService:
    """
    Manages the product image lifecycle inside one uploads root.

    Args:
        uploads_root: directory served at /uploads
        max_size: maximum accepted file size in bytes
    """

    def __init__(self, uploads_root: str, max_size: int):
        self.uploads_root = Path(uploads_root).resolve()
        self.max_size = max_size

    def category_dir(self, category_slug: str) -> Path:
        return self.uploads_root / PRODUCTS_DIR / category_slug

    def validate_extension(self, filename: str) -> str:
        """Return the normalized extension (lowercase, with dot) or raise ValidationError."""
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or 'none'}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Reject empty or oversized files.

        Content-Length is checked first because it is known before the body is
        read; the actual size catches clients that misreport it.
        """
        max_mb = self.max_size / (1024 * 1024)

        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty.", field="file")

        if content_length and content_length > self.max_size:
            raise ValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size > self.max_size:
            raise ValidationError(
                message=(
                    f"File size ({actual_size / (1024 * 1024):.1f}MB) is too large; "
                    f"maximum is {max_mb:.0f}MB."
                ),
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def resolve(self, relative_path: str) -> Path:
        """Absolute path for a stored file; refuses anything outside the uploads root."""
        candidate = (self.uploads_root / relative_path).resolve()
        if not candidate.is_relative_to(self.uploads_root):
            raise ValidationError(message="Invalid file path", context={"path": relative_path})
        return candidate

    async def store_product_image(
        self,
        category_slug: str,
        filename: str,
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Validate and write an image for a product of the given category.

        Returns:
            (absolute_path, relative_path) where relative_path is relative to
            the uploads root and is what gets stored on the product row.

        Raises:
            ValidationError: bad extension or size
            FileStorageError: the write failed
        """
        ext = self.validate_extension(filename)
        self.validate_size(content_length, len(content))

        relative_path = f"{PRODUCTS_DIR}/{category_slug}/{uuid.uuid4().hex}{ext}"
        absolute_path = self.resolve(relative_path)

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("Product image stored: %s (%d bytes)", relative_path, len(content))
        return str(absolute_path), relative_path

    async def remove(self, relative_path: Optional[str]) -> None:
        """
        Best-effort delete of a stored file.

        Used when an image is replaced or its product deleted; a leftover file
        is harmless, so failures are logged rather than raised.
        """
        if not relative_path:
            return
        try:
            path = self.resolve(relative_path)
            if path.exists():
                os.remove(path)
                logger.info("Removed file: %s", relative_path)
        except (OSError, ValidationError) as e:
            logger.warning("Failed to remove file %s: %s", relative_path, str(e))
