"""
Attachment Storage using Cloudinary

DESIGN DECISION: We use Cloudinary because:
1. Reliable cloud infrastructure
2. Simple API for arbitrary files (``resource_type="raw"``)
3. Free tier sufficient for personal use

Receipts and invoices (images and PDFs) are stored as raw resources so that
Cloudinary never transcodes them. The public id mirrors the storage path
``{folder}/{bucket}/{owner}/{record}/{unique}.{ext}``.
"""

import asyncio
from typing import Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import cloudinary.utils
import requests
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import CloudinarySettings, get_settings
from finance_tracker.services.storage.interface import (
    BlobStorageError,
    BlobStorageInterface,
    NotFoundError,
)


class CloudinaryBlobStorage(BlobStorageInterface):
    """
    Blob storage for expense and income attachments.

    Flow:
    1. Receive file bytes and a storage path
    2. Upload to Cloudinary under that path as a raw resource
    3. Return the path (the URL is derived again when downloading)
    """

    def __init__(self, settings: Optional[CloudinarySettings] = None):
        self._settings = settings or get_settings().cloudinary
        self._configured = False

    def _configure(self):
        """Configure Cloudinary SDK."""
        if not self._configured:
            cloudinary.config(
                cloud_name=self._settings.cloud_name,
                api_key=self._settings.api_key,
                api_secret=self._settings.api_secret,
                secure=True,
            )
            self._configured = True

    def _public_id(self, bucket: str, path: str) -> str:
        return f"{self._settings.folder}/{bucket}/{path}"

    def url_for(self, bucket: str, path: str) -> str:
        """Delivery URL of a stored attachment."""
        self._configure()
        url, _ = cloudinary.utils.cloudinary_url(
            self._public_id(bucket, path),
            resource_type="raw",
            secure=True,
        )
        return url

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str,
    ) -> str:
        """
        Upload one attachment.

        The SDK call blocks, so it runs in a worker thread; uploads gathered
        by a store proceed side by side.

        Raises:
            BlobStorageError: If upload fails
        """
        self._configure()
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                content,
                public_id=self._public_id(bucket, path),
                resource_type="raw",
                overwrite=False,
                context={"content_type": content_type},
            )
        except cloudinary.exceptions.Error as e:
            raise BlobStorageError(f"Cloudinary error: {e}")
        except Exception as e:
            raise BlobStorageError(f"Failed to upload attachment: {e}")

        if not result.get("secure_url", result.get("url")):
            raise BlobStorageError("No URL returned from Cloudinary")
        return path

    async def download(self, bucket: str, path: str) -> bytes:
        """Fetch an attachment's bytes."""
        try:
            response = await asyncio.to_thread(
                requests.get, self.url_for(bucket, path), timeout=30,
            )
        except requests.RequestException as e:
            raise BlobStorageError(f"Failed to download attachment: {e}")

        if response.status_code == 404:
            raise NotFoundError(f"No file at {bucket}/{path}")
        if not response.ok:
            raise BlobStorageError(
                f"Attachment download failed with HTTP {response.status_code}"
            )
        return response.content
