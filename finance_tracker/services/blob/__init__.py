"""Attachment (blob) storage package."""

from finance_tracker.services.blob.cloudinary_service import CloudinaryBlobStorage

__all__ = ["CloudinaryBlobStorage"]
