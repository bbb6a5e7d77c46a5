"""Object storage access."""

from .blob_store import BlobStore, S3BlobStore

__all__ = ['BlobStore', 'S3BlobStore']
