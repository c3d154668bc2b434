"""Document upload into the vector index."""

from .service import DocumentUploader, derive_upsert_url

__all__ = ["DocumentUploader", "derive_upsert_url"]
