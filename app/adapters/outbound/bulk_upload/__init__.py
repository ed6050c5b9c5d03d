"""Bulk upload batch store adapters."""

from app.adapters.outbound.bulk_upload.in_memory_batch_repository import (
    InMemoryBulkUploadBatchRepository,
)
from app.adapters.outbound.bulk_upload.redis_batch_repository import (
    RedisBulkUploadBatchRepository,
)

__all__ = [
    "InMemoryBulkUploadBatchRepository",
    "RedisBulkUploadBatchRepository",
]
