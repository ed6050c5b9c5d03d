"""In-memory bulk upload batch store adapter."""

import copy
from typing import Optional

from app.application.ports.bulk_upload_batch_repository import BulkUploadBatchRepository
from app.domain.entities.bulk_upload_row import BulkUploadBatch


class InMemoryBulkUploadBatchRepository(BulkUploadBatchRepository):
    """In-memory implementation of the batch store."""

    def __init__(self) -> None:
        """Initialize in-memory store."""
        self._batches: dict[str, BulkUploadBatch] = {}
        self._cancel_flags: set[str] = set()

    async def get(self, batch_id: str) -> Optional[BulkUploadBatch]:
        stored = self._batches.get(batch_id)
        if stored is None:
            return None
        batch = copy.deepcopy(stored)
        batch.cancel_requested = batch_id in self._cancel_flags
        return batch

    async def save(self, batch: BulkUploadBatch) -> None:
        # The cancel flag lives apart from the payload so concurrent saves never reset it
        self._batches[batch.id] = copy.deepcopy(batch)

    async def delete(self, batch_id: str) -> None:
        self._batches.pop(batch_id, None)
        self._cancel_flags.discard(batch_id)

    async def request_cancel(self, batch_id: str) -> bool:
        if batch_id not in self._batches:
            return False
        self._cancel_flags.add(batch_id)
        return True

    async def clear_cancel(self, batch_id: str) -> None:
        self._cancel_flags.discard(batch_id)

    async def is_cancel_requested(self, batch_id: str) -> bool:
        return batch_id in self._cancel_flags
