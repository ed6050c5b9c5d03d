"""Bulk upload batch store port."""

from abc import ABC, abstractmethod
from typing import Optional

from app.domain.entities.bulk_upload_row import BulkUploadBatch


class BulkUploadBatchRepository(ABC):
    """Port interface for bulk upload batches awaiting commit."""

    @abstractmethod
    async def get(self, batch_id: str) -> Optional[BulkUploadBatch]:
        """
        Get a batch.

        Args:
            batch_id: Batch identifier

        Returns:
            Batch, or None if unknown or expired
        """
        pass

    @abstractmethod
    async def save(self, batch: BulkUploadBatch) -> None:
        """
        Store a batch (insert or overwrite).

        The stored cancellation flag is preserved if it was set concurrently.

        Args:
            batch: Batch to store
        """
        pass

    @abstractmethod
    async def delete(self, batch_id: str) -> None:
        """Discard a batch."""
        pass

    @abstractmethod
    async def request_cancel(self, batch_id: str) -> bool:
        """
        Set the cancellation flag polled by the pipeline.

        Returns:
            True if the batch exists
        """
        pass

    @abstractmethod
    async def clear_cancel(self, batch_id: str) -> None:
        """Reset the cancellation flag before a new run."""
        pass

    @abstractmethod
    async def is_cancel_requested(self, batch_id: str) -> bool:
        """
        Read the cancellation flag.

        Returns:
            True if cancellation was requested
        """
        pass
