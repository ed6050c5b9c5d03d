"""Redis bulk upload batch store adapter."""

import json
from dataclasses import asdict
from datetime import datetime
from typing import Optional

from redis import asyncio as aioredis

from app.application.ports.bulk_upload_batch_repository import BulkUploadBatchRepository
from app.domain.entities.bulk_upload_row import (
    BulkRowStatus,
    BulkUploadBatch,
    BulkUploadRow,
    OriginalRowData,
    VerifiedRowData,
)
from app.infrastructure.logging.logger import logger


class RedisBulkUploadBatchRepository(BulkUploadBatchRepository):
    """Redis adapter for bulk upload batches, expired after a fixed TTL."""

    KEY_PREFIX = "bulk:batch:"
    CANCEL_KEY_PREFIX = "bulk:cancel:"

    def __init__(self, redis_url: str, ttl_seconds: int) -> None:
        """
        Initialize Redis batch store.

        Args:
            redis_url: Redis connection URL
            ttl_seconds: Time-to-live for stored batches
        """
        self._redis_url = redis_url
        self._ttl_seconds = ttl_seconds
        self._client: Optional[aioredis.Redis] = None

    async def _get_client(self) -> aioredis.Redis:
        """
        Get or create Redis client.

        Returns:
            Redis client instance
        """
        if self._client is None:
            self._client = await aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    def _make_key(self, batch_id: str) -> str:
        return f"{self.KEY_PREFIX}{batch_id}"

    def _make_cancel_key(self, batch_id: str) -> str:
        return f"{self.CANCEL_KEY_PREFIX}{batch_id}"

    def _serialize_batch(self, batch: BulkUploadBatch) -> dict:
        """
        Serialize a batch to a JSON-compatible dictionary.

        Args:
            batch: Batch to serialize

        Returns:
            Dictionary representation of the batch
        """
        return {
            "id": batch.id,
            "uploaded_by": batch.uploaded_by,
            "verifying": batch.verifying,
            "created_at": batch.created_at.isoformat(),
            "rows": [
                {
                    "id": row.id,
                    "original": asdict(row.original),
                    "verified": asdict(row.verified),
                    "status": row.status.value,
                    "message": row.message,
                    "region_defaulted": row.region_defaulted,
                    "existing_lead_id": row.existing_lead_id,
                    "upload_date": row.upload_date.isoformat(),
                }
                for row in batch.rows
            ],
        }

    def _deserialize_batch(self, data: dict) -> BulkUploadBatch:
        """
        Deserialize a dictionary to a batch.

        Args:
            data: Dictionary representation of the batch

        Returns:
            BulkUploadBatch entity
        """
        rows = [
            BulkUploadRow(
                id=item["id"],
                original=OriginalRowData(**item["original"]),
                verified=VerifiedRowData(**item["verified"]),
                status=BulkRowStatus(item["status"]),
                message=item.get("message"),
                region_defaulted=item.get("region_defaulted", False),
                existing_lead_id=item.get("existing_lead_id"),
                upload_date=datetime.fromisoformat(item["upload_date"]),
            )
            for item in data.get("rows", [])
        ]
        return BulkUploadBatch(
            id=data["id"],
            uploaded_by=data["uploaded_by"],
            rows=rows,
            verifying=data.get("verifying", False),
            created_at=datetime.fromisoformat(data["created_at"]),
        )

    async def get(self, batch_id: str) -> Optional[BulkUploadBatch]:
        """
        Get a batch.

        Args:
            batch_id: Batch identifier

        Returns:
            Batch, or None if unknown or expired
        """
        client = await self._get_client()
        cached_data = await client.get(self._make_key(batch_id))
        if cached_data is None:
            return None
        try:
            batch = self._deserialize_batch(json.loads(cached_data))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            logger.warning(f"Discarding unreadable bulk upload batch {batch_id}: {str(e)}")
            await client.delete(self._make_key(batch_id))
            return None
        batch.cancel_requested = await self.is_cancel_requested(batch_id)
        return batch

    async def save(self, batch: BulkUploadBatch) -> None:
        """
        Store a batch; the cancel flag is a separate key and is left untouched.

        Args:
            batch: Batch to store
        """
        client = await self._get_client()
        payload = json.dumps(self._serialize_batch(batch), sort_keys=True)
        await client.setex(self._make_key(batch.id), self._ttl_seconds, payload)

    async def delete(self, batch_id: str) -> None:
        client = await self._get_client()
        await client.delete(self._make_key(batch_id), self._make_cancel_key(batch_id))

    async def request_cancel(self, batch_id: str) -> bool:
        client = await self._get_client()
        if await client.exists(self._make_key(batch_id)) == 0:
            return False
        await client.setex(self._make_cancel_key(batch_id), self._ttl_seconds, "1")
        return True

    async def clear_cancel(self, batch_id: str) -> None:
        client = await self._get_client()
        await client.delete(self._make_cancel_key(batch_id))

    async def is_cancel_requested(self, batch_id: str) -> bool:
        client = await self._get_client()
        return await client.exists(self._make_cancel_key(batch_id)) > 0

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None
