"""Bulk upload pipeline: parse, verify, edit and commit spreadsheet rows as leads."""

import asyncio
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional

from app.application.dtos.bulk_upload import CommitSummary, RowEditRequest, VerificationSummary
from app.application.dtos.place import PlaceDetails
from app.application.ports.bulk_upload_batch_repository import BulkUploadBatchRepository
from app.application.ports.directory_repository import RegionRepository, UserRepository
from app.application.ports.lead_repository import LeadRepository
from app.application.ports.place_search_client import PlaceSearchClient, PlaceSearchError
from app.domain.entities.bulk_upload_row import (
    BulkRowStatus,
    BulkUploadBatch,
    BulkUploadRow,
    OriginalRowData,
    VerifiedRowData,
)
from app.domain.entities.lead import Lead
from app.domain.entities.user import Region, User
from app.domain.errors import BusinessRuleError, NotFoundError
from app.domain.value_objects.lead_status import LeadStage, LeadStatus
from app.domain.value_objects.lock_in_period import LockInPeriod
from app.infrastructure.logging.logger import log_bulk_row, log_event

TEMPLATE_COLUMNS = ["Contact Person", "School Name", "Designation", "Incharge Person"]
EXPORT_COLUMNS = [
    "SNo",
    "School Name",
    "Original School Name",
    "Address",
    "Zip Code",
    "Region",
    "Contact Person",
    "Designation",
    "Contact Phone",
    "Incharge",
    "Status",
    "Message",
]

_PIN_IN_ADDRESS = re.compile(r"\b\d{6}\b")
_UNPROCESSED = (BulkRowStatus.PENDING, BulkRowStatus.VERIFYING)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def extract_zip_code(details: PlaceDetails) -> str:
    """
    Postal code of a place: the postal_code component, else a 6-digit PIN in the address.

    Args:
        details: Place details

    Returns:
        ZIP / PIN code, or "" when none is found
    """
    for component in details.address_components:
        if "postal_code" in component.types:
            return component.long_name
    match = _PIN_IN_ADDRESS.search(details.formatted_address or "")
    return match.group(0) if match else ""


class BulkUploadPipeline:
    """
    Use case for importing leads from a spreadsheet.

    Rows are processed strictly one after another. Verification resolves the
    incharge and their region, looks the school up in the place-search service
    and flags rows that duplicate an existing lead. Commit writes only the rows
    verification accepted. Both runs poll the batch's cancellation flag before
    each row and keep whatever was already processed.
    """

    def __init__(
        self,
        batch_repository: BulkUploadBatchRepository,
        lead_repository: LeadRepository,
        user_repository: UserRepository,
        region_repository: RegionRepository,
        place_search_client: PlaceSearchClient,
        row_delay_seconds: float = 0.5,
        default_to_first_region: bool = True,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_id,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            batch_repository: Store for in-flight batches
            lead_repository: Lead record store
            user_repository: User directory (incharge resolution)
            region_repository: Regions (region name lookup)
            place_search_client: External place search
            row_delay_seconds: Pause between verified rows (rate limiting)
            default_to_first_region: Accept the first region of a multi-region incharge
            clock: Current UTC time source
            id_factory: Identifier source for batches, rows and leads
            sleep: Awaitable sleep (injectable for tests)
        """
        self._batch_repository = batch_repository
        self._lead_repository = lead_repository
        self._user_repository = user_repository
        self._region_repository = region_repository
        self._place_search_client = place_search_client
        self._row_delay_seconds = row_delay_seconds
        self._default_to_first_region = default_to_first_region
        self._clock = clock
        self._id_factory = id_factory
        self._sleep = sleep

    # Batch management

    def parse_rows(self, sheet_rows: list[list[str]]) -> list[BulkUploadRow]:
        """
        Turn spreadsheet rows into pipeline rows.

        The first row is a header. Columns are positional: contact person,
        school name, designation, incharge name. Rows without a school name
        are dropped.

        Args:
            sheet_rows: Cell text of the first worksheet, header included

        Returns:
            PENDING rows
        """
        now = self._clock()
        rows = []
        for cells in sheet_rows[1:]:
            columns = [(cell or "").strip() for cell in cells[:4]]
            columns += [""] * (4 - len(columns))
            contact_person, school_name, designation, incharge_name = columns
            if not school_name:
                continue
            rows.append(
                BulkUploadRow(
                    id=self._id_factory(),
                    original=OriginalRowData(
                        contact_person=contact_person,
                        school_name=school_name,
                        designation=designation,
                        incharge_name=incharge_name,
                    ),
                    verified=VerifiedRowData(
                        school_name=school_name,
                        contact_person=contact_person,
                        designation=designation,
                    ),
                    upload_date=now,
                )
            )
        return rows

    async def create_batch(self, sheet_rows: list[list[str]], uploaded_by: User) -> BulkUploadBatch:
        """
        Parse an uploaded sheet into a new batch.

        Args:
            sheet_rows: Cell text of the first worksheet, header included
            uploaded_by: Admin uploading the file

        Returns:
            Stored batch

        Raises:
            BusinessRuleError: If the sheet has no rows with a school name
        """
        rows = self.parse_rows(sheet_rows)
        if not rows:
            raise BusinessRuleError("No rows with a school name were found in the uploaded file")
        batch = BulkUploadBatch(
            id=self._id_factory(), uploaded_by=uploaded_by.id, rows=rows, created_at=self._clock()
        )
        await self._batch_repository.save(batch)
        log_event(
            component="bulk_upload", action="batch_created", batch_id=batch.id, rows_count=len(rows)
        )
        return batch

    async def get_batch(self, batch_id: str) -> BulkUploadBatch:
        batch = await self._batch_repository.get(batch_id)
        if batch is None:
            raise NotFoundError("Bulk upload batch", batch_id)
        return batch

    async def discard_batch(self, batch_id: str) -> None:
        """
        Drop a batch. A run still holding the batch stops before its next row.

        Raises:
            NotFoundError: If the batch does not exist
        """
        await self.get_batch(batch_id)
        await self._batch_repository.delete(batch_id)
        log_event(component="bulk_upload", action="batch_discarded", batch_id=batch_id)

    async def _save_if_present(self, batch: BulkUploadBatch) -> bool:
        # A discarded batch must not be written back by a run that still holds it
        if await self._batch_repository.get(batch.id) is None:
            return False
        await self._batch_repository.save(batch)
        return True

    async def _should_stop(self, batch_id: str) -> bool:
        if await self._batch_repository.is_cancel_requested(batch_id):
            return True
        return await self._batch_repository.get(batch_id) is None

    async def cancel(self, batch_id: str) -> None:
        """
        Ask a running verification or commit to stop before its next row.

        Raises:
            NotFoundError: If the batch does not exist
        """
        if not await self._batch_repository.request_cancel(batch_id):
            raise NotFoundError("Bulk upload batch", batch_id)
        log_event(component="bulk_upload", action="cancel_requested", batch_id=batch_id)

    async def _get_editable_batch(self, batch_id: str) -> BulkUploadBatch:
        batch = await self.get_batch(batch_id)
        if batch.verifying:
            raise BusinessRuleError("Rows cannot be changed while the batch is being processed")
        return batch

    async def _get_row(self, batch: BulkUploadBatch, row_id: str) -> BulkUploadRow:
        row = batch.find_row(row_id)
        if row is None:
            raise NotFoundError("Bulk upload row", row_id)
        return row

    async def edit_row(self, batch_id: str, row_id: str, request: RowEditRequest) -> BulkUploadRow:
        """
        Manually override a row's verified fields; the row becomes VERIFIED.

        Args:
            batch_id: Batch identifier
            row_id: Row identifier
            request: Fields to override (omitted fields are kept)

        Returns:
            Edited row
        """
        batch = await self._get_editable_batch(batch_id)
        row = await self._get_row(batch, row_id)
        for field_name, value in request.model_dump(exclude_none=True).items():
            setattr(row.verified, field_name, value)
        row.mark(BulkRowStatus.VERIFIED, "Manually verified")
        row.existing_lead_id = None
        await self._batch_repository.save(batch)
        log_bulk_row(batch_id, row_id, row.status.value, row.message)
        return row

    async def select_place(self, batch_id: str, row_id: str, place_id: str) -> BulkUploadRow:
        """
        Apply a place the operator picked after re-searching; the row becomes VERIFIED.

        Args:
            batch_id: Batch identifier
            row_id: Row identifier
            place_id: Chosen place

        Returns:
            Updated row

        Raises:
            BusinessRuleError: If the place details cannot be fetched
        """
        batch = await self._get_editable_batch(batch_id)
        row = await self._get_row(batch, row_id)
        try:
            details = await self._place_search_client.details(place_id)
        except PlaceSearchError as e:
            raise BusinessRuleError("Details fetch failed") from e
        if details is None:
            raise BusinessRuleError("Details fetch failed")

        self._apply_place(row, details)
        row.mark(BulkRowStatus.VERIFIED, "Manually verified via Google")
        row.existing_lead_id = None
        await self._batch_repository.save(batch)
        log_bulk_row(batch_id, row_id, row.status.value, row.message, place_id=place_id)
        return row

    async def delete_row(self, batch_id: str, row_id: str) -> None:
        """Remove a row from a batch."""
        batch = await self._get_editable_batch(batch_id)
        row = await self._get_row(batch, row_id)
        batch.rows.remove(row)
        await self._batch_repository.save(batch)

    async def export_rows(self, batch_id: str) -> list[dict[str, Any]]:
        """
        Batch rows as export records keyed by EXPORT_COLUMNS.

        Args:
            batch_id: Batch identifier

        Returns:
            One record per row, numbered from 1
        """
        batch = await self.get_batch(batch_id)
        return [
            {
                "SNo": index,
                "School Name": row.verified.school_name,
                "Original School Name": row.original.school_name,
                "Address": row.verified.address,
                "Zip Code": row.verified.zip_code,
                "Region": row.verified.region_name,
                "Contact Person": row.verified.contact_person,
                "Designation": row.verified.designation,
                "Contact Phone": row.verified.contact_phone,
                "Incharge": row.verified.assigned_to_user_name,
                "Status": row.status.value,
                "Message": row.message or "",
            }
            for index, row in enumerate(batch.rows, start=1)
        ]

    # Verification

    async def verify_batch(self, batch_id: str) -> VerificationSummary:
        """
        Verify every unprocessed row of a batch, one at a time.

        Args:
            batch_id: Batch identifier

        Returns:
            Counts by row status and whether the run was cancelled
        """
        batch = await self._get_editable_batch(batch_id)
        await self._batch_repository.clear_cancel(batch_id)
        batch.verifying = True
        await self._batch_repository.save(batch)

        users = await self._user_repository.list()
        regions = {region.id: region for region in await self._region_repository.list()}

        processed = 0
        cancelled = False
        pending_rows = [row for row in batch.rows if row.status in _UNPROCESSED]
        try:
            for index, row in enumerate(pending_rows):
                if await self._should_stop(batch_id):
                    cancelled = True
                    break

                await self._verify_row(batch_id, row, users, regions)
                processed += 1
                if not await self._save_if_present(batch):
                    cancelled = True
                    break

                if index < len(pending_rows) - 1 and self._row_delay_seconds > 0:
                    await self._sleep(self._row_delay_seconds)
        finally:
            batch.verifying = False
            await self._save_if_present(batch)

        counts: dict[str, int] = {}
        for row in batch.rows:
            counts[row.status.value] = counts.get(row.status.value, 0) + 1
        log_event(
            component="bulk_upload",
            action="verification_finished",
            batch_id=batch_id,
            processed=processed,
            cancelled=cancelled,
        )
        return VerificationSummary(processed=processed, cancelled=cancelled, counts=counts)

    async def _verify_row(
        self,
        batch_id: str,
        row: BulkUploadRow,
        users: list[User],
        regions: dict[str, Region],
    ) -> None:
        row.mark(BulkRowStatus.VERIFYING)
        try:
            if self._resolve_incharge(row, users, regions):
                await self._verify_place(row)
            if row.status == BulkRowStatus.VERIFIED:
                await self._check_existing_lead(row)
        except Exception as e:
            # A failing row never stops the batch
            row.mark(BulkRowStatus.ERROR, str(e) or "Verification failed")
            log_bulk_row(batch_id, row.id, row.status.value, row.message, level=logging.WARNING)
            return
        log_bulk_row(batch_id, row.id, row.status.value, row.message)

    def _resolve_incharge(
        self, row: BulkUploadRow, users: list[User], regions: dict[str, Region]
    ) -> bool:
        """
        Fill the assignee and region from the incharge name.

        Returns:
            True when place verification should run
        """
        incharge = next(
            (user for user in users if user.matches_name_or_email(row.original.incharge_name)),
            None,
        )
        if incharge is None:
            row.mark(
                BulkRowStatus.USER_NOT_FOUND, f"User '{row.original.incharge_name}' not found"
            )
            return False

        row.verified.assigned_to_user_id = incharge.id
        row.verified.assigned_to_user_name = incharge.full_name

        if not incharge.assigned_regions:
            row.mark(BulkRowStatus.ERROR, "User has no assigned regions")
            return False

        if len(incharge.assigned_regions) > 1 and not self._default_to_first_region:
            row.mark(BulkRowStatus.ERROR, "Multiple regions assigned - Select a region manually")
            return False

        region = regions.get(incharge.assigned_regions[0])
        if region is not None:
            row.verified.region_id = region.id
            row.verified.region_name = region.name
            if len(incharge.assigned_regions) > 1:
                row.region_defaulted = True
                row.message = "Multiple regions assigned - Defaulted to first"
        return True

    async def _verify_place(self, row: BulkUploadRow) -> None:
        try:
            predictions = await self._place_search_client.predictions(row.original.school_name)
        except PlaceSearchError:
            row.mark(BulkRowStatus.ERROR, "Place verification failed")
            return

        if not predictions:
            row.mark(BulkRowStatus.NO_MATCH, "No suggestions found")
            return

        target = None
        annotation = ""
        if len(predictions) == 1:
            target = predictions[0]
        else:
            candidates = predictions
            region_name = row.verified.region_name.lower()
            if region_name:
                region_matches = [p for p in predictions if region_name in p.description.lower()]
                if region_matches:
                    candidates = region_matches

            if len(candidates) == 1:
                target = candidates[0]
                annotation = " (Auto-selected via Region)"
            else:
                wanted = row.original.school_name.strip().lower()
                exact_matches = [p for p in candidates if p.main_text.lower() == wanted]
                if len(exact_matches) == 1:
                    target = exact_matches[0]
                    annotation = " (Auto-selected via Region + Exact Name)"

        if target is None:
            row.mark(
                BulkRowStatus.MULTIPLE_MATCHES, f"Found {len(predictions)} matches - Please refine"
            )
            return

        try:
            details = await self._place_search_client.details(target.place_id)
        except PlaceSearchError:
            details = None
        if details is None:
            row.mark(BulkRowStatus.ERROR, "Details fetch failed")
            return

        self._apply_place(row, details)
        # Keeps the multiple-regions note unless the match needs explaining
        row.mark(BulkRowStatus.VERIFIED, f"Verified{annotation}" if annotation else row.message)

    @staticmethod
    def _apply_place(row: BulkUploadRow, details: PlaceDetails) -> None:
        row.verified.school_name = details.name or row.original.school_name
        row.verified.address = details.formatted_address or ""
        row.verified.place_id = details.place_id
        if details.formatted_phone_number:
            row.verified.contact_phone = details.formatted_phone_number
        zip_code = extract_zip_code(details)
        if zip_code:
            row.verified.zip_code = zip_code

    async def _check_existing_lead(self, row: BulkUploadRow) -> None:
        existing = await self._lead_repository.find(
            school_name=row.verified.school_name, zip_code=row.verified.zip_code
        )
        if not existing:
            return
        lead = existing[0]
        row.existing_lead_id = lead.id
        if lead.stage == LeadStage.NEW:
            row.mark(BulkRowStatus.DUPLICATE, "Lead exists (NEW stage) - Will Update")
        else:
            row.mark(BulkRowStatus.DUPLICATE, f"Lead exists ({lead.stage.value}) - Will Skip")

    # Commit

    async def commit_batch(self, batch_id: str, committed_by: User) -> CommitSummary:
        """
        Write accepted rows as leads.

        VERIFIED rows become new LOCKED leads owned by their incharge;
        "Will Update" duplicates overwrite the existing NEW-stage lead. Every
        other row is skipped. Row failures are recorded on the row and do not
        roll back earlier rows.

        Args:
            batch_id: Batch identifier
            committed_by: Admin committing the batch

        Returns:
            Uploaded, failed and skipped counts
        """
        batch = await self._get_editable_batch(batch_id)
        await self._batch_repository.clear_cancel(batch_id)
        batch.verifying = True
        await self._batch_repository.save(batch)

        users = {user.id: user for user in await self._user_repository.list()}
        now = self._clock()
        remarks = (
            f"Added via bulk upload by {committed_by.full_name} on {now.strftime('%d/%m/%Y')}"
        )

        uploaded = failed = skipped = 0
        cancelled = False
        try:
            for row in batch.rows:
                if await self._should_stop(batch_id):
                    cancelled = True
                    break

                if not row.is_committable:
                    skipped += 1
                    continue

                try:
                    if row.will_update:
                        await self._update_existing_lead(row, users, remarks, now)
                        row.mark(BulkRowStatus.UPLOADED, "Updated existing lead")
                    else:
                        await self._create_lead(row, users, remarks, now)
                        row.mark(BulkRowStatus.UPLOADED, "Successfully uploaded")
                    uploaded += 1
                except Exception as e:
                    row.mark(BulkRowStatus.ERROR, str(e) or "Upload failed")
                    failed += 1
                    log_bulk_row(
                        batch_id, row.id, row.status.value, row.message, level=logging.WARNING
                    )
                    continue
                log_bulk_row(batch_id, row.id, row.status.value, row.message)
        finally:
            batch.verifying = False
            await self._save_if_present(batch)

        log_event(
            component="bulk_upload",
            action="commit_finished",
            batch_id=batch_id,
            uploaded=uploaded,
            failed=failed,
            skipped=skipped,
            cancelled=cancelled,
        )
        return CommitSummary(uploaded=uploaded, failed=failed, skipped=skipped, cancelled=cancelled)

    def _incharge_lock(self, row: BulkUploadRow, users: dict[str, User], now: datetime) -> datetime:
        incharge = users.get(row.verified.assigned_to_user_id)
        if incharge is None:
            raise NotFoundError("User", row.verified.assigned_to_user_id)
        return LockInPeriod(incharge.default_lock_in_months).expires_at(now)

    async def _create_lead(
        self, row: BulkUploadRow, users: dict[str, User], remarks: str, now: datetime
    ) -> None:
        verified = row.verified
        lead = Lead(
            id=self._id_factory(),
            school_name=verified.school_name,
            created_by=verified.assigned_to_user_id,
            region_id=verified.region_id,
            region_name=verified.region_name,
            address=verified.address,
            zip_code=verified.zip_code,
            landmark=verified.landmark or None,
            contact_person=verified.contact_person,
            designation=verified.designation or None,
            contact_email=verified.contact_email,
            contact_phone=verified.contact_phone,
            remarks=remarks,
            place_id=verified.place_id,
            status=LeadStatus.LOCKED,
            stage=LeadStage.NEW,
            assigned_to_user_id=verified.assigned_to_user_id,
            assigned_to_name=verified.assigned_to_user_name,
            locked_until=self._incharge_lock(row, users, now),
            created_at=now,
        )
        await self._lead_repository.add(lead)
        row.existing_lead_id = lead.id

    async def _update_existing_lead(
        self, row: BulkUploadRow, users: dict[str, User], remarks: str, now: datetime
    ) -> None:
        lead = await self._lead_repository.get(row.existing_lead_id or "")
        if lead is None:
            raise NotFoundError("Lead", row.existing_lead_id)
        if lead.stage != LeadStage.NEW:
            raise BusinessRuleError(f"Lead moved to {lead.stage.value} since verification")

        verified = row.verified
        status_before = lead.status
        lead.school_name = verified.school_name
        lead.address = verified.address
        lead.zip_code = verified.zip_code
        lead.landmark = verified.landmark or None
        lead.region_id = verified.region_id
        lead.region_name = verified.region_name
        lead.contact_person = verified.contact_person
        lead.designation = verified.designation or None
        lead.contact_phone = verified.contact_phone
        lead.contact_email = verified.contact_email
        lead.place_id = verified.place_id
        lead.remarks = remarks
        lead.created_by = verified.assigned_to_user_id
        lead.override_status(LeadStatus.LOCKED)
        lead.assigned_to_user_id = verified.assigned_to_user_id
        lead.assigned_to_name = verified.assigned_to_user_name
        lead.locked_until = self._incharge_lock(row, users, now)
        await self._lead_repository.update(lead, expected_status=status_before)
