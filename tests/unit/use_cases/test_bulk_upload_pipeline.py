"""Unit tests for BulkUploadPipeline."""

import itertools
from datetime import datetime, timezone
from typing import Optional

import pytest
import pytest_asyncio

from app.adapters.outbound.bulk_upload import InMemoryBulkUploadBatchRepository
from app.adapters.outbound.directory import InMemoryRegionRepository, InMemoryUserRepository
from app.adapters.outbound.lead import InMemoryLeadRepository
from app.application.dtos.bulk_upload import RowEditRequest
from app.application.dtos.place import (
    AddressComponent,
    PlaceCandidate,
    PlaceDetails,
    PlacePrediction,
)
from app.application.ports.place_search_client import PlaceSearchClient, PlaceSearchError
from app.application.use_cases.bulk_upload_pipeline import BulkUploadPipeline, extract_zip_code
from app.domain.entities.bulk_upload_row import CONTACT_PHONE_PLACEHOLDER, BulkRowStatus
from app.domain.entities.lead import Lead
from app.domain.entities.user import Region, User, UserRole
from app.domain.errors import BusinessRuleError, NotFoundError
from app.domain.value_objects.lead_status import LeadStage, LeadStatus

NOW = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)

ADMIN = User(id="u_admin", email="admin@example.com", full_name="Admin", role=UserRole.ADMIN)
RAVI = User(
    id="u_ravi",
    email="ravi@example.com",
    full_name="Ravi Kumar",
    default_lock_in_months=1,
    assigned_regions=["region_blr"],
)
MEERA = User(
    id="u_meera",
    email="meera@example.com",
    full_name="Meera Shah",
    assigned_regions=["region_blr", "region_mys"],
)
ARJUN = User(id="u_arjun", email="arjun@example.com", full_name="Arjun Das")

HEADER = ["Contact Person", "School Name", "Designation", "Incharge Person"]
SHEET = [
    HEADER,
    ["A. Rao", "Greenwood High", "Principal", "Ravi Kumar"],
    ["B. Iyer", "Oakridge", "Director", "meera@example.com"],
    ["C. Nair", "Delhi Public School", "", "ravi kumar"],
    ["D. Pillai", "Unknown Academy", "", "Ravi Kumar"],
    ["E. Rao", "Greenwood High", "", "Nobody"],
    ["F. Khan", "Some School", "", "Arjun Das"],
    ["", "", "", ""],
]


def _prediction(place_id: str, description: str, main_text: str) -> PlacePrediction:
    return PlacePrediction(place_id=place_id, description=description, main_text=main_text)


class FakePlaceSearchClient(PlaceSearchClient):
    """Canned place search results keyed by query text."""

    PREDICTIONS = {
        "Greenwood High": [
            _prediction("p_greenwood", "Greenwood High, Sarjapur Road, Bengaluru", "Greenwood High")
        ],
        "Oakridge": [
            _prediction("p_oak_blr", "Oakridge International School, Bengaluru", "Oakridge"),
            _prediction("p_oak_hyd", "Oakridge International School, Hyderabad", "Oakridge"),
        ],
        "Delhi Public School": [
            _prediction("p_dps_1", "Delhi Public School, Delhi", "Delhi Public School"),
            _prediction("p_dps_2", "Delhi Public School, Pune", "Delhi Public School"),
            _prediction("p_dps_3", "DPS Noida", "DPS Noida"),
        ],
    }
    DETAILS = {
        "p_greenwood": PlaceDetails(
            place_id="p_greenwood",
            name="Greenwood High",
            formatted_address="Sarjapur Road, Bengaluru, Karnataka 560001, India",
            formatted_phone_number="080 4000 1234",
            address_components=[
                AddressComponent(long_name="560001", types=["postal_code"]),
            ],
        ),
        "p_oak_blr": PlaceDetails(
            place_id="p_oak_blr",
            name="Oakridge International School",
            formatted_address="Bellandur, Bengaluru, Karnataka 560103, India",
        ),
        "p_dps_2": PlaceDetails(
            place_id="p_dps_2",
            name="Delhi Public School",
            formatted_address="Hadapsar, Pune, Maharashtra 411028, India",
        ),
    }

    def __init__(self) -> None:
        self.failing: dict[str, Exception] = {}

    async def predictions(self, text: str) -> list[PlacePrediction]:
        if text in self.failing:
            raise self.failing[text]
        return list(self.PREDICTIONS.get(text, []))

    async def details(self, place_id: str) -> Optional[PlaceDetails]:
        return self.DETAILS.get(place_id)

    async def text_search(self, query: str) -> list[PlaceCandidate]:
        return []


class RecordingSleep:
    """Sleep stand-in that records delays and runs an optional hook."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self.hook = None

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.hook is not None:
            await self.hook()


@pytest.fixture
def batch_repository():
    return InMemoryBulkUploadBatchRepository()


@pytest.fixture
def lead_repository():
    return InMemoryLeadRepository()


@pytest_asyncio.fixture
async def user_repository():
    repository = InMemoryUserRepository()
    for user in (ADMIN, RAVI, MEERA, ARJUN):
        await repository.add(user)
    return repository


@pytest_asyncio.fixture
async def region_repository():
    repository = InMemoryRegionRepository()
    await repository.add(Region(id="region_blr", name="Bengaluru"))
    await repository.add(Region(id="region_mys", name="Mysuru"))
    return repository


@pytest.fixture
def place_client():
    return FakePlaceSearchClient()


@pytest.fixture
def sleep():
    return RecordingSleep()


def _pipeline(
    batch_repository,
    lead_repository,
    user_repository,
    region_repository,
    place_client,
    sleep,
    default_to_first_region: bool = True,
) -> BulkUploadPipeline:
    ids = itertools.count(1)
    return BulkUploadPipeline(
        batch_repository,
        lead_repository,
        user_repository,
        region_repository,
        place_client,
        row_delay_seconds=0.5,
        default_to_first_region=default_to_first_region,
        clock=lambda: NOW,
        id_factory=lambda: f"id_{next(ids)}",
        sleep=sleep,
    )


@pytest.fixture
def pipeline(
    batch_repository, lead_repository, user_repository, region_repository, place_client, sleep
):
    return _pipeline(
        batch_repository, lead_repository, user_repository, region_repository, place_client, sleep
    )


def _rows_by_school(batch):
    return {row.original.school_name + "|" + row.original.incharge_name: row for row in batch.rows}


@pytest.mark.asyncio
async def test_create_batch_drops_rows_without_school(pipeline):
    """Test parsing of positional columns."""
    batch = await pipeline.create_batch(SHEET, ADMIN)

    assert len(batch.rows) == 6
    first = batch.rows[0]
    assert first.status == BulkRowStatus.PENDING
    assert first.original.contact_person == "A. Rao"
    assert first.original.designation == "Principal"
    assert first.verified.contact_phone == CONTACT_PHONE_PLACEHOLDER
    assert batch.uploaded_by == "u_admin"


@pytest.mark.asyncio
async def test_create_batch_with_short_rows(pipeline):
    """Test that missing trailing cells are read as empty."""
    batch = await pipeline.create_batch([HEADER, ["A. Rao", "Greenwood High"]], ADMIN)

    assert batch.rows[0].original.incharge_name == ""


@pytest.mark.asyncio
async def test_create_batch_without_rows(pipeline):
    """Test that an empty sheet is refused."""
    with pytest.raises(BusinessRuleError):
        await pipeline.create_batch([HEADER], ADMIN)


@pytest.mark.asyncio
async def test_verify_batch_outcomes(pipeline, sleep):
    """Test every verification outcome in one batch."""
    batch = await pipeline.create_batch(SHEET, ADMIN)

    summary = await pipeline.verify_batch(batch.id)

    assert summary.processed == 6
    assert summary.cancelled is False
    rows = _rows_by_school(await pipeline.get_batch(batch.id))

    greenwood = rows["Greenwood High|Ravi Kumar"]
    assert greenwood.status == BulkRowStatus.VERIFIED
    assert greenwood.verified.zip_code == "560001"
    assert greenwood.verified.contact_phone == "080 4000 1234"
    assert greenwood.verified.region_name == "Bengaluru"
    assert greenwood.verified.assigned_to_user_id == "u_ravi"
    assert greenwood.verified.place_id == "p_greenwood"

    oakridge = rows["Oakridge|meera@example.com"]
    assert oakridge.status == BulkRowStatus.VERIFIED
    assert oakridge.message == "Verified (Auto-selected via Region)"
    assert oakridge.region_defaulted is True
    assert oakridge.verified.school_name == "Oakridge International School"
    assert oakridge.verified.zip_code == "560103"

    dps = rows["Delhi Public School|ravi kumar"]
    assert dps.status == BulkRowStatus.MULTIPLE_MATCHES
    assert dps.message == "Found 3 matches - Please refine"

    unknown = rows["Unknown Academy|Ravi Kumar"]
    assert unknown.status == BulkRowStatus.NO_MATCH
    assert unknown.message == "No suggestions found"

    nobody = rows["Greenwood High|Nobody"]
    assert nobody.status == BulkRowStatus.USER_NOT_FOUND
    assert nobody.message == "User 'Nobody' not found"

    no_regions = rows["Some School|Arjun Das"]
    assert no_regions.status == BulkRowStatus.ERROR
    assert no_regions.message == "User has no assigned regions"

    assert sleep.delays == [0.5] * 5
    assert summary.counts[BulkRowStatus.VERIFIED.value] == 2
    assert (await pipeline.get_batch(batch.id)).verifying is False


@pytest.mark.asyncio
async def test_multiple_regions_without_defaulting(
    batch_repository, lead_repository, user_repository, region_repository, place_client, sleep
):
    """Test that a multi-region incharge needs a manual region when defaulting is off."""
    pipeline = _pipeline(
        batch_repository,
        lead_repository,
        user_repository,
        region_repository,
        place_client,
        sleep,
        default_to_first_region=False,
    )
    batch = await pipeline.create_batch([HEADER, ["B. Iyer", "Oakridge", "", "Meera Shah"]], ADMIN)

    await pipeline.verify_batch(batch.id)

    row = (await pipeline.get_batch(batch.id)).rows[0]
    assert row.status == BulkRowStatus.ERROR
    assert row.message == "Multiple regions assigned - Select a region manually"


@pytest.mark.asyncio
async def test_place_search_failures_are_isolated(pipeline, place_client):
    """Test that a failing row does not stop the batch."""
    place_client.failing["Greenwood High"] = PlaceSearchError("quota exceeded")
    place_client.failing["Oakridge"] = RuntimeError("boom")
    batch = await pipeline.create_batch(SHEET[:4], ADMIN)

    summary = await pipeline.verify_batch(batch.id)

    rows = (await pipeline.get_batch(batch.id)).rows
    assert summary.processed == 3
    assert rows[0].status == BulkRowStatus.ERROR
    assert rows[0].message == "Place verification failed"
    assert rows[1].status == BulkRowStatus.ERROR
    assert rows[1].message == "boom"
    assert rows[2].status == BulkRowStatus.MULTIPLE_MATCHES


@pytest.mark.asyncio
async def test_existing_new_lead_will_update(pipeline, lead_repository):
    """Test that a NEW-stage lead is flagged for update and overwritten on commit."""
    await lead_repository.add(
        Lead(
            id="lead_existing",
            school_name="Greenwood High",
            created_by="u_meera",
            zip_code="560001",
            status=LeadStatus.POOL,
            created_at=datetime(2023, 12, 1, tzinfo=timezone.utc),
        )
    )
    batch = await pipeline.create_batch(SHEET[:2], ADMIN)

    await pipeline.verify_batch(batch.id)
    row = (await pipeline.get_batch(batch.id)).rows[0]
    assert row.status == BulkRowStatus.DUPLICATE
    assert row.message == "Lead exists (NEW stage) - Will Update"
    assert row.existing_lead_id == "lead_existing"

    summary = await pipeline.commit_batch(batch.id, ADMIN)

    assert summary.uploaded == 1
    leads = await lead_repository.list()
    assert len(leads) == 1
    lead = leads[0]
    assert lead.id == "lead_existing"
    assert lead.status == LeadStatus.LOCKED
    assert lead.assigned_to_user_id == "u_ravi"
    assert lead.created_by == "u_ravi"
    assert lead.contact_phone == "080 4000 1234"
    assert lead.created_at == datetime(2023, 12, 1, tzinfo=timezone.utc)
    assert (await pipeline.get_batch(batch.id)).rows[0].message == "Updated existing lead"


@pytest.mark.asyncio
async def test_existing_progressed_lead_is_skipped(pipeline, lead_repository):
    """Test that a lead past NEW is never overwritten."""
    await lead_repository.add(
        Lead(
            id="lead_existing",
            school_name="Greenwood High",
            created_by="u_meera",
            zip_code="560001",
            status=LeadStatus.LOCKED,
            stage=LeadStage.DEMO_SHOWED,
            assigned_to_user_id="u_meera",
        )
    )
    batch = await pipeline.create_batch(SHEET[:2], ADMIN)

    await pipeline.verify_batch(batch.id)
    row = (await pipeline.get_batch(batch.id)).rows[0]
    assert row.message == "Lead exists (DEMO_SHOWED) - Will Skip"

    summary = await pipeline.commit_batch(batch.id, ADMIN)

    assert summary.uploaded == 0
    assert summary.skipped == 1
    assert (await lead_repository.get("lead_existing")).assigned_to_user_id == "u_meera"


@pytest.mark.asyncio
async def test_commit_writes_only_verified_rows(pipeline, lead_repository):
    """Test that commit creates leads for VERIFIED rows and skips the rest."""
    batch = await pipeline.create_batch(SHEET, ADMIN)
    await pipeline.verify_batch(batch.id)

    summary = await pipeline.commit_batch(batch.id, ADMIN)

    assert summary.uploaded == 2
    assert summary.failed == 0
    assert summary.skipped == 4
    assert summary.cancelled is False

    leads = {lead.school_name: lead for lead in await lead_repository.list()}
    assert set(leads) == {"Greenwood High", "Oakridge International School"}
    greenwood = leads["Greenwood High"]
    assert greenwood.status == LeadStatus.LOCKED
    assert greenwood.stage == LeadStage.NEW
    assert greenwood.assigned_to_user_id == "u_ravi"
    assert greenwood.locked_until == datetime(2024, 2, 15, 10, 0, tzinfo=timezone.utc)
    assert greenwood.remarks == "Added via bulk upload by Admin on 15/01/2024"
    assert leads["Oakridge International School"].assigned_to_user_id == "u_meera"

    rows = _rows_by_school(await pipeline.get_batch(batch.id))
    assert rows["Greenwood High|Ravi Kumar"].status == BulkRowStatus.UPLOADED
    assert rows["Greenwood High|Nobody"].status == BulkRowStatus.USER_NOT_FOUND


@pytest.mark.asyncio
async def test_cancel_stops_verification_and_resume_skips_processed(
    pipeline, batch_repository, sleep
):
    """Test that cancellation keeps processed rows and a re-run continues."""
    batch = await pipeline.create_batch(SHEET, ADMIN)

    async def cancel_after_first_row():
        await batch_repository.request_cancel(batch.id)

    sleep.hook = cancel_after_first_row
    summary = await pipeline.verify_batch(batch.id)

    assert summary.processed == 1
    assert summary.cancelled is True
    rows = (await pipeline.get_batch(batch.id)).rows
    assert rows[0].status == BulkRowStatus.VERIFIED
    assert all(row.status == BulkRowStatus.PENDING for row in rows[1:])

    sleep.hook = None
    resumed = await pipeline.verify_batch(batch.id)

    assert resumed.processed == 5
    assert resumed.cancelled is False


@pytest.mark.asyncio
async def test_cancel_unknown_batch(pipeline):
    """Test cancelling a batch that does not exist."""
    with pytest.raises(NotFoundError):
        await pipeline.cancel("missing")


@pytest.mark.asyncio
async def test_edit_row_marks_manually_verified(pipeline, lead_repository):
    """Test that a manual edit makes the row committable."""
    batch = await pipeline.create_batch(
        [HEADER, ["D. Pillai", "Unknown Academy", "", "Ravi Kumar"]], ADMIN
    )
    await pipeline.verify_batch(batch.id)
    row_id = batch.rows[0].id

    row = await pipeline.edit_row(
        batch.id,
        row_id,
        RowEditRequest(address="MG Road, Bengaluru", zip_code="560002", contact_phone="9845012345"),
    )

    assert row.status == BulkRowStatus.VERIFIED
    assert row.message == "Manually verified"
    assert row.verified.zip_code == "560002"
    assert row.verified.school_name == "Unknown Academy"

    summary = await pipeline.commit_batch(batch.id, ADMIN)
    assert summary.uploaded == 1
    assert (await lead_repository.list())[0].zip_code == "560002"


@pytest.mark.asyncio
async def test_select_place_resolves_multiple_matches(pipeline):
    """Test picking a place for a row with several matches."""
    batch = await pipeline.create_batch(
        [HEADER, ["C. Nair", "Delhi Public School", "", "Ravi Kumar"]], ADMIN
    )
    await pipeline.verify_batch(batch.id)
    row_id = batch.rows[0].id

    row = await pipeline.select_place(batch.id, row_id, "p_dps_2")

    assert row.status == BulkRowStatus.VERIFIED
    assert row.message == "Manually verified via Google"
    assert row.verified.zip_code == "411028"
    assert row.verified.place_id == "p_dps_2"

    with pytest.raises(BusinessRuleError, match="Details fetch failed"):
        await pipeline.select_place(batch.id, row_id, "p_missing")


@pytest.mark.asyncio
async def test_rows_cannot_change_while_processing(pipeline, batch_repository):
    """Test that edits are refused while a run holds the batch."""
    batch = await pipeline.create_batch(SHEET[:2], ADMIN)
    batch.verifying = True
    await batch_repository.save(batch)

    with pytest.raises(BusinessRuleError):
        await pipeline.delete_row(batch.id, batch.rows[0].id)
    with pytest.raises(BusinessRuleError):
        await pipeline.verify_batch(batch.id)


@pytest.mark.asyncio
async def test_delete_row_and_discard_batch(pipeline):
    """Test row deletion and batch discard."""
    batch = await pipeline.create_batch(SHEET[:3], ADMIN)

    await pipeline.delete_row(batch.id, batch.rows[0].id)
    assert len((await pipeline.get_batch(batch.id)).rows) == 1

    with pytest.raises(NotFoundError):
        await pipeline.delete_row(batch.id, "missing")

    await pipeline.discard_batch(batch.id)
    with pytest.raises(NotFoundError):
        await pipeline.get_batch(batch.id)


@pytest.mark.asyncio
async def test_discard_during_verification_is_not_written_back(pipeline, batch_repository, sleep):
    """Test that a run stops and leaves no batch behind once the batch is discarded."""
    batch = await pipeline.create_batch(
        [
            HEADER,
            ["D. Pillai", "Unknown Academy", "", "Ravi Kumar"],
            ["E. Rao", "Greenwood High", "", "Ravi Kumar"],
            ["F. Rao", "Oakridge", "", "Ravi Kumar"],
        ],
        ADMIN,
    )

    async def discard_between_rows():
        await pipeline.discard_batch(batch.id)

    sleep.hook = discard_between_rows
    summary = await pipeline.verify_batch(batch.id)

    assert summary.processed == 1
    assert summary.cancelled is True
    assert await batch_repository.get(batch.id) is None
    with pytest.raises(NotFoundError):
        await pipeline.get_batch(batch.id)


@pytest.mark.asyncio
async def test_unresolved_first_region_is_not_reported_as_defaulted(pipeline, user_repository):
    """Test that the multiple-regions note needs the first region to exist."""
    await user_repository.add(
        User(
            id="u_nisha",
            email="nisha@example.com",
            full_name="Nisha Rao",
            assigned_regions=["region_gone", "region_blr"],
        )
    )
    batch = await pipeline.create_batch(
        [
            HEADER,
            ["A. Rao", "Greenwood High", "", "Nisha Rao"],
            ["B. Iyer", "Greenwood High", "", "Meera Shah"],
        ],
        ADMIN,
    )

    await pipeline.verify_batch(batch.id)

    unresolved, defaulted = (await pipeline.get_batch(batch.id)).rows
    assert unresolved.status == BulkRowStatus.VERIFIED
    assert unresolved.region_defaulted is False
    assert unresolved.verified.region_name == ""
    assert unresolved.message != "Multiple regions assigned - Defaulted to first"

    assert defaulted.status == BulkRowStatus.VERIFIED
    assert defaulted.region_defaulted is True
    assert defaulted.verified.region_name == "Bengaluru"
    assert defaulted.message == "Multiple regions assigned - Defaulted to first"


@pytest.mark.asyncio
async def test_export_rows(pipeline):
    """Test the batch export records."""
    batch = await pipeline.create_batch(SHEET[:3], ADMIN)
    await pipeline.verify_batch(batch.id)

    records = await pipeline.export_rows(batch.id)

    assert [record["SNo"] for record in records] == [1, 2]
    assert records[0]["School Name"] == "Greenwood High"
    assert records[0]["Zip Code"] == "560001"
    assert records[0]["Incharge"] == "Ravi Kumar"
    assert records[0]["Status"] == "VERIFIED"
    assert records[1]["Original School Name"] == "Oakridge"


def test_extract_zip_code_falls_back_to_address():
    """Test the postal code fallbacks."""
    details = PlaceDetails(
        place_id="p", name="X", formatted_address="Indiranagar, Bengaluru 560038, India"
    )
    assert extract_zip_code(details) == "560038"
    assert extract_zip_code(PlaceDetails(place_id="p", name="X")) == ""
