"""HTTP routes."""

import logging
from typing import Optional, Union

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Header,
    HTTPException,
    Query,
    Response,
    UploadFile,
    status,
)

from app.adapters.outbound.spreadsheet.workbook import (
    CSV_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    SpreadsheetError,
    read_first_sheet,
    write_csv,
    write_xlsx,
)
from app.application.dtos.bulk_upload import (
    BulkBatchResponse,
    BulkRowResponse,
    CommitSummary,
    RowEditRequest,
)
from app.application.dtos.dashboard import (
    AdminDashboard,
    LeadFilters,
    UserDashboard,
    UserPerformance,
)
from app.application.dtos.directory import (
    BulkRoleUpdateRequest,
    CreateUserRequest,
    LoginRequest,
    LoginResponse,
    NotificationResponse,
    PasswordResetRequest,
    RegionRequest,
    RegionResponse,
    UpdateUserRequest,
    UserResponse,
)
from app.application.dtos.lead import (
    ApproveLeadRequest,
    AssignLeadsRequest,
    ClaimLeadRequest,
    CreateLeadRequest,
    DuplicateCheckRequest,
    DuplicateCheckResponse,
    LeadResponse,
    LeadUpdateRequest,
    StageOverrideRequest,
    StatusOverrideRequest,
)
from app.application.dtos.place import PlaceCandidate, PlacePrediction
from app.application.ports.place_search_client import PlaceSearchError
from app.application.use_cases.bulk_upload_pipeline import EXPORT_COLUMNS, TEMPLATE_COLUMNS
from app.application.use_cases.export_reports import (
    LEAD_CSV_COLUMNS,
    LEAD_XLSX_COLUMNS,
    USER_PERFORMANCE_COLUMNS,
    lead_records,
    user_performance_records,
)
from app.domain.entities.lead import Lead
from app.domain.entities.user import User
from app.domain.errors import (
    AuthenticationError,
    ConflictError,
    DuplicateLeadError,
    InactiveAccountError,
    InvalidTransitionError,
    LeadValidationError,
    NotFoundError,
    OpportunityTrackerError,
    PermissionDeniedError,
    SimilarLeadWarning,
)
from app.infrastructure.logging.logger import log_event, logger
from app.infrastructure.wiring.dependencies import Services

router = APIRouter()

# Use cases wired with the adapters chosen by settings
_services = Services()


def get_services() -> Services:
    """Wired use cases (overridden in tests)."""
    return _services


def _http_error(err: OpportunityTrackerError) -> HTTPException:
    """
    Translate a domain error to an HTTPException.

    Args:
        err: Error raised by a use case

    Returns:
        HTTPException with the matching status code
    """
    if isinstance(err, LeadValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": err.message, "field": err.field},
        )
    if isinstance(err, DuplicateLeadError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": err.message,
                "match_type": "exact",
                "lead_ids": err.duplicate_lead_ids,
            },
        )
    if isinstance(err, SimilarLeadWarning):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": err.message,
                "match_type": "similar",
                "lead_ids": err.similar_lead_ids,
            },
        )
    if isinstance(err, (InvalidTransitionError, ConflictError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=err.message)
    if isinstance(err, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=err.message)
    if isinstance(err, AuthenticationError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=err.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(err, (InactiveAccountError, PermissionDeniedError)):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=err.message)
    # BusinessRuleError
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=err.message)


def bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    """
    Extract the session token from an Authorization header.

    Raises:
        HTTPException: 401 if the header is missing or not a bearer token
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token.strip()


async def current_user(
    token: str = Depends(bearer_token), services: Services = Depends(get_services)
) -> User:
    """Signed-in user for the bearer token (extends the session)."""
    try:
        return await services.auth.resolve_session(token)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e


async def admin_user(user: User = Depends(current_user)) -> User:
    """
    Signed-in admin.

    Raises:
        HTTPException: 403 if the user is not an admin
    """
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


def lead_filters(
    search: Optional[str] = None,
    user_id: Optional[str] = None,
    stage: Optional[str] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    region_id: Optional[str] = None,
) -> LeadFilters:
    """Listing and dashboard filters from the query string."""
    return LeadFilters(
        search=search,
        user_id=user_id,
        stage=stage,
        status=status_filter,
        region_id=region_id,
    )


def _lead_responses(leads: list[Lead], services: Services) -> list[LeadResponse]:
    now = services.lifecycle.now()
    return [LeadResponse.from_entity(lead, now) for lead in leads]


def _download(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> dict[str, str]:
    """
    Health check endpoint for liveness/readiness.

    Returns:
        Health status
    """
    return {"status": "ok"}


# Authentication


@router.post("/auth/login", response_model=LoginResponse)
async def login(
    request: LoginRequest, services: Services = Depends(get_services)
) -> LoginResponse:
    """
    Sign in with email and password.

    Returns:
        Session token and profile summary
    """
    try:
        return await services.auth.login(request.email, request.password)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e


@router.post("/auth/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: str = Depends(bearer_token), services: Services = Depends(get_services)
) -> Response:
    await services.auth.logout(token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/auth/password-reset", status_code=status.HTTP_202_ACCEPTED)
async def password_reset(
    request: PasswordResetRequest, services: Services = Depends(get_services)
) -> dict[str, str]:
    """Trigger a password reset email (always accepted)."""
    await services.auth.request_password_reset(request.email)
    return {"status": "sent"}


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(current_user)) -> UserResponse:
    return UserResponse.from_entity(user)


# Regions


@router.get("/regions", response_model=list[RegionResponse])
async def list_regions(
    active_only: bool = False,
    _: User = Depends(current_user),
    services: Services = Depends(get_services),
) -> list[RegionResponse]:
    regions = await services.directory.list_regions(active_only=active_only)
    return [RegionResponse.from_entity(region) for region in regions]


@router.post("/regions", status_code=status.HTTP_201_CREATED, response_model=RegionResponse)
async def create_region(
    request: RegionRequest,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> RegionResponse:
    try:
        return RegionResponse.from_entity(await services.directory.create_region(request))
    except OpportunityTrackerError as e:
        raise _http_error(e) from e


@router.put("/regions/{region_id}", response_model=RegionResponse)
async def update_region(
    region_id: str,
    request: RegionRequest,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> RegionResponse:
    try:
        region = await services.directory.update_region(region_id, request)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return RegionResponse.from_entity(region)


@router.post("/regions/{region_id}/toggle", response_model=RegionResponse)
async def toggle_region(
    region_id: str,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> RegionResponse:
    try:
        return RegionResponse.from_entity(await services.directory.toggle_region(region_id))
    except OpportunityTrackerError as e:
        raise _http_error(e) from e


@router.delete("/regions/{region_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_region(
    region_id: str,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> Response:
    try:
        await services.directory.delete_region(region_id)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Users


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    _: User = Depends(admin_user), services: Services = Depends(get_services)
) -> list[UserResponse]:
    return [UserResponse.from_entity(user) for user in await services.directory.list_users()]


@router.post("/users", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def create_user(
    request: CreateUserRequest,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> UserResponse:
    """
    Create a user account (identity provider account plus profile).

    Returns:
        Created user
    """
    try:
        return UserResponse.from_entity(await services.directory.create_user(request))
    except OpportunityTrackerError as e:
        raise _http_error(e) from e


@router.post("/users/bulk-role", response_model=list[UserResponse])
async def bulk_update_roles(
    request: BulkRoleUpdateRequest,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> list[UserResponse]:
    try:
        users = await services.directory.bulk_update_roles(request.user_ids, request.role)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return [UserResponse.from_entity(user) for user in users]


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> UserResponse:
    try:
        return UserResponse.from_entity(await services.directory.get_user(user_id))
    except OpportunityTrackerError as e:
        raise _http_error(e) from e


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> UserResponse:
    try:
        return UserResponse.from_entity(await services.directory.update_user(user_id, request))
    except OpportunityTrackerError as e:
        raise _http_error(e) from e


@router.post("/users/{user_id}/toggle", response_model=UserResponse)
async def toggle_user(
    user_id: str,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> UserResponse:
    try:
        return UserResponse.from_entity(await services.directory.toggle_user(user_id))
    except OpportunityTrackerError as e:
        raise _http_error(e) from e


# Leads


@router.post("/leads", status_code=status.HTTP_201_CREATED, response_model=LeadResponse)
async def create_lead(
    request: CreateLeadRequest,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
) -> LeadResponse:
    """
    Create a lead from the create-lead form.

    No duplicate: the lead is auto-approved to the creator. A similar lead
    needs confirm_similar=true and then waits for admin review. An exact
    duplicate is refused.

    Returns:
        Created lead
    """
    try:
        lead = await services.lifecycle.submit_lead(
            request, user, confirm_similar=request.confirm_similar
        )
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return LeadResponse.from_entity(lead, services.lifecycle.now())


@router.post("/leads/check", response_model=DuplicateCheckResponse)
async def check_duplicates(
    request: DuplicateCheckRequest,
    _: User = Depends(current_user),
    services: Services = Depends(get_services),
) -> DuplicateCheckResponse:
    result = await services.duplicate_checker.execute(
        school_name=request.school_name,
        zip_code=request.zip_code,
        contact_phone=request.contact_phone,
        address=request.address,
        exclude_lead_id=request.exclude_lead_id,
    )
    return DuplicateCheckResponse(
        is_duplicate=result.is_duplicate,
        match_type=result.match_type,
        message=result.message,
        duplicate_leads=_lead_responses(result.duplicate_leads, services),
    )


@router.get("/leads", response_model=list[LeadResponse])
async def list_leads(
    filters: LeadFilters = Depends(lead_filters),
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> list[LeadResponse]:
    return _lead_responses(await services.lifecycle.list_all(filters), services)


@router.get("/leads/pending", response_model=list[LeadResponse])
async def list_pending_leads(
    _: User = Depends(admin_user), services: Services = Depends(get_services)
) -> list[LeadResponse]:
    return _lead_responses(await services.lifecycle.list_pending(), services)


@router.get("/leads/pool", response_model=list[LeadResponse])
async def list_pool_leads(
    _: User = Depends(current_user), services: Services = Depends(get_services)
) -> list[LeadResponse]:
    return _lead_responses(await services.lifecycle.list_pool(), services)


@router.get("/leads/mine", response_model=list[LeadResponse])
async def list_my_leads(
    user: User = Depends(current_user), services: Services = Depends(get_services)
) -> list[LeadResponse]:
    return _lead_responses(await services.lifecycle.list_assigned_to(user.id), services)


@router.get("/leads/created", response_model=list[LeadResponse])
async def list_created_leads(
    user: User = Depends(current_user), services: Services = Depends(get_services)
) -> list[LeadResponse]:
    return _lead_responses(await services.lifecycle.list_created_by(user.id), services)


@router.get("/leads/expired-locks", response_model=list[LeadResponse])
async def list_expired_locks(
    _: User = Depends(admin_user), services: Services = Depends(get_services)
) -> list[LeadResponse]:
    return _lead_responses(await services.lifecycle.list_expired_locks(), services)


@router.get("/leads/export")
async def export_leads(
    export_format: str = Query(default="xlsx", alias="format", pattern="^(xlsx|csv)$"),
    filters: LeadFilters = Depends(lead_filters),
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> Response:
    """
    Download the filtered lead list.

    Returns:
        xlsx with the extended column set, or csv with the short one
    """
    leads = await services.lifecycle.list_all(filters)
    date_tag = services.lifecycle.now().strftime("%Y-%m-%d")
    if export_format == "csv":
        content = write_csv(lead_records(leads, extended=False), LEAD_CSV_COLUMNS)
        return _download(content, CSV_MEDIA_TYPE, f"leads_{date_tag}.csv")
    content = write_xlsx("Leads", lead_records(leads), LEAD_XLSX_COLUMNS)
    return _download(content, XLSX_MEDIA_TYPE, f"leads_{date_tag}.xlsx")


@router.post("/leads/assign", response_model=list[LeadResponse])
async def assign_leads(
    request: AssignLeadsRequest,
    admin: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> list[LeadResponse]:
    try:
        leads = await services.lifecycle.assign_leads(
            request.lead_ids, request.user_id, request.lock_months, assigned_by=admin
        )
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return _lead_responses(leads, services)


@router.get("/leads/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: str,
    _: User = Depends(current_user),
    services: Services = Depends(get_services),
) -> LeadResponse:
    try:
        lead = await services.lifecycle.get_lead(lead_id)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return LeadResponse.from_entity(lead, services.lifecycle.now())


@router.post("/leads/{lead_id}/approve", response_model=LeadResponse)
async def approve_lead(
    lead_id: str,
    request: Optional[ApproveLeadRequest] = None,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> LeadResponse:
    lock_months = request.lock_months if request else None
    try:
        lead = await services.lifecycle.approve_lead(lead_id, lock_months=lock_months)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return LeadResponse.from_entity(lead, services.lifecycle.now())


@router.post("/leads/{lead_id}/reject", response_model=LeadResponse)
async def reject_lead(
    lead_id: str,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> LeadResponse:
    try:
        lead = await services.lifecycle.reject_lead(lead_id)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return LeadResponse.from_entity(lead, services.lifecycle.now())


@router.post("/leads/{lead_id}/claim", response_model=LeadResponse)
async def claim_lead(
    lead_id: str,
    request: Optional[ClaimLeadRequest] = None,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
) -> LeadResponse:
    """
    Claim a pool lead for the signed-in user.

    A concurrent claim that lands first makes this one fail with 409.

    Returns:
        Locked lead
    """
    lock_months = request.lock_months if request else None
    try:
        lead = await services.lifecycle.claim_lead(
            lead_id, user.id, user.full_name, lock_months=lock_months
        )
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return LeadResponse.from_entity(lead, services.lifecycle.now())


@router.post("/leads/{lead_id}/updates", response_model=LeadResponse)
async def add_lead_update(
    lead_id: str,
    request: LeadUpdateRequest,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
) -> LeadResponse:
    try:
        lead = await services.lifecycle.add_lead_update(lead_id, request, actor=user)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return LeadResponse.from_entity(lead, services.lifecycle.now())


@router.put("/leads/{lead_id}/status", response_model=LeadResponse)
async def update_lead_status(
    lead_id: str,
    request: StatusOverrideRequest,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> LeadResponse:
    try:
        lead = await services.lifecycle.update_lead_status(lead_id, request.status.value)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return LeadResponse.from_entity(lead, services.lifecycle.now())


@router.put("/leads/{lead_id}/stage", response_model=LeadResponse)
async def update_lead_stage(
    lead_id: str,
    request: StageOverrideRequest,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> LeadResponse:
    try:
        lead = await services.lifecycle.update_lead_stage(lead_id, request.stage.value)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return LeadResponse.from_entity(lead, services.lifecycle.now())


# Dashboards and reports


@router.get("/dashboard/admin", response_model=AdminDashboard)
async def admin_dashboard(
    filters: LeadFilters = Depends(lead_filters),
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> AdminDashboard:
    return await services.dashboard.admin_dashboard(filters)


@router.get("/dashboard/me", response_model=UserDashboard)
async def user_dashboard(
    filters: LeadFilters = Depends(lead_filters),
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
) -> UserDashboard:
    return await services.dashboard.user_dashboard(user, filters)


@router.get("/reports/user-performance", response_model=None)
async def user_performance_report(
    export_format: str = Query(default="json", alias="format", pattern="^(json|xlsx)$"),
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> Union[list[UserPerformance], Response]:
    """
    Per-user performance, as JSON or as an xlsx download.

    Returns:
        Performance entries, or the spreadsheet
    """
    performance = await services.dashboard.user_performance()
    if export_format == "json":
        return performance
    users = await services.directory.list_users()
    content = write_xlsx(
        "User Performance",
        user_performance_records(performance, users),
        USER_PERFORMANCE_COLUMNS,
    )
    date_tag = services.lifecycle.now().strftime("%Y-%m-%d")
    return _download(content, XLSX_MEDIA_TYPE, f"user_performance_{date_tag}.xlsx")


# Notifications


@router.get("/notifications", response_model=list[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
) -> list[NotificationResponse]:
    notifications = await services.notifications.list(user.id, unread_only=unread_only)
    return [NotificationResponse.from_entity(item) for item in notifications]


@router.post("/notifications/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(
    notification_id: str,
    user: User = Depends(current_user),
    services: Services = Depends(get_services),
) -> Response:
    try:
        await services.notifications.mark_read(notification_id, user.id)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Bulk upload


async def _verify_in_background(services: Services, batch_id: str) -> None:
    try:
        await services.bulk_upload.verify_batch(batch_id)
    except OpportunityTrackerError as e:
        # Batch discarded or already processing
        log_event(
            component="bulk_upload",
            action="verification_skipped",
            level=logging.WARNING,
            batch_id=batch_id,
            reason=e.message,
        )


@router.post(
    "/bulk-uploads", status_code=status.HTTP_202_ACCEPTED, response_model=BulkBatchResponse
)
async def upload_bulk_file(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    admin: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> BulkBatchResponse:
    """
    Parse an xlsx upload into a batch and start verification in the background.

    Returns:
        Batch with PENDING rows (poll GET /bulk-uploads/{batch_id} for progress)
    """
    content = await file.read()
    try:
        sheet_rows = read_first_sheet(content)
    except SpreadsheetError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    try:
        batch = await services.bulk_upload.create_batch(sheet_rows, uploaded_by=admin)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e

    background_tasks.add_task(_verify_in_background, services, batch.id)
    return BulkBatchResponse.from_entity(batch)


@router.get("/bulk-uploads/template")
async def download_bulk_template(_: User = Depends(admin_user)) -> Response:
    content = write_xlsx("Template", [], TEMPLATE_COLUMNS)
    return _download(content, XLSX_MEDIA_TYPE, "bulk_upload_template.xlsx")


@router.get("/bulk-uploads/{batch_id}", response_model=BulkBatchResponse)
async def get_bulk_batch(
    batch_id: str,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> BulkBatchResponse:
    try:
        return BulkBatchResponse.from_entity(await services.bulk_upload.get_batch(batch_id))
    except OpportunityTrackerError as e:
        raise _http_error(e) from e


@router.delete("/bulk-uploads/{batch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_bulk_batch(
    batch_id: str,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> Response:
    try:
        await services.bulk_upload.discard_batch(batch_id)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/bulk-uploads/{batch_id}/verify",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=BulkBatchResponse,
)
async def reverify_bulk_batch(
    batch_id: str,
    background_tasks: BackgroundTasks,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> BulkBatchResponse:
    """Re-run verification over rows that have not been processed yet."""
    try:
        batch = await services.bulk_upload.get_batch(batch_id)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    if batch.verifying:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Batch is already being processed"
        )
    background_tasks.add_task(_verify_in_background, services, batch_id)
    return BulkBatchResponse.from_entity(batch)


@router.post("/bulk-uploads/{batch_id}/cancel", status_code=status.HTTP_202_ACCEPTED)
async def cancel_bulk_batch(
    batch_id: str,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> dict[str, str]:
    try:
        await services.bulk_upload.cancel(batch_id)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return {"status": "cancel_requested"}


@router.post("/bulk-uploads/{batch_id}/commit", response_model=CommitSummary)
async def commit_bulk_batch(
    batch_id: str,
    admin: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> CommitSummary:
    """
    Write VERIFIED and "Will Update" rows as leads.

    Returns:
        Uploaded, failed and skipped counts
    """
    try:
        return await services.bulk_upload.commit_batch(batch_id, committed_by=admin)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e


@router.put("/bulk-uploads/{batch_id}/rows/{row_id}", response_model=BulkRowResponse)
async def edit_bulk_row(
    batch_id: str,
    row_id: str,
    request: RowEditRequest,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> BulkRowResponse:
    try:
        row = await services.bulk_upload.edit_row(batch_id, row_id, request)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return BulkRowResponse.from_entity(row)


@router.post(
    "/bulk-uploads/{batch_id}/rows/{row_id}/select-place", response_model=BulkRowResponse
)
async def select_bulk_row_place(
    batch_id: str,
    row_id: str,
    place_id: str = Query(..., min_length=1),
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> BulkRowResponse:
    """Resolve a NO_MATCH or MULTIPLE_MATCHES row by picking a place."""
    try:
        row = await services.bulk_upload.select_place(batch_id, row_id, place_id)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    except PlaceSearchError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
    return BulkRowResponse.from_entity(row)


@router.delete(
    "/bulk-uploads/{batch_id}/rows/{row_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_bulk_row(
    batch_id: str,
    row_id: str,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> Response:
    try:
        await services.bulk_upload.delete_row(batch_id, row_id)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/bulk-uploads/{batch_id}/export")
async def export_bulk_batch(
    batch_id: str,
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> Response:
    try:
        records = await services.bulk_upload.export_rows(batch_id)
    except OpportunityTrackerError as e:
        raise _http_error(e) from e
    content = write_xlsx("Bulk Upload", records, EXPORT_COLUMNS)
    return _download(content, XLSX_MEDIA_TYPE, f"bulk_upload_{batch_id}.xlsx")


# Place search


@router.get("/places/search", response_model=list[PlacePrediction])
async def search_places(
    q: str = Query(..., min_length=3),
    _: User = Depends(current_user),
    services: Services = Depends(get_services),
) -> list[PlacePrediction]:
    """
    School autocomplete for the create-lead form.

    Returns:
        Predictions, empty when the search service is unavailable
    """
    try:
        return await services.place_search_client.predictions(q)
    except PlaceSearchError as e:
        logger.warning(f"Place search failed for {q!r}: {str(e)}")
        return []


@router.get("/places/text-search", response_model=list[PlaceCandidate])
async def text_search_places(
    q: str = Query(..., min_length=3),
    _: User = Depends(admin_user),
    services: Services = Depends(get_services),
) -> list[PlaceCandidate]:
    """Free-text place search used to resolve bulk rows by hand."""
    try:
        return await services.place_search_client.text_search(q)
    except PlaceSearchError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
