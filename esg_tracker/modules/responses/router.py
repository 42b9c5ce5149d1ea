"""ESG responses API router."""

import uuid

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from esg_tracker.auth.dependencies import get_current_user
from esg_tracker.core.database import get_db, get_readonly_db
from esg_tracker.models.esg import ESGResponse
from esg_tracker.modules.responses.errors import ESGResponseError
from esg_tracker.modules.responses.schemas import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    ESGResponseOut,
    ESGResponseUpdateRequest,
    ESGResponseUpsertRequest,
    SummaryRow,
)
from esg_tracker.modules.responses.service import ResponseStore
from esg_tracker.modules.responses.summary import (
    build_summary_rows,
    export_summary_csv,
    format_financial_year,
)
from esg_tracker.schemas.auth import CurrentUser

logger = structlog.get_logger()

router = APIRouter(prefix="/responses", tags=["responses"])


def _to_response(r: ESGResponse) -> ESGResponseOut:
    return ESGResponseOut(
        id=r.id,
        user_id=r.user_id,
        financial_year=r.financial_year,
        financial_year_label=format_financial_year(r.financial_year),
        total_electricity=r.total_electricity,
        renewable_electricity=r.renewable_electricity,
        total_fuel=r.total_fuel,
        carbon_emissions=r.carbon_emissions,
        total_employees=r.total_employees,
        female_employees=r.female_employees,
        training_hours=r.training_hours,
        community_investment=r.community_investment,
        independent_board=r.independent_board,
        data_privacy_policy=r.data_privacy_policy,
        total_revenue=r.total_revenue,
        carbon_intensity=r.carbon_intensity,
        renewable_ratio=r.renewable_ratio,
        diversity_ratio=r.diversity_ratio,
        community_spend_ratio=r.community_spend_ratio,
        is_deleted=r.is_deleted,
        deleted_at=r.deleted_at,
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


def _http_error(exc: ESGResponseError) -> HTTPException:
    detail: dict = {"error": exc.code, "message": exc.message}
    field = getattr(exc, "field", None)
    if field:
        detail["detail"] = {"field": field}
    headers = {"Retry-After": "5"} if exc.retryable else None
    return HTTPException(status_code=exc.status_code, detail=detail, headers=headers)


# ── Collection (fixed paths before /{response_id}) ───────────────────────────


@router.get("", response_model=list[ESGResponseOut])
async def list_responses(
    financial_year: int | None = Query(None, description="Filter to one financial year, e.g. 2023"),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_readonly_db),
):
    """Live ESG responses for the caller, newest financial year first."""
    store = ResponseStore(db, current_user)
    try:
        records = await store.list_active(current_user.user_id, financial_year)
    except ESGResponseError as exc:
        raise _http_error(exc) from exc
    return [_to_response(r) for r in records]


@router.post("", response_model=ESGResponseOut, status_code=status.HTTP_200_OK)
async def upsert_response(
    body: ESGResponseUpsertRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create or update the caller's ESG response for a financial year."""
    raw_inputs = body.model_dump(exclude={"financial_year"}, exclude_unset=True)
    store = ResponseStore(db, current_user)
    try:
        record = await store.upsert(current_user.user_id, body.financial_year, raw_inputs)
        await store.commit()
    except ESGResponseError as exc:
        raise _http_error(exc) from exc
    return _to_response(record)


@router.get("/summary", response_model=list[SummaryRow])
async def get_summary(
    financial_year: int | None = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_readonly_db),
):
    """Display-ready ratios per financial year, oldest first."""
    store = ResponseStore(db, current_user)
    try:
        records = await store.list_active(current_user.user_id, financial_year)
    except ESGResponseError as exc:
        raise _http_error(exc) from exc
    return build_summary_rows(records)


@router.get("/summary/export")
async def export_summary(
    financial_year: int | None = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_readonly_db),
):
    """Export the ESG summary as CSV."""
    store = ResponseStore(db, current_user)
    try:
        records = await store.list_active(current_user.user_id, financial_year)
    except ESGResponseError as exc:
        raise _http_error(exc) from exc
    csv_content = export_summary_csv(build_summary_rows(records))
    filename = f"esg-summary{f'-{financial_year}' if financial_year else ''}.csv"
    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_responses(
    body: BulkDeleteRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete several responses; fails as a whole if any id is not the caller's."""
    store = ResponseStore(db, current_user)
    try:
        deleted = await store.bulk_soft_delete(current_user.user_id, body.ids)
        await store.commit()
    except ESGResponseError as exc:
        raise _http_error(exc) from exc
    return BulkDeleteResponse(deleted=deleted)


# ── Single record ────────────────────────────────────────────────────────────


@router.get("/{response_id}", response_model=ESGResponseOut)
async def get_response(
    response_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_readonly_db),
):
    """Fetch one response by id, including soft-deleted ones."""
    store = ResponseStore(db, current_user)
    try:
        record = await store.get_by_id(current_user.user_id, response_id)
    except ESGResponseError as exc:
        raise _http_error(exc) from exc
    return _to_response(record)


@router.put("/{response_id}", response_model=ESGResponseOut)
async def update_response(
    response_id: uuid.UUID,
    body: ESGResponseUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partially update a response; derived ratios are recomputed."""
    store = ResponseStore(db, current_user)
    try:
        record = await store.update_by_id(
            current_user.user_id, response_id, body.model_dump(exclude_unset=True)
        )
        await store.commit()
    except ESGResponseError as exc:
        raise _http_error(exc) from exc
    return _to_response(record)


@router.delete("/{response_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_response(
    response_id: uuid.UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete a response. Repeating the call is harmless."""
    store = ResponseStore(db, current_user)
    try:
        await store.soft_delete(current_user.user_id, response_id)
        await store.commit()
    except ESGResponseError as exc:
        raise _http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
