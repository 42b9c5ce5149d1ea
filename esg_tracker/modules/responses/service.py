"""ESG response store: ownership, per-year uniqueness, upsert and soft delete."""

from __future__ import annotations

import math
import uuid
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import exc as sa_exc
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from esg_tracker.models.esg import ESGResponse
from esg_tracker.modules.responses.calculator import derive_ratios
from esg_tracker.modules.responses.errors import (
    Conflict,
    InvalidInput,
    NotFound,
    PartialOwnership,
    StoreUnavailable,
    Unauthorized,
)
from esg_tracker.schemas.auth import CurrentUser

logger = structlog.get_logger()

RAW_NUMERIC_FIELDS: tuple[str, ...] = (
    "total_electricity",
    "renewable_electricity",
    "total_fuel",
    "carbon_emissions",
    "total_employees",
    "female_employees",
    "training_hours",
    "community_investment",
    "independent_board",
    "total_revenue",
)
RAW_FIELDS: tuple[str, ...] = (*RAW_NUMERIC_FIELDS, "data_privacy_policy")
DERIVED_FIELDS: frozenset[str] = frozenset(
    {"carbon_intensity", "renewable_ratio", "diversity_ratio", "community_spend_ratio"}
)
# Identity and store-managed columns; never writable through a payload
PROTECTED_FIELDS: frozenset[str] = frozenset(
    {"id", "user_id", "financial_year", "created_at", "updated_at", "is_deleted", "deleted_at"}
)
PERCENTAGE_FIELDS: frozenset[str] = frozenset({"independent_board"})
# financial_year is stored as a 32-bit INTEGER
MAX_FINANCIAL_YEAR = 2**31 - 1

_UNAVAILABLE = (sa_exc.OperationalError, sa_exc.InterfaceError, sa_exc.TimeoutError)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Validation ────────────────────────────────────────────────────────────────


def validate_financial_year(financial_year: Any) -> int:
    if (
        not isinstance(financial_year, int)
        or isinstance(financial_year, bool)
        or financial_year <= 0
    ):
        raise InvalidInput(
            "financial_year must be a positive integer", field="financial_year"
        )
    if financial_year > MAX_FINANCIAL_YEAR:
        raise InvalidInput(
            f"financial_year must be at most {MAX_FINANCIAL_YEAR}", field="financial_year"
        )
    return financial_year


def validate_raw_inputs(raw_inputs: Mapping[str, Any] | None) -> dict[str, Any]:
    """Check a partial map of raw ESG fields and return the writable subset.

    Derived ratios are dropped (they are always recomputed); identity and
    store-managed fields, unknown names and malformed values are rejected.
    """
    cleaned: dict[str, Any] = {}
    for field, value in (raw_inputs or {}).items():
        if field in DERIVED_FIELDS:
            continue
        if field in PROTECTED_FIELDS:
            raise InvalidInput(f"{field} cannot be set or changed", field=field)
        if field == "data_privacy_policy":
            if value is not None and not isinstance(value, bool):
                raise InvalidInput("data_privacy_policy must be true, false or null", field=field)
            cleaned[field] = value
            continue
        if field not in RAW_NUMERIC_FIELDS:
            raise InvalidInput(f"Unknown ESG field: {field}", field=field)

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidInput(f"{field} must be a number", field=field)
        if not math.isfinite(value):
            raise InvalidInput(f"{field} must be a finite number", field=field)
        if value < 0:
            raise InvalidInput(f"{field} must not be negative", field=field)
        if field in PERCENTAGE_FIELDS and value > 100:
            raise InvalidInput(f"{field} is a percentage and must be at most 100", field=field)
        cleaned[field] = float(value)
    return cleaned


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate connectivity failures from the database into StoreUnavailable."""
    try:
        yield
    except _UNAVAILABLE as exc:
        logger.error("esg_response_store_unavailable", operation=operation, error=str(exc))
        raise StoreUnavailable(
            "The ESG response store is temporarily unavailable. Please try again later."
        ) from exc


# ── Store ─────────────────────────────────────────────────────────────────────


class ResponseStore:
    """Create-or-update, retrieval and soft deletion of ESG responses.

    Every operation takes the owner's ``user_id`` explicitly and checks it
    against the authenticated caller. The store flushes but never commits on
    its own; call ``commit()`` once the unit of work is complete.
    """

    def __init__(
        self,
        db: AsyncSession,
        current_user: CurrentUser | None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.current_user = current_user
        self.clock = clock

    def _authorize(self, user_id: uuid.UUID) -> None:
        if self.current_user is None:
            raise Unauthorized("Authentication required")
        if self.current_user.user_id != user_id:
            logger.warning(
                "esg_response_caller_mismatch",
                caller_id=str(self.current_user.user_id),
                user_id=str(user_id),
            )
            raise Unauthorized("Caller may only act on their own ESG responses")

    async def _find_active(self, user_id: uuid.UUID, financial_year: int) -> ESGResponse | None:
        result = await self.db.execute(
            select(ESGResponse).where(
                ESGResponse.user_id == user_id,
                ESGResponse.financial_year == financial_year,
                ESGResponse.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    async def _get_owned(self, user_id: uuid.UUID, response_id: uuid.UUID) -> ESGResponse:
        record = await self.db.get(ESGResponse, response_id)
        if record is None or record.user_id != user_id:
            raise NotFound()
        return record

    def _new_record(
        self, user_id: uuid.UUID, financial_year: int, fields: dict[str, Any]
    ) -> ESGResponse:
        raw: dict[str, Any] = {name: 0.0 for name in RAW_NUMERIC_FIELDS}
        raw["data_privacy_policy"] = None
        raw.update(fields)
        now = self.clock()
        return ESGResponse(
            id=uuid.uuid4(),
            user_id=user_id,
            financial_year=financial_year,
            **raw,
            **derive_ratios(raw),
            is_deleted=False,
            deleted_at=None,
            created_at=now,
            updated_at=now,
        )

    async def _apply_update(self, record: ESGResponse, fields: dict[str, Any]) -> ESGResponse:
        for name, value in fields.items():
            setattr(record, name, value)
        merged = {name: getattr(record, name) for name in RAW_FIELDS}
        for name, value in derive_ratios(merged).items():
            setattr(record, name, value)
        record.updated_at = self.clock()
        await self.db.flush()
        logger.info(
            "esg_response_updated",
            response_id=str(record.id),
            user_id=str(record.user_id),
            financial_year=record.financial_year,
            fields=sorted(fields),
        )
        return record

    # ── Operations ────────────────────────────────────────────────────────────

    async def upsert(
        self,
        user_id: uuid.UUID,
        financial_year: int,
        raw_inputs: Mapping[str, Any] | None = None,
    ) -> ESGResponse:
        """Create the (user, year) record, or merge raw_inputs into the live one.

        A concurrent insert for the same key surfaces as an IntegrityError on
        the unique index; that loser is retried once as an update.
        """
        self._authorize(user_id)
        validate_financial_year(financial_year)
        fields = validate_raw_inputs(raw_inputs)

        with _store_errors("upsert"):
            existing = await self._find_active(user_id, financial_year)
            if existing is not None:
                return await self._apply_update(existing, fields)

            record = self._new_record(user_id, financial_year, fields)
            try:
                async with self.db.begin_nested():
                    self.db.add(record)
                    await self.db.flush()
            except sa_exc.IntegrityError:
                logger.info(
                    "esg_response_upsert_conflict_retry",
                    user_id=str(user_id),
                    financial_year=financial_year,
                )
                existing = await self._find_active(user_id, financial_year)
                if existing is None:
                    raise Conflict(
                        f"Could not save ESG response for {financial_year}: "
                        "a conflicting write could not be resolved"
                    ) from None
                try:
                    return await self._apply_update(existing, fields)
                except sa_exc.IntegrityError as exc:
                    raise Conflict(
                        f"Could not save ESG response for {financial_year}"
                    ) from exc

        logger.info(
            "esg_response_created",
            response_id=str(record.id),
            user_id=str(user_id),
            financial_year=financial_year,
        )
        return record

    async def update_by_id(
        self,
        user_id: uuid.UUID,
        response_id: uuid.UUID,
        raw_inputs: Mapping[str, Any] | None,
    ) -> ESGResponse:
        """Partially update a live record addressed by id; ratios are recomputed."""
        self._authorize(user_id)
        fields = validate_raw_inputs(raw_inputs)
        with _store_errors("update_by_id"):
            record = await self._get_owned(user_id, response_id)
            if record.is_deleted:
                raise NotFound()
            return await self._apply_update(record, fields)

    async def list_active(
        self,
        user_id: uuid.UUID,
        financial_year: int | None = None,
    ) -> list[ESGResponse]:
        """All non-deleted records owned by user_id, newest financial year first."""
        self._authorize(user_id)
        stmt = select(ESGResponse).where(
            ESGResponse.user_id == user_id,
            ESGResponse.is_deleted.is_(False),
        )
        if financial_year is not None:
            stmt = stmt.where(
                ESGResponse.financial_year == validate_financial_year(financial_year)
            )
        stmt = stmt.order_by(ESGResponse.financial_year.desc())
        with _store_errors("list_active"):
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

    async def get_by_id(self, user_id: uuid.UUID, response_id: uuid.UUID) -> ESGResponse:
        """Direct lookup; soft-deleted records are still returned for audit."""
        self._authorize(user_id)
        with _store_errors("get_by_id"):
            return await self._get_owned(user_id, response_id)

    async def soft_delete(self, user_id: uuid.UUID, response_id: uuid.UUID) -> None:
        """Mark a record deleted. Deleting an already-deleted record is a no-op."""
        self._authorize(user_id)
        with _store_errors("soft_delete"):
            record = await self._get_owned(user_id, response_id)
            if record.is_deleted:
                return
            now = self.clock()
            record.is_deleted = True
            record.deleted_at = now
            record.updated_at = now
            await self.db.flush()
        logger.info(
            "esg_response_soft_deleted",
            response_id=str(response_id),
            user_id=str(user_id),
            financial_year=record.financial_year,
        )

    async def bulk_soft_delete(
        self, user_id: uuid.UUID, response_ids: Iterable[uuid.UUID]
    ) -> int:
        """Soft-delete a batch of records, all or nothing.

        Every id must exist and belong to user_id, otherwise nothing is
        deleted. Already-deleted ids are skipped. Returns how many records
        were newly deleted.
        """
        self._authorize(user_id)
        ids = list(dict.fromkeys(response_ids))
        if not ids:
            return 0

        with _store_errors("bulk_soft_delete"):
            result = await self.db.execute(
                select(ESGResponse).where(ESGResponse.id.in_(ids))
            )
            records = {record.id: record for record in result.scalars().all()}
            foreign = [
                rid for rid in ids
                if rid not in records or records[rid].user_id != user_id
            ]
            if foreign:
                logger.warning(
                    "esg_response_bulk_delete_rejected",
                    user_id=str(user_id),
                    requested=len(ids),
                    rejected=len(foreign),
                )
                raise PartialOwnership(
                    f"{len(foreign)} of {len(ids)} ids are not owned by the caller; nothing was deleted"
                )

            now = self.clock()
            deleted = 0
            for record in records.values():
                if record.is_deleted:
                    continue
                record.is_deleted = True
                record.deleted_at = now
                record.updated_at = now
                deleted += 1
            await self.db.flush()

        logger.info(
            "esg_response_bulk_soft_deleted",
            user_id=str(user_id),
            requested=len(ids),
            deleted=deleted,
        )
        return deleted

    async def commit(self) -> None:
        with _store_errors("commit"):
            await self.db.commit()
