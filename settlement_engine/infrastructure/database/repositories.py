"""Data access layer for settlement engine views and settlement records"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from settlement_engine.domain.exceptions import DataSourceError, PaymentRejectedError
from settlement_engine.domain.models import (
    AdminFinancialSummary,
    AuditAction,
    FinancialFilters,
    ProviderFinancialFact,
    RegionalFinancialSummary,
    Settlement,
    SettlementAuditLogEntry,
    SettlementPayment,
    SettlementStatus,
)
from settlement_engine.domain.money import Money
from settlement_engine.domain.settlements import is_terminal_status, status_after_payment
from settlement_engine.infrastructure.database.mappers import (
    map_admin_summary,
    map_audit_log,
    map_engine_row,
    map_regional_summary,
    map_settlement,
)
from settlement_engine.infrastructure.database.models import (
    AdminSummaryRow,
    FinancialEngineRow,
    ProviderRecord,
    RegionalSummaryRow,
    SettlementAuditLogRecord,
    SettlementRecord,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FinancialRepository:
    """
    Read access to the financial engine views plus the settlement payment write.

    Each call opens its own session, so independent reads can be awaited
    concurrently. SQLAlchemy errors and driver connection failures surface
    as DataSourceError.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        now: Callable[[], datetime] = _utcnow,
    ):
        self.session_factory = session_factory
        self.now = now

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            raise DataSourceError(f"{operation} failed: {e}") from e

    async def fetch_engine_rows(
        self,
        provider_id: Optional[str] = None,
        governorate_ids: Optional[Sequence[str]] = None,
        filters: Optional[FinancialFilters] = None,
    ) -> List[ProviderFinancialFact]:
        """Provider rows of financial_settlement_engine, scope ANDed with filters"""
        query = select(FinancialEngineRow)
        if provider_id is not None:
            query = query.where(FinancialEngineRow.provider_id == provider_id)
        if governorate_ids is not None:
            query = query.where(FinancialEngineRow.governorate_id.in_(list(governorate_ids)))
        if filters is not None:
            if filters.governorate_id:
                query = query.where(FinancialEngineRow.governorate_id == filters.governorate_id)
            if filters.city_id:
                query = query.where(FinancialEngineRow.city_id == filters.city_id)
            if filters.provider_id:
                query = query.where(FinancialEngineRow.provider_id == filters.provider_id)
            if filters.directions:
                query = query.where(FinancialEngineRow.settlement_direction.in_(list(filters.directions)))
        query = query.order_by(FinancialEngineRow.provider_id)

        async with self._session("fetch_engine_rows") as session:
            rows = (await session.execute(query)).scalars().all()
        return [map_engine_row(row) for row in rows]

    async def fetch_admin_summary(self) -> Optional[AdminFinancialSummary]:
        """Precomputed platform-wide row; None when the view is empty"""
        async with self._session("fetch_admin_summary") as session:
            row = (await session.execute(select(AdminSummaryRow).limit(1))).scalars().first()
        return map_admin_summary(row) if row is not None else None

    async def fetch_regional_rows(
        self,
        governorate_ids: Optional[Sequence[str]] = None,
        governorate_id: Optional[str] = None,
    ) -> List[RegionalFinancialSummary]:
        query = select(RegionalSummaryRow)
        if governorate_ids is not None:
            query = query.where(RegionalSummaryRow.governorate_id.in_(list(governorate_ids)))
        if governorate_id:
            query = query.where(RegionalSummaryRow.governorate_id == governorate_id)
        query = query.order_by(RegionalSummaryRow.governorate_id)

        async with self._session("fetch_regional_rows") as session:
            rows = (await session.execute(query)).scalars().all()
        return [map_regional_summary(row) for row in rows]

    async def fetch_provider_ids_in_regions(self, governorate_ids: Sequence[str]) -> List[str]:
        if not governorate_ids:
            return []
        query = (
            select(ProviderRecord.id)
            .where(ProviderRecord.governorate_id.in_(list(governorate_ids)))
            .order_by(ProviderRecord.id)
        )
        async with self._session("fetch_provider_ids_in_regions") as session:
            return list((await session.execute(query)).scalars().all())

    async def fetch_settlements(
        self,
        provider_id: Optional[str] = None,
        provider_ids: Optional[Sequence[str]] = None,
        filters: Optional[FinancialFilters] = None,
    ) -> List[Settlement]:
        """Settlements newest first"""
        query = select(SettlementRecord)
        if provider_id is not None:
            query = query.where(SettlementRecord.provider_id == provider_id)
        if provider_ids is not None:
            query = query.where(SettlementRecord.provider_id.in_(list(provider_ids)))
        if filters is not None:
            if filters.provider_id:
                query = query.where(SettlementRecord.provider_id == filters.provider_id)
            if filters.statuses:
                query = query.where(SettlementRecord.status.in_(list(filters.statuses)))
            if filters.directions:
                query = query.where(SettlementRecord.settlement_direction.in_(list(filters.directions)))
            if filters.date_range is not None:
                query = query.where(
                    SettlementRecord.period_start >= filters.date_range.start,
                    SettlementRecord.period_end <= filters.date_range.end,
                )
        query = query.order_by(SettlementRecord.created_at.desc(), SettlementRecord.period_start.desc())

        async with self._session("fetch_settlements") as session:
            rows = (await session.execute(query)).unique().scalars().all()
        return [map_settlement(row) for row in rows]

    async def fetch_settlement(self, settlement_id: str) -> Optional[Settlement]:
        query = select(SettlementRecord).where(SettlementRecord.id == settlement_id)
        async with self._session("fetch_settlement") as session:
            row = (await session.execute(query)).unique().scalars().first()
        return map_settlement(row) if row is not None else None

    async def fetch_audit_log(self, settlement_id: str) -> List[SettlementAuditLogEntry]:
        """Audit rows for one settlement, most recent first"""
        query = (
            select(SettlementAuditLogRecord)
            .where(SettlementAuditLogRecord.settlement_id == settlement_id)
            .order_by(SettlementAuditLogRecord.performed_at.desc())
        )
        async with self._session("fetch_audit_log") as session:
            rows = (await session.execute(query)).scalars().all()
        return [map_audit_log(row) for row in rows]

    async def record_settlement_payment(self, payment: SettlementPayment) -> Settlement:
        """
        Apply a payment to a settlement in one transaction.

        The settlement row is locked (SELECT ... FOR UPDATE) while the new
        cumulative amount is checked, so concurrent payments serialize.

        Raises:
            PaymentRejectedError: unknown settlement, non-positive amount,
                terminal status or overpayment
            DataSourceError: database failure
        """
        if not payment.amount.is_positive():
            raise PaymentRejectedError(f"Payment amount must be positive, got {payment.amount}")

        async with self._session("record_settlement_payment") as session:
            async with session.begin():
                query = (
                    select(SettlementRecord)
                    .where(SettlementRecord.id == payment.settlement_id)
                    .with_for_update(of=SettlementRecord)
                )
                record = (await session.execute(query)).unique().scalars().first()
                if record is None:
                    raise PaymentRejectedError(f"Settlement {payment.settlement_id} not found")
                if is_terminal_status(record.status):
                    raise PaymentRejectedError(
                        f"Settlement {payment.settlement_id} is {record.status}; no further payments accepted"
                    )

                already_paid = Money.from_database(record.amount_paid)
                due = Money.from_database(record.net_amount_due)
                new_paid = already_paid.add(payment.amount)
                if new_paid.greater_than(due):
                    raise PaymentRejectedError(
                        f"Payment of {payment.amount} exceeds remaining {due.subtract(already_paid)}"
                    )

                new_status = status_after_payment(new_paid, due)
                now = self.now()
                old_value = {"status": record.status, "amount_paid": already_paid.to_fixed()}

                record.amount_paid = new_paid.to_decimal()
                record.status = new_status.value
                record.payment_date = now
                record.payment_method = payment.payment_method
                record.payment_reference = payment.payment_reference
                record.processed_by = payment.processed_by
                record.updated_at = now

                action = (
                    AuditAction.RECORD_PAYMENT
                    if new_status == SettlementStatus.PAID
                    else AuditAction.RECORD_PARTIAL_PAYMENT
                )
                session.add(
                    SettlementAuditLogRecord(
                        settlement_id=record.id,
                        action=action.value,
                        admin_id=payment.processed_by,
                        performed_at=now,
                        created_at=now,
                        old_value=old_value,
                        new_value={"status": new_status.value, "amount_paid": new_paid.to_fixed()},
                        payment_reference=payment.payment_reference,
                        payment_method=payment.payment_method,
                        amount=payment.amount.to_decimal(),
                        notes=payment.notes,
                    )
                )

            return map_settlement(record)
