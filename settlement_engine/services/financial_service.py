"""Scoped financial reads and settlement payments for admin and provider dashboards"""

import asyncio
import time
from typing import Callable, List, Optional, Sequence

from settlement_engine.config import settings
from settlement_engine.domain.aggregation import (
    aggregate_to_admin_summary,
    aggregate_to_regional_summaries,
    empty_admin_summary,
    map_to_provider_summary,
    merge_provider_facts,
)
from settlement_engine.domain.exceptions import DataSourceError, PaymentRejectedError, ProviderRequiredError
from settlement_engine.domain.models import (
    AdminFinancialSummary,
    FinancialFilters,
    ProviderFinancialFact,
    ProviderFinancialSummary,
    RegionalFinancialSummary,
    Settlement,
    SettlementAuditLogEntry,
    SettlementExportData,
    SettlementPayment,
)
from settlement_engine.infrastructure.database.repositories import FinancialRepository
from settlement_engine.infrastructure.observability.logging import log_data_source_failure, log_payment_outcome
from settlement_engine.infrastructure.observability.metrics import (
    record_data_source_failure,
    record_payment,
    record_region_cache_lookup,
)


def _narrows_facts(filters: Optional[FinancialFilters]) -> bool:
    if filters is None:
        return False
    return bool(filters.governorate_id or filters.city_id or filters.provider_id or filters.directions)


class FinancialService:
    """
    Financial dashboard reads for one caller scope.

    Scope is fixed at construction: a provider id, a regional admin's
    governorate list, both, or neither (global admin). Scope is always ANDed
    with caller filters, so a filter can narrow the result but never widen it.

    Construct one instance per request; the provider-ids-in-region cache lives
    on the instance and must not leak across scopes.
    """

    def __init__(
        self,
        repository: FinancialRepository,
        provider_id: Optional[str] = None,
        governorate_ids: Optional[Sequence[str]] = None,
        is_regional_admin: bool = False,
        clock: Callable[[], float] = time.monotonic,
        cache_ttl_seconds: Optional[float] = None,
    ):
        self.repository = repository
        self.provider_id = provider_id
        self.governorate_ids = list(governorate_ids or [])
        self.is_regional_admin = is_regional_admin
        self.clock = clock
        self.cache_ttl_seconds = (
            settings.region_cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
        )

        self._cached_provider_ids: Optional[List[str]] = None
        self._cache_timestamp = 0.0

    @property
    def is_scoped(self) -> bool:
        return self.provider_id is not None or self.is_regional_admin

    def _scope_governorates(self) -> Optional[List[str]]:
        # A regional admin with no regions sees nothing, not everything
        return self.governorate_ids if self.is_regional_admin else None

    def _report_failure(self, operation: str, error: Exception, **context) -> None:
        log_data_source_failure(operation, error, provider_id=self.provider_id, **context)
        record_data_source_failure(operation)

    # Region cache

    async def _region_provider_ids(self) -> List[str]:
        """Provider ids in the admin's governorates, cached for cache_ttl_seconds"""
        now = self.clock()
        if self._cached_provider_ids is not None and now - self._cache_timestamp < self.cache_ttl_seconds:
            record_region_cache_lookup(hit=True)
            return self._cached_provider_ids

        record_region_cache_lookup(hit=False)
        provider_ids = await self.repository.fetch_provider_ids_in_regions(self.governorate_ids)
        self._cached_provider_ids = provider_ids
        self._cache_timestamp = now
        return provider_ids

    def invalidate_cache(self) -> None:
        """Drop cached region membership, e.g. after a provider changes governorate"""
        self._cached_provider_ids = None
        self._cache_timestamp = 0.0

    async def _is_visible(self, settlement: Settlement) -> bool:
        if self.provider_id is not None and settlement.provider_id != self.provider_id:
            return False
        if self.is_regional_admin:
            return settlement.provider_id in await self._region_provider_ids()
        return True

    # Financial facts and summaries

    async def get_financial_facts(self, filters: Optional[FinancialFilters] = None) -> List[ProviderFinancialFact]:
        if self.is_regional_admin and not self.governorate_ids:
            return []
        try:
            return await self.repository.fetch_engine_rows(
                provider_id=self.provider_id,
                governorate_ids=self._scope_governorates(),
                filters=filters,
            )
        except DataSourceError as e:
            self._report_failure("get_financial_facts", e)
            return []

    async def get_admin_summary(self, filters: Optional[FinancialFilters] = None) -> AdminFinancialSummary:
        """
        Platform totals.

        Scoped callers and narrowing filters get a local re-aggregation of the
        permitted facts. The unfiltered global view trusts the precomputed
        admin_financial_summary row.
        """
        if self.is_scoped or _narrows_facts(filters):
            return aggregate_to_admin_summary(await self.get_financial_facts(filters))

        try:
            summary = await self.repository.fetch_admin_summary()
        except DataSourceError as e:
            self._report_failure("get_admin_summary", e)
            return empty_admin_summary()
        return summary or empty_admin_summary()

    async def get_provider_summary(self, provider_id: Optional[str] = None) -> Optional[ProviderFinancialSummary]:
        target = provider_id or self.provider_id
        if target is None:
            raise ProviderRequiredError("Provider ID is required")
        if self.provider_id is not None and target != self.provider_id:
            return None

        facts = await self.get_financial_facts(FinancialFilters(provider_id=target))
        if not facts:
            return None
        return map_to_provider_summary(merge_provider_facts(facts))

    async def get_regional_summary(
        self, filters: Optional[FinancialFilters] = None
    ) -> List[RegionalFinancialSummary]:
        if self.is_regional_admin and not self.governorate_ids:
            return []

        # The regional view has no provider/city grain; regroup facts instead
        finer_grain = filters is not None and bool(filters.city_id or filters.provider_id or filters.directions)
        if self.provider_id is not None or finer_grain:
            return aggregate_to_regional_summaries(await self.get_financial_facts(filters))

        try:
            return await self.repository.fetch_regional_rows(
                governorate_ids=self._scope_governorates(),
                governorate_id=filters.governorate_id if filters else None,
            )
        except DataSourceError as e:
            self._report_failure("get_regional_summary", e)
            return []

    # Settlements

    async def get_settlements(self, filters: Optional[FinancialFilters] = None) -> List[Settlement]:
        """Settlements visible to this scope, newest first"""
        try:
            provider_ids = None
            if self.is_regional_admin:
                provider_ids = await self._region_provider_ids()
                if not provider_ids:
                    return []
            if filters is not None and filters.governorate_id:
                in_governorate = await self.repository.fetch_provider_ids_in_regions([filters.governorate_id])
                if provider_ids is not None:
                    in_governorate = [p for p in in_governorate if p in provider_ids]
                if not in_governorate:
                    return []
                provider_ids = in_governorate

            return await self.repository.fetch_settlements(
                provider_id=self.provider_id,
                provider_ids=provider_ids,
                filters=filters,
            )
        except DataSourceError as e:
            self._report_failure("get_settlements", e)
            return []

    async def get_settlement_by_id(self, settlement_id: str) -> Optional[Settlement]:
        try:
            settlement = await self.repository.fetch_settlement(settlement_id)
            if settlement is None or not await self._is_visible(settlement):
                return None
            return settlement
        except DataSourceError as e:
            self._report_failure("get_settlement_by_id", e, settlement_id=settlement_id)
            return None

    async def get_settlement_audit_log(self, settlement_id: str) -> List[SettlementAuditLogEntry]:
        """Audit trail, most recent first; empty when the settlement is not visible"""
        try:
            if self.is_scoped:
                settlement = await self.repository.fetch_settlement(settlement_id)
                if settlement is None or not await self._is_visible(settlement):
                    return []
            return await self.repository.fetch_audit_log(settlement_id)
        except DataSourceError as e:
            self._report_failure("get_settlement_audit_log", e, settlement_id=settlement_id)
            return []

    async def get_settlement_export_data(
        self, settlement_id: str, include_audit_log: bool = False
    ) -> Optional[SettlementExportData]:
        """Settlement plus audit trail for the printable report, fetched concurrently"""
        try:
            if include_audit_log:
                settlement, audit_log = await asyncio.gather(
                    self.repository.fetch_settlement(settlement_id),
                    self.repository.fetch_audit_log(settlement_id),
                )
            else:
                settlement, audit_log = await self.repository.fetch_settlement(settlement_id), []

            if settlement is None or not await self._is_visible(settlement):
                return None
        except DataSourceError as e:
            self._report_failure("get_settlement_export_data", e, settlement_id=settlement_id)
            return None

        return SettlementExportData(
            settlement=settlement,
            provider_name=settlement.provider_name,
            audit_log=audit_log,
        )

    async def record_payment(self, payment: SettlementPayment) -> bool:
        """
        Apply a payment; True only when it was committed.

        Rejections (terminal status, overpayment, out of scope) and data source
        failures are logged and reported as False.
        """
        amount_piasters = payment.amount.to_minor_units()
        try:
            if self.is_scoped:
                settlement = await self.repository.fetch_settlement(payment.settlement_id)
                if settlement is None or not await self._is_visible(settlement):
                    raise PaymentRejectedError(f"Settlement {payment.settlement_id} is outside caller scope")
            await self.repository.record_settlement_payment(payment)
        except PaymentRejectedError as e:
            log_payment_outcome(payment.settlement_id, False, amount_piasters, payment.payment_method, str(e))
            record_payment("rejected")
            return False
        except DataSourceError as e:
            self._report_failure("record_payment", e, settlement_id=payment.settlement_id)
            record_payment("failed")
            return False

        log_payment_outcome(payment.settlement_id, True, amount_piasters, payment.payment_method)
        record_payment("accepted", amount_piasters)
        return True


def create_admin_financial_service(
    repository: FinancialRepository,
    governorate_ids: Optional[Sequence[str]] = None,
    is_regional_admin: bool = False,
) -> FinancialService:
    return FinancialService(repository, governorate_ids=governorate_ids, is_regional_admin=is_regional_admin)


def create_provider_financial_service(repository: FinancialRepository, provider_id: str) -> FinancialService:
    return FinancialService(repository, provider_id=provider_id)
