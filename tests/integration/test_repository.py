"""Integration tests for the financial repository against a seeded SQLite database"""

from datetime import date

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from settlement_engine.domain.exceptions import DataSourceError, PaymentRejectedError
from settlement_engine.domain.models import DateRange, FinancialFilters, SettlementPayment, SettlementStatus
from settlement_engine.domain.money import Money
from settlement_engine.infrastructure.database.repositories import FinancialRepository
from settlement_engine.infrastructure.database.session import create_session_factory
from tests.conftest import S1, S2, S3, S4


def payment(settlement_id: str, amount: str, **kwargs) -> SettlementPayment:
    return SettlementPayment(
        settlement_id=settlement_id,
        amount=Money.of(amount),
        payment_method=kwargs.pop("payment_method", "bank_transfer"),
        **kwargs,
    )


async def test_engine_rows_map_to_facts(repository: FinancialRepository):
    facts = await repository.fetch_engine_rows()

    assert [f.provider_id for f in facts] == ["prov-1", "prov-2", "prov-3"]
    nile = facts[0]
    assert nile.provider_name.en == "Nile Kitchen"
    assert nile.gross_revenue == Money.of(345)
    assert nile.net_balance == Money.of(209)
    assert nile.settlement_direction == "platform_pays_provider"


async def test_engine_rows_scope_is_anded_with_filters(repository: FinancialRepository):
    in_region = await repository.fetch_engine_rows(governorate_ids=["gov-a"])
    assert {f.provider_id for f in in_region} == {"prov-1", "prov-2"}

    widened = await repository.fetch_engine_rows(
        governorate_ids=["gov-a"], filters=FinancialFilters(governorate_id="gov-b")
    )
    assert widened == []

    collecting = await repository.fetch_engine_rows(filters=FinancialFilters(directions=["provider_pays_platform"]))
    assert [f.provider_id for f in collecting] == ["prov-2"]


async def test_admin_summary_row(repository: FinancialRepository):
    summary = await repository.fetch_admin_summary()

    assert summary.total_providers == 3
    assert summary.total_orders == 4
    assert summary.total_revenue == Money.of(1865)
    assert summary.total_actual_commission == Money.of(56)
    assert summary.total_grace_period_discount == Money.of(70)
    assert summary.total_net_balance == Money.of(1174)
    assert (summary.providers_to_pay, summary.providers_to_collect) == (2, 1)
    assert (summary.eligible_orders, summary.held_orders) == (3, 1)


async def test_regional_rows(repository: FinancialRepository):
    regions = await repository.fetch_regional_rows()
    assert [r.governorate_id for r in regions] == ["gov-a", "gov-b"]
    assert regions[0].gross_revenue == Money.of(865)
    assert regions[0].governorate_name.en == "Cairo"

    only_giza = await repository.fetch_regional_rows(governorate_ids=["gov-a", "gov-b"], governorate_id="gov-b")
    assert [r.net_balance for r in only_giza] == [Money.of(1000)]


async def test_provider_ids_in_regions(repository: FinancialRepository):
    assert await repository.fetch_provider_ids_in_regions(["gov-a"]) == ["prov-1", "prov-2"]
    assert await repository.fetch_provider_ids_in_regions([]) == []


async def test_settlements_newest_first(repository: FinancialRepository):
    settlements = await repository.fetch_settlements()

    assert [s.id for s in settlements] == [S2, S1, S3, S4]
    assert settlements[1].provider_name.en == "Nile Kitchen"
    assert settlements[1].online.payout_owed == Money.of(216)
    assert settlements[0].net_balance == Money.of(-35)


async def test_settlement_filters(repository: FinancialRepository):
    pending = await repository.fetch_settlements(filters=FinancialFilters(statuses=["pending"]))
    assert [s.id for s in pending] == [S2, S1]

    own = await repository.fetch_settlements(provider_id="prov-1")
    assert [s.id for s in own] == [S1, S4]

    january = await repository.fetch_settlements(
        provider_ids=["prov-1", "prov-3"],
        filters=FinancialFilters(date_range=DateRange(start=date(2026, 1, 1), end=date(2026, 1, 7))),
    )
    assert [s.id for s in january] == [S1, S3]


async def test_fetch_missing_settlement_is_none(repository: FinancialRepository):
    assert await repository.fetch_settlement("00000000-0000-0000-0000-000000000000") is None


async def test_partial_then_full_payment(repository: FinancialRepository):
    """209.00 due: 100 → partially_paid, then 109 → paid"""
    partial = await repository.record_settlement_payment(
        payment(S1, "100", payment_reference="TRX-1", processed_by="admin-1")
    )
    assert partial.status == SettlementStatus.PARTIALLY_PAID
    assert partial.amount_paid == Money.of(100)
    assert partial.payment_reference == "TRX-1"

    paid = await repository.record_settlement_payment(payment(S1, "109", processed_by="admin-1", notes="final"))
    assert paid.status == SettlementStatus.PAID
    assert paid.amount_paid == Money.of(209)

    stored = await repository.fetch_settlement(S1)
    assert stored.status == "paid"
    assert stored.amount_paid == Money.of(209)
    assert stored.processed_by == "admin-1"

    audit = await repository.fetch_audit_log(S1)
    assert [e.action for e in audit] == ["record_payment", "record_partial_payment"]
    assert audit[0].amount == Money.of(109)
    assert audit[0].notes == "final"
    assert audit[0].old_value == {"status": "partially_paid", "amount_paid": "100.00"}
    assert audit[0].new_value == {"status": "paid", "amount_paid": "209.00"}
    assert audit[1].admin_id == "admin-1"


async def test_overpayment_is_rejected(repository: FinancialRepository):
    with pytest.raises(PaymentRejectedError):
        await repository.record_settlement_payment(payment(S2, "35.01"))

    untouched = await repository.fetch_settlement(S2)
    assert untouched.amount_paid.is_zero()
    assert untouched.status == "pending"
    assert await repository.fetch_audit_log(S2) == []


@pytest.mark.parametrize("settlement_id", [S3, S4])
async def test_terminal_settlements_reject_payments(repository: FinancialRepository, settlement_id):
    with pytest.raises(PaymentRejectedError):
        await repository.record_settlement_payment(payment(settlement_id, "1"))


@pytest.mark.parametrize("amount", ["0", "-5"])
async def test_non_positive_amount_is_rejected(repository: FinancialRepository, amount):
    with pytest.raises(PaymentRejectedError):
        await repository.record_settlement_payment(payment(S1, amount))


async def test_unknown_settlement_payment_is_rejected(repository: FinancialRepository):
    with pytest.raises(PaymentRejectedError):
        await repository.record_settlement_payment(payment("00000000-0000-0000-0000-000000000000", "10"))


async def test_database_errors_surface_as_data_source_error(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'nowhere.db'}", poolclass=NullPool)
    repository = FinancialRepository(create_session_factory(engine))

    with pytest.raises(DataSourceError):
        await repository.fetch_settlements()

    await engine.dispose()


class RefusingSession:
    """Session whose queries fail the way asyncpg does when the server is down"""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, *args, **kwargs):
        raise ConnectionRefusedError(111, "Connect call failed ('127.0.0.1', 5432)")


@pytest.mark.parametrize("error", [ConnectionRefusedError(111, "refused"), TimeoutError("timed out")])
async def test_connection_failures_surface_as_data_source_error(error):
    def refusing_factory():
        raise error

    with pytest.raises(DataSourceError):
        await FinancialRepository(refusing_factory).fetch_engine_rows()


async def test_refused_query_surfaces_as_data_source_error():
    repository = FinancialRepository(RefusingSession)

    with pytest.raises(DataSourceError):
        await repository.fetch_settlements()
    with pytest.raises(DataSourceError):
        await repository.fetch_admin_summary()
