"""Pytest fixtures for testing

Seeded marketplace:

    gov-a (Cairo): prov-1 (online + COD orders, platform pays),
                   prov-2 (COD only, provider pays)
    gov-b (Giza):  prov-3 (online order in grace period, platform pays)

Settlements: s1 prov-1 pending 209.00, s2 prov-2 pending 35.00,
s3 prov-3 paid, s4 prov-1 waived.
"""

import asyncio
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from settlement_engine.api.main import create_app
from settlement_engine.domain.aggregation import (
    aggregate_to_admin_summary,
    aggregate_to_regional_summaries,
    compute_provider_fact,
)
from settlement_engine.domain.models import (
    LocalizedName,
    OrderFinancialFact,
    OrderSettlementStatus,
    ProviderFinancialFact,
)
from settlement_engine.domain.money import Money
from settlement_engine.infrastructure.database.models import (
    AdminSummaryRow,
    Base,
    FinancialEngineRow,
    GovernorateRecord,
    ProviderRecord,
    RegionalSummaryRow,
    SettlementRecord,
)
from settlement_engine.infrastructure.database.repositories import FinancialRepository
from settlement_engine.infrastructure.database.session import create_session_factory, get_session_factory

S1 = "11111111-aaaa-4aaa-8aaa-000000000001"
S2 = "22222222-bbbb-4bbb-8bbb-000000000002"
S3 = "33333333-cccc-4ccc-8ccc-000000000003"
S4 = "44444444-dddd-4ddd-8ddd-000000000004"

GOVERNORATE_NAMES = {
    "gov-a": LocalizedName(ar="القاهرة", en="Cairo"),
    "gov-b": LocalizedName(ar="الجيزة", en="Giza"),
}
PROVIDER_NAMES = {
    "prov-1": LocalizedName(ar="مطعم النيل", en="Nile Kitchen"),
    "prov-2": LocalizedName(ar="سوبر ماركت الهرم", en="Pyramids Market"),
    "prov-3": LocalizedName(ar="مخبز الجيزة", en="Giza Bakery"),
}
PROVIDER_GOVERNORATES = {"prov-1": "gov-a", "prov-2": "gov-a", "prov-3": "gov-b"}


def _order(order_id: str, provider_id: str, method: str, subtotal: str, delivery: str, **kwargs) -> OrderFinancialFact:
    sub = Money.of(subtotal)
    fee = Money.of(delivery)
    return OrderFinancialFact(
        order_id=order_id,
        provider_id=provider_id,
        payment_method=method,
        total=sub.add(fee),
        subtotal=sub,
        delivery_fee=fee,
        commission_rate=kwargs.pop("commission_rate", 7.0),
        governorate_id=PROVIDER_GOVERNORATES[provider_id],
        **kwargs,
    )


def seed_orders() -> List[OrderFinancialFact]:
    return [
        _order("o-101", "prov-1", "card", "200.00", "30.00"),
        _order("o-102", "prov-1", "cash", "100.00", "15.00"),
        _order("o-103", "prov-1", "cash", "80.00", "10.00", settlement_status=OrderSettlementStatus.EXCLUDED),
        _order("o-201", "prov-2", "cash", "500.00", "20.00", settlement_status=OrderSettlementStatus.ON_HOLD),
        _order("o-301", "prov-3", "wallet", "1000.00", "0.00", in_grace_period=True),
    ]


def seed_facts() -> List[ProviderFinancialFact]:
    orders = seed_orders()
    facts = []
    for provider_id in ("prov-1", "prov-2", "prov-3"):
        facts.append(
            compute_provider_fact(
                provider_id,
                [o for o in orders if o.provider_id == provider_id],
                provider_name=PROVIDER_NAMES[provider_id],
                governorate_id=PROVIDER_GOVERNORATES[provider_id],
            )
        )
    return facts


def _d(money: Money) -> Decimal:
    return money.to_decimal()


def _v(value) -> str:
    return getattr(value, "value", value)


def engine_row(fact: ProviderFinancialFact) -> FinancialEngineRow:
    money_columns = {
        name: _d(getattr(fact, name))
        for name in FinancialEngineRow.__table__.columns.keys()
        if isinstance(getattr(fact, name, None), Money)
    }
    return FinancialEngineRow(
        provider_id=fact.provider_id,
        provider_name_ar=fact.provider_name.ar,
        provider_name_en=fact.provider_name.en,
        governorate_id=fact.governorate_id,
        city_id=fact.city_id,
        commission_status=_v(fact.commission_status),
        commission_rate=fact.commission_rate,
        total_orders=fact.total_orders,
        cod_orders_count=fact.cod_orders_count,
        online_orders_count=fact.online_orders_count,
        eligible_orders_count=fact.eligible_orders_count,
        held_orders_count=fact.held_orders_count,
        settled_orders_count=fact.settled_orders_count,
        refund_percentage=fact.refund_percentage,
        settlement_direction=_v(fact.settlement_direction),
        is_in_grace_period=fact.is_in_grace_period,
        grace_period_days_remaining=fact.grace_period_days_remaining,
        **money_columns,
    )


def admin_row(facts: List[ProviderFinancialFact]) -> AdminSummaryRow:
    summary = aggregate_to_admin_summary(facts)
    return AdminSummaryRow(
        id=1,
        total_providers=summary.total_providers,
        total_orders=summary.total_orders,
        total_revenue=_d(summary.total_revenue),
        total_delivery_fees=_d(summary.total_delivery_fees),
        total_theoretical_commission=_d(summary.total_theoretical_commission),
        total_actual_commission=_d(summary.total_actual_commission),
        total_grace_period_discount=_d(summary.total_grace_period_discount),
        total_refunds=_d(summary.total_refunds),
        total_cod_orders=summary.cod.orders,
        total_cod_revenue=_d(summary.cod.revenue),
        total_cod_commission_owed=_d(summary.cod.commission_owed),
        total_online_orders=summary.online.orders,
        total_online_revenue=_d(summary.online.revenue),
        total_online_payout_owed=_d(summary.online.payout_owed),
        total_net_balance=_d(summary.total_net_balance),
        providers_to_pay=summary.providers_to_pay,
        providers_to_collect=summary.providers_to_collect,
        providers_balanced=summary.providers_balanced,
        total_eligible_orders=summary.eligible_orders,
        total_held_orders=summary.held_orders,
        total_settled_orders=summary.settled_orders,
    )


def regional_rows(facts: List[ProviderFinancialFact]) -> List[RegionalSummaryRow]:
    return [
        RegionalSummaryRow(
            governorate_id=r.governorate_id,
            governorate_name_ar=r.governorate_name.ar,
            governorate_name_en=r.governorate_name.en,
            providers_count=r.providers_count,
            total_orders=r.total_orders,
            cod_orders=r.cod_orders,
            online_orders=r.online_orders,
            gross_revenue=_d(r.gross_revenue),
            total_commission=_d(r.total_commission),
            net_balance=_d(r.net_balance),
            providers_to_pay=r.providers_to_pay,
            providers_to_collect=r.providers_to_collect,
        )
        for r in aggregate_to_regional_summaries(facts, GOVERNORATE_NAMES)
    ]


def settlement_rows() -> List[SettlementRecord]:
    return [
        SettlementRecord(
            id=S1,
            provider_id="prov-1",
            period_start=date(2026, 1, 1),
            period_end=date(2026, 1, 7),
            total_orders=2,
            gross_revenue=Decimal("345.00"),
            platform_commission=Decimal("21.00"),
            delivery_fees_collected=Decimal("45.00"),
            net_amount_due=Decimal("209.00"),
            cod_orders_count=1,
            cod_gross_revenue=Decimal("115.00"),
            cod_commission_owed=Decimal("7.00"),
            online_orders_count=1,
            online_gross_revenue=Decimal("230.00"),
            online_platform_commission=Decimal("14.00"),
            online_payout_owed=Decimal("216.00"),
            net_balance=Decimal("209.00"),
            settlement_direction="platform_pays_provider",
            status="pending",
            amount_paid=Decimal("0"),
            due_date=date(2026, 1, 14),
            created_at=datetime(2026, 1, 8, 9, 0),
            updated_at=datetime(2026, 1, 8, 9, 0),
        ),
        SettlementRecord(
            id=S2,
            provider_id="prov-2",
            period_start=date(2026, 1, 1),
            period_end=date(2026, 1, 7),
            total_orders=1,
            gross_revenue=Decimal("520.00"),
            platform_commission=Decimal("35.00"),
            net_amount_due=Decimal("35.00"),
            cod_orders_count=1,
            cod_gross_revenue=Decimal("520.00"),
            cod_commission_owed=Decimal("35.00"),
            net_balance=Decimal("-35.00"),
            settlement_direction="provider_pays_platform",
            status="pending",
            amount_paid=Decimal("0"),
            created_at=datetime(2026, 1, 9, 9, 0),
            updated_at=datetime(2026, 1, 9, 9, 0),
        ),
        SettlementRecord(
            id=S3,
            provider_id="prov-3",
            period_start=date(2026, 1, 1),
            period_end=date(2026, 1, 7),
            total_orders=1,
            gross_revenue=Decimal("1000.00"),
            net_amount_due=Decimal("1000.00"),
            online_orders_count=1,
            online_gross_revenue=Decimal("1000.00"),
            online_payout_owed=Decimal("1000.00"),
            net_balance=Decimal("1000.00"),
            settlement_direction="platform_pays_provider",
            status="paid",
            amount_paid=Decimal("1000.00"),
            payment_date=datetime(2026, 1, 10, 14, 30),
            payment_method="bank_transfer",
            payment_reference="TRX-3003",
            created_at=datetime(2026, 1, 7, 9, 0),
            updated_at=datetime(2026, 1, 10, 14, 30),
        ),
        SettlementRecord(
            id=S4,
            provider_id="prov-1",
            period_start=date(2025, 12, 1),
            period_end=date(2025, 12, 31),
            net_amount_due=Decimal("12.00"),
            net_balance=Decimal("-12.00"),
            settlement_direction="provider_pays_platform",
            status="waived",
            amount_paid=Decimal("0"),
            created_at=datetime(2026, 1, 1, 9, 0),
            updated_at=datetime(2026, 1, 1, 9, 0),
        ),
    ]


async def create_and_seed(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    facts = seed_facts()
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        async with session.begin():
            session.add_all(
                [GovernorateRecord(id=g, name_ar=n.ar, name_en=n.en) for g, n in GOVERNORATE_NAMES.items()]
            )
            session.add_all(
                [
                    ProviderRecord(id=p, name_ar=n.ar, name_en=n.en, governorate_id=PROVIDER_GOVERNORATES[p])
                    for p, n in PROVIDER_NAMES.items()
                ]
            )
            session.add_all([engine_row(f) for f in facts])
            session.add(admin_row(facts))
            session.add_all(regional_rows(facts))
            session.add_all(settlement_rows())


def _database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'settlements.db'}"


class SteppingClock:
    """Deterministic timestamps: each call advances one minute"""

    def __init__(self, start: datetime = datetime(2026, 2, 1, 10, 0)):
        self.current = start

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(minutes=1)
        return self.current


@pytest.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Seeded SQLite database, one per test"""
    engine = create_async_engine(_database_url(tmp_path), poolclass=NullPool)
    await create_and_seed(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine):
    return create_session_factory(engine)


@pytest.fixture
def repository(session_factory) -> FinancialRepository:
    return FinancialRepository(session_factory, now=SteppingClock())


@pytest.fixture
def client(tmp_path) -> TestClient:
    """Create FastAPI test client backed by a seeded SQLite database"""
    engine = create_async_engine(_database_url(tmp_path), poolclass=NullPool)
    asyncio.run(create_and_seed(engine))

    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: create_session_factory(engine)
    return TestClient(app)
