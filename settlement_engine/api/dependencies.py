"""Dependency injection for FastAPI endpoints"""

from datetime import date
from typing import List, Optional

from fastapi import Depends, Header, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from settlement_engine.domain.models import DateRange, FinancialFilters
from settlement_engine.infrastructure.database.repositories import FinancialRepository
from settlement_engine.infrastructure.database.session import get_session_factory
from settlement_engine.services.financial_service import (
    FinancialService,
    create_admin_financial_service,
    create_provider_financial_service,
)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_repository(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> FinancialRepository:
    return FinancialRepository(session_factory)


def parse_governorate_ids(header_value: Optional[str]) -> Optional[List[str]]:
    """Comma separated governorate ids; None when the header is absent"""
    if header_value is None:
        return None
    return [g.strip() for g in header_value.split(",") if g.strip()]


def get_financial_service(
    repository: FinancialRepository = Depends(get_repository),
    x_provider_id: Optional[str] = Header(None, description="Set by the gateway for provider sessions"),
    x_governorate_ids: Optional[str] = Header(None, description="Set by the gateway for regional admins"),
) -> FinancialService:
    """
    Build a service scoped to the authenticated caller.

    A fresh instance per request keeps the region cache from leaking
    between callers.
    """
    if x_provider_id:
        return create_provider_financial_service(repository, x_provider_id)

    governorate_ids = parse_governorate_ids(x_governorate_ids)
    if governorate_ids is not None:
        return create_admin_financial_service(repository, governorate_ids=governorate_ids, is_regional_admin=True)
    return create_admin_financial_service(repository)


def get_filters(
    start_date: Optional[date] = Query(None, description="Period start (inclusive)"),
    end_date: Optional[date] = Query(None, description="Period end (inclusive)"),
    governorate_id: Optional[str] = Query(None),
    city_id: Optional[str] = Query(None),
    provider_id: Optional[str] = Query(None),
    status: List[str] = Query([], description="Settlement status, repeatable"),
    direction: List[str] = Query([], description="Settlement direction, repeatable"),
) -> FinancialFilters:
    if (start_date is None) != (end_date is None):
        raise HTTPException(status_code=422, detail="start_date and end_date must be given together")
    if start_date is not None and end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date is before start_date")
    date_range = DateRange(start=start_date, end=end_date) if start_date is not None else None
    return FinancialFilters(
        date_range=date_range,
        governorate_id=governorate_id,
        city_id=city_id,
        provider_id=provider_id,
        statuses=status,
        directions=direction,
    )
