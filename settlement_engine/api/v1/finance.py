"""GET /v1/finance/* - Admin, regional and provider financial dashboards"""

from fastapi import APIRouter, Depends, HTTPException

from settlement_engine.api.dependencies import get_filters, get_financial_service
from settlement_engine.api.v1.schemas import (
    AdminSummaryResponse,
    ProviderSummaryResponse,
    RegionalSummaryResponse,
    admin_summary_response,
    provider_summary_response,
    regional_summary_item,
)
from settlement_engine.domain.models import FinancialFilters
from settlement_engine.services.financial_service import FinancialService

router = APIRouter()


@router.get("/finance/admin-summary", response_model=AdminSummaryResponse)
async def get_admin_summary(
    filters: FinancialFilters = Depends(get_filters),
    service: FinancialService = Depends(get_financial_service),
):
    """
    Platform totals for the admin dashboard.

    Regional admins only ever see their own governorates; an unavailable data
    source yields an all-zero summary rather than an error.
    """
    summary = await service.get_admin_summary(filters)
    return admin_summary_response(summary)


@router.get("/finance/regional-summary", response_model=RegionalSummaryResponse)
async def get_regional_summary(
    filters: FinancialFilters = Depends(get_filters),
    service: FinancialService = Depends(get_financial_service),
):
    regions = await service.get_regional_summary(filters)
    return RegionalSummaryResponse(regions=[regional_summary_item(r) for r in regions])


@router.get("/finance/provider-summary", response_model=ProviderSummaryResponse)
async def get_own_provider_summary(service: FinancialService = Depends(get_financial_service)):
    """Summary for the calling provider (X-Provider-Id)"""
    summary = await service.get_provider_summary()
    if summary is None:
        raise HTTPException(status_code=404, detail="No financial data for provider")
    return provider_summary_response(summary)


@router.get("/finance/providers/{provider_id}/summary", response_model=ProviderSummaryResponse)
async def get_provider_summary(
    provider_id: str,
    service: FinancialService = Depends(get_financial_service),
):
    summary = await service.get_provider_summary(provider_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="No financial data for provider")
    return provider_summary_response(summary)
