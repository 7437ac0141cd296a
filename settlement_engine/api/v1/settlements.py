"""Settlement listing, payments and exports"""

import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, Response

from settlement_engine.api.dependencies import get_filters, get_financial_service, get_request_id
from settlement_engine.api.v1.schemas import (
    AuditLogResponse,
    PaymentRequest,
    PaymentResponse,
    SettlementListResponse,
    SettlementResponse,
    audit_log_entry_schema,
    settlement_response,
)
from settlement_engine.config import settings
from settlement_engine.domain.models import ExportOptions, FinancialFilters, SettlementPayment
from settlement_engine.domain.money import Money
from settlement_engine.reports.export import csv_filename, generate_settlement_html, generate_settlements_csv, html_filename
from settlement_engine.services.financial_service import FinancialService

router = APIRouter()

LOCALE_PATTERN = "^(ar|en)$"


@router.get("/settlements", response_model=SettlementListResponse)
async def list_settlements(
    filters: FinancialFilters = Depends(get_filters),
    service: FinancialService = Depends(get_financial_service),
):
    """Settlements visible to the caller, newest first"""
    settlements = await service.get_settlements(filters)
    return SettlementListResponse(
        settlements=[settlement_response(s) for s in settlements],
        count=len(settlements),
    )


# Declared before /settlements/{settlement_id} so "export.csv" is not taken as an id
@router.get("/settlements/export.csv")
async def export_settlements_csv(
    locale: str = Query(settings.default_locale, pattern=LOCALE_PATTERN),
    filters: FinancialFilters = Depends(get_filters),
    service: FinancialService = Depends(get_financial_service),
):
    settlements = await service.get_settlements(filters)
    content = generate_settlements_csv(settlements, locale)
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename(date.today())}"'},
    )


@router.get("/settlements/{settlement_id}", response_model=SettlementResponse)
async def get_settlement(
    settlement_id: str,
    service: FinancialService = Depends(get_financial_service),
):
    settlement = await service.get_settlement_by_id(settlement_id)
    if settlement is None:
        raise HTTPException(status_code=404, detail="Settlement not found")
    return settlement_response(settlement)


@router.get("/settlements/{settlement_id}/audit-log", response_model=AuditLogResponse)
async def get_settlement_audit_log(
    settlement_id: str,
    service: FinancialService = Depends(get_financial_service),
):
    entries = await service.get_settlement_audit_log(settlement_id)
    return AuditLogResponse(
        settlement_id=settlement_id,
        entries=[audit_log_entry_schema(e) for e in entries],
    )


@router.post("/settlements/{settlement_id}/payments", response_model=PaymentResponse)
async def record_settlement_payment(
    settlement_id: str,
    request_body: PaymentRequest,
    request: Request,
    service: FinancialService = Depends(get_financial_service),
):
    """
    Record a (partial) payment against a settlement.

    Returns:
        The updated settlement; 409 when the payment was rejected
        (terminal status, overpayment, unknown settlement) or could not be stored
    """
    request_id = get_request_id(request)
    payment = SettlementPayment(
        settlement_id=settlement_id,
        amount=Money.of(request_body.amount),
        payment_method=request_body.payment_method.value,
        payment_reference=request_body.payment_reference,
        processed_by=request_body.processed_by,
        notes=request_body.notes,
    )

    recorded = await service.record_payment(payment)
    if not recorded:
        logging.warning(
            f"Payment not recorded for settlement {settlement_id}",
            extra={"request_id": request_id, "settlement_id": settlement_id},
        )
        raise HTTPException(status_code=409, detail="Payment could not be recorded")

    settlement = await service.get_settlement_by_id(settlement_id)
    return PaymentResponse(
        recorded=True,
        settlement=settlement_response(settlement) if settlement else None,
    )


@router.get("/settlements/{settlement_id}/report", response_class=HTMLResponse)
async def download_settlement_report(
    settlement_id: str,
    locale: str = Query(settings.default_locale, pattern=LOCALE_PATTERN),
    include_audit_log: bool = Query(False),
    date_format: str = Query("short", pattern="^(short|long)$"),
    service: FinancialService = Depends(get_financial_service),
):
    """Printable HTML report (save as PDF from the browser)"""
    data = await service.get_settlement_export_data(settlement_id, include_audit_log=include_audit_log)
    if data is None:
        raise HTTPException(status_code=404, detail="Settlement not found")

    options = ExportOptions(
        locale=locale,
        include_audit_log=include_audit_log,
        date_format=date_format,
        generated_at=datetime.now(timezone.utc),
    )
    html = generate_settlement_html(data, options)
    return HTMLResponse(
        content=html,
        headers={"Content-Disposition": f'attachment; filename="{html_filename(data.settlement)}"'},
    )
