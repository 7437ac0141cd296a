"""Printable settlement reports and bulk CSV export

Both renderers are pure: the same input always yields the same text. Nothing
here reads the wall clock; the report footer timestamp is passed in through
ExportOptions.generated_at.
"""

import csv
import io
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from settlement_engine.domain.models import ExportOptions, Settlement, SettlementExportData
from settlement_engine.reports.labels import (
    audit_action_label,
    csv_headers,
    direction_label,
    payment_method_label,
    report_captions,
    status_label,
)
from settlement_engine.utils.date_utils import format_date

CSV_BOM = "\ufeff"
TEMPLATE_DIR = Path(__file__).parent / "templates"

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def short_id(settlement_id: str) -> str:
    return settlement_id[:8].upper()


def csv_filename(today: date) -> str:
    return f"settlements-{today.isoformat()}.csv"


def html_filename(settlement: Settlement) -> str:
    return f"settlement-{settlement.id[:8]}.html"


def _localized(name: Any, locale: str) -> str:
    if name is None:
        return ""
    if isinstance(name, str):
        return name
    return name.get(locale)


def _report_context(data: SettlementExportData, options: ExportOptions) -> Dict[str, Any]:
    """Flatten the export bundle into display strings for the template"""
    locale = options.locale
    settlement = data.settlement

    def money(value) -> str:
        return value.format_western(locale)

    def when(value, style: Optional[str] = None) -> str:
        return format_date(value, locale, style or options.date_format)

    provider_name = _localized(data.provider_name or settlement.provider_name, locale) or "-"

    payment = None
    if settlement.payment_date is not None:
        payment = {
            "paid_at": when(settlement.payment_date, "long"),
            "method": payment_method_label(settlement.payment_method, locale) if settlement.payment_method else "-",
            "reference": settlement.payment_reference or "-",
        }

    orders = []
    if options.include_orders:
        orders = [
            {
                "order_number": order.order_number,
                "total": money(order.total),
                "commission": money(order.commission),
                "payment_method": payment_method_label(order.payment_method, locale),
                "date": when(order.created_at),
            }
            for order in data.orders
        ]

    audit_log = []
    if options.include_audit_log:
        audit_log = [
            {
                "action": audit_action_label(entry.action, locale),
                "changed_by": entry.admin_name or entry.admin_id or "-",
                "notes": entry.notes or "-",
                "date": when(entry.performed_at, "long"),
            }
            for entry in data.audit_log
        ]

    return {
        "locale": locale,
        "direction": "rtl" if locale == "ar" else "ltr",
        "text_align": "right" if locale == "ar" else "left",
        "labels": report_captions(locale),
        "short_id": short_id(settlement.id),
        "provider_name": provider_name,
        "period_start": when(settlement.period_start),
        "period_end": when(settlement.period_end),
        "status": getattr(settlement.status, "value", settlement.status),
        "status_label": status_label(settlement.status, locale),
        "direction_label": direction_label(settlement.settlement_direction, locale),
        "created_at": when(settlement.created_at, "long") or "-",
        "gross_revenue": money(settlement.gross_revenue),
        "platform_commission": money(settlement.platform_commission),
        "net_payout": money(settlement.net_amount_due),
        "total_orders": settlement.total_orders,
        "cod": {
            "orders_count": settlement.cod.orders_count,
            "revenue": money(settlement.cod.gross_revenue),
            "commission_owed": money(settlement.cod.commission_owed),
        },
        "online": {
            "orders_count": settlement.online.orders_count,
            "revenue": money(settlement.online.gross_revenue),
            "payout_owed": money(settlement.online.payout_owed),
        },
        "net_balance": money(settlement.net_balance.abs()),
        "payment": payment,
        "orders": orders,
        "audit_log": audit_log,
        "generated_at": when(options.generated_at, "long") if options.generated_at else None,
        "copyright_year": options.generated_at.year if options.generated_at else None,
    }


def generate_settlement_html(data: SettlementExportData, options: Optional[ExportOptions] = None) -> str:
    """
    Render a self-contained printable settlement report.

    Direction and labels follow options.locale. Orders and the audit trail
    are included only when requested and non-empty.
    """
    options = options or ExportOptions()
    template = _environment.get_template("settlement_report.html")
    return template.render(**_report_context(data, options))


def _csv_row(settlement: Settlement, locale: str) -> List[str]:
    return [
        short_id(settlement.id),
        _localized(settlement.provider_name, locale),
        format_date(settlement.period_start, locale),
        format_date(settlement.period_end, locale),
        str(settlement.total_orders),
        settlement.gross_revenue.to_fixed(2),
        settlement.platform_commission.to_fixed(2),
        settlement.net_amount_due.to_fixed(2),
        settlement.net_balance.to_fixed(2),
        direction_label(settlement.settlement_direction, locale),
        status_label(settlement.status, locale),
        format_date(settlement.payment_date, locale) if settlement.payment_date else "",
    ]


def generate_settlements_csv(settlements: Sequence[Settlement], locale: str = "ar") -> str:
    """UTF-8 CSV with BOM so spreadsheet apps detect Arabic text"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")

    writer.writerow(csv_headers(locale))
    for settlement in settlements:
        writer.writerow(_csv_row(settlement, locale))

    return CSV_BOM + buffer.getvalue()
