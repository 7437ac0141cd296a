"""Arabic/English label tables for settlement reports and CSV exports"""

from typing import Dict

STATUS_LABELS: Dict[str, Dict[str, str]] = {
    "pending": {"ar": "معلق", "en": "Pending"},
    "partially_paid": {"ar": "مدفوع جزئياً", "en": "Partially Paid"},
    "paid": {"ar": "مدفوع", "en": "Paid"},
    "overdue": {"ar": "متأخر", "en": "Overdue"},
    "disputed": {"ar": "نزاع", "en": "Disputed"},
    "waived": {"ar": "معفى", "en": "Waived"},
}

DIRECTION_LABELS: Dict[str, Dict[str, str]] = {
    "platform_pays_provider": {"ar": "المنصة تدفع للتاجر", "en": "Platform Pays Provider"},
    "provider_pays_platform": {"ar": "التاجر يدفع للمنصة", "en": "Provider Pays Platform"},
    "balanced": {"ar": "متوازن", "en": "Balanced"},
}

PAYMENT_METHOD_LABELS: Dict[str, Dict[str, str]] = {
    "cash": {"ar": "نقدي", "en": "Cash"},
    "card": {"ar": "بطاقة", "en": "Card"},
    "wallet": {"ar": "محفظة إلكترونية", "en": "Wallet"},
    "bank_transfer": {"ar": "تحويل بنكي", "en": "Bank Transfer"},
}

AUDIT_ACTION_LABELS: Dict[str, Dict[str, str]] = {
    "create": {"ar": "إنشاء", "en": "Created"},
    "update_status": {"ar": "تحديث الحالة", "en": "Status Updated"},
    "record_payment": {"ar": "تسجيل دفعة", "en": "Payment Recorded"},
    "record_partial_payment": {"ar": "تسجيل دفعة جزئية", "en": "Partial Payment Recorded"},
    "void_payment": {"ar": "إلغاء دفعة", "en": "Payment Voided"},
    "dispute_opened": {"ar": "فتح نزاع", "en": "Dispute Opened"},
    "dispute_resolved": {"ar": "حل النزاع", "en": "Dispute Resolved"},
    "waive": {"ar": "إعفاء", "en": "Waived"},
}

REPORT_CAPTIONS: Dict[str, Dict[str, str]] = {
    "ar": {
        "title": "تقرير التسوية",
        "settlement_id": "رقم التسوية",
        "provider": "المزود",
        "period": "الفترة",
        "status": "الحالة",
        "direction": "الاتجاه",
        "created_at": "تاريخ الإنشاء",
        "paid_at": "تاريخ الدفع",
        "payment_method": "طريقة الدفع",
        "payment_reference": "مرجع الدفع",
        "financial_summary": "الملخص المالي",
        "gross_revenue": "إجمالي الإيرادات",
        "platform_commission": "عمولة المنصة",
        "net_payout": "صافي المزود",
        "net_balance": "صافي الرصيد",
        "total_orders": "عدد الطلبات",
        "cod_breakdown": "الدفع عند الاستلام",
        "online_breakdown": "الدفع الإلكتروني",
        "orders_count": "عدد الطلبات",
        "revenue": "الإيرادات",
        "commission_owed": "العمولة المستحقة",
        "payout_owed": "المستحق للمزود",
        "orders_section": "الطلبات المضمنة",
        "order_number": "رقم الطلب",
        "amount": "المبلغ",
        "commission": "العمولة",
        "date": "التاريخ",
        "audit_section": "سجل التغييرات",
        "action": "الإجراء",
        "changed_by": "بواسطة",
        "notes": "ملاحظات",
        "generated_at": "تم التصدير في",
        "brand": "إنجزنا",
    },
    "en": {
        "title": "Settlement Report",
        "settlement_id": "Settlement ID",
        "provider": "Provider",
        "period": "Period",
        "status": "Status",
        "direction": "Direction",
        "created_at": "Created At",
        "paid_at": "Paid At",
        "payment_method": "Payment Method",
        "payment_reference": "Payment Reference",
        "financial_summary": "Financial Summary",
        "gross_revenue": "Gross Revenue",
        "platform_commission": "Platform Commission",
        "net_payout": "Net Payout",
        "net_balance": "Net Balance",
        "total_orders": "Total Orders",
        "cod_breakdown": "Cash on Delivery",
        "online_breakdown": "Online Payment",
        "orders_count": "Orders Count",
        "revenue": "Revenue",
        "commission_owed": "Commission Owed",
        "payout_owed": "Payout Owed",
        "orders_section": "Included Orders",
        "order_number": "Order #",
        "amount": "Amount",
        "commission": "Commission",
        "date": "Date",
        "audit_section": "Audit Trail",
        "action": "Action",
        "changed_by": "Changed By",
        "notes": "Notes",
        "generated_at": "Generated at",
        "brand": "Engezna",
    },
}

CSV_HEADERS: Dict[str, list] = {
    "ar": [
        "رقم التسوية", "المزود", "الفترة من", "الفترة إلى", "عدد الطلبات", "الإيرادات",
        "العمولة", "صافي المزود", "صافي الرصيد", "الاتجاه", "الحالة", "تاريخ الدفع",
    ],
    "en": [
        "Settlement ID", "Provider", "Period Start", "Period End", "Orders", "Revenue",
        "Commission", "Net Payout", "Net Balance", "Direction", "Status", "Paid At",
    ],
}


def _lookup(table: Dict[str, Dict[str, str]], key: str, locale: str) -> str:
    key = getattr(key, "value", key)
    labels = table.get(key)
    if not labels:
        return key
    return labels.get(locale) or key


def status_label(status: str, locale: str = "ar") -> str:
    return _lookup(STATUS_LABELS, status, locale)


def direction_label(direction: str, locale: str = "ar") -> str:
    return _lookup(DIRECTION_LABELS, direction, locale)


def payment_method_label(method: str, locale: str = "ar") -> str:
    return _lookup(PAYMENT_METHOD_LABELS, method, locale)


def audit_action_label(action: str, locale: str = "ar") -> str:
    return _lookup(AUDIT_ACTION_LABELS, action, locale)


def report_captions(locale: str) -> Dict[str, str]:
    return REPORT_CAPTIONS["ar" if locale == "ar" else "en"]


def csv_headers(locale: str) -> list:
    return CSV_HEADERS["ar" if locale == "ar" else "en"]
