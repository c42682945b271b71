"""Normalized document record produced by the XML parsers."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


class DocumentType(str, Enum):
    INVOICE = "INVOICE"
    RECEIPT = "RECEIPT"
    CREDIT_NOTE = "CREDIT_NOTE"
    DEBIT_NOTE = "DEBIT_NOTE"
    PURCHASE_ORDER = "PURCHASE_ORDER"

    @property
    def description(self) -> str:
        return DOCUMENT_TYPE_DESCRIPTIONS[self]


DOCUMENT_TYPE_DESCRIPTIONS = {
    DocumentType.INVOICE: "Factura Electrónica",
    DocumentType.RECEIPT: "Recibo por Honorarios Electrónico",
    DocumentType.CREDIT_NOTE: "Nota de Crédito Electrónica",
    DocumentType.DEBIT_NOTE: "Nota de Débito Electrónica",
    DocumentType.PURCHASE_ORDER: "Boleta de Venta Electrónica",
}


class DocumentStatus(str, Enum):
    PENDING = "PENDING"


@dataclass(frozen=True)
class LineItem:
    """One ``cac:InvoiceLine`` with its tax attributes."""

    line_number: int
    product_code: str
    description: str
    quantity: Decimal
    unit_code: str
    unit_price: Decimal
    line_total: Decimal
    igv_amount: Optional[Decimal] = None
    tax_percentage: Optional[Decimal] = None
    tax_category_id: Optional[str] = None
    tax_scheme_id: Optional[str] = None
    tax_scheme_name: Optional[str] = None
    taxable_amount: Optional[Decimal] = None
    tax_exemption_code: Optional[str] = None
    free_of_charge_indicator: Optional[bool] = None
    allowance_indicator: bool = False
    charge_indicator: bool = False


@dataclass(frozen=True)
class SupplierInfo:
    business_name: str
    document_number: str
    document_type: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    district: Optional[str] = None
    province: Optional[str] = None
    department: Optional[str] = None


@dataclass
class NormalizedDocument:
    """Persistence-ready record of one imported electronic document.

    Instances are built once per parse call.  Afterwards only the
    reconciliation fields (``conciliated_amount``, ``pending_amount`` and
    ``status``) are expected to change, and only outside this package.
    """

    # identity
    company_id: str
    document_type: DocumentType
    document_type_description: str
    series: str
    number: str
    full_number: str
    xml_ubl_version: str
    xml_customization_id: str
    # parties
    supplier: SupplierInfo
    supplier_id: str
    # dates
    issue_date: datetime
    due_date: Optional[datetime]
    reception_date: datetime
    # money
    currency: str
    exchange_rate: Optional[Decimal]
    subtotal: Decimal
    igv: Decimal
    other_taxes: Optional[Decimal]
    total: Decimal
    has_retention: bool
    retention_amount: Optional[Decimal]
    retention_percentage: Optional[Decimal]
    has_detraction: bool
    detraction_amount: Optional[Decimal]
    detraction_code: Optional[str]
    detraction_percentage: Optional[Decimal]
    detraction_service_code: Optional[str]
    net_payable_amount: Decimal
    conciliated_amount: Decimal
    pending_amount: Decimal
    # content
    description: str
    observations: str
    tags: List[str]
    document_notes: List[str]
    operation_notes: List[str]
    qr_code: Optional[str]
    lines: List[LineItem]
    # provenance
    xml_file_name: Optional[str]
    xml_content: str
    xml_hash: str
    created_by_id: str
    status: DocumentStatus = DocumentStatus.PENDING
    updated_by_id: Optional[str] = None
    sunat_response_code: Optional[str] = None
    cdr_status: Optional[str] = None
    sunat_process_date: Optional[datetime] = None
    pdf_file: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase create-document body.

        Decimals are rendered as strings and datetimes as ISO-8601 so the
        result can be passed to :func:`json.dumps` directly.
        """
        body = {_camel(f.name): _plain(getattr(self, f.name)) for f in fields(self)}
        return body


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (LineItem, SupplierInfo)):
        return {_camel(f.name): _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value
