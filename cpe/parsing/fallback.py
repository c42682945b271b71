# -*- coding: utf-8 -*-
"""
Fallback traversal parser
=========================
Reads the XML element tree directly with local-name lookups instead of
building the :class:`~cpe.parsing.tree.RawNode` structure.  Meant for input
whose shape the UBL tree parser does not handle; the caller chooses it
explicitly.

Known differences from :mod:`cpe.parsing.ubl`:

• a file name containing ``RH`` or ``RHE`` marks a recibo por honorarios;
• there is no ``RET 4TA`` or issuer/receiver entity-kind inference;
• detraction and retention come from ``PaymentTerms`` IDs matched
  case-insensitively, regardless of document type;
• notes are routed by locale ``2006`` or keywords only;
• failures return ``None`` (logged), never an exception.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from decimal import Decimal
from typing import List, Optional

from defusedxml import ElementTree as SafeET

from cpe.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_CUSTOMIZATION_ID,
    DEFAULT_DOCUMENT_DESCRIPTION,
    DEFAULT_LINE_DESCRIPTION,
    DEFAULT_OBSERVATIONS,
    DEFAULT_UBL_VERSION,
    DEFAULT_UNIT_CODE,
    IMPORT_TAGS,
    QR_MIN_LENGTH,
    QR_SEPARATOR,
    RUC_LENGTH,
)
from cpe.models import (
    DocumentStatus,
    DocumentType,
    LineItem,
    NormalizedDocument,
    SupplierInfo,
)

from .codes import (
    FREE_OF_CHARGE_PRICE_TYPE,
    SUPPLIER_DOC_DNI,
    SUPPLIER_DOC_RUC,
    InvoiceTypeCode,
    NoteLocale,
    PaymentTermId,
)
from .utils import _decimal, _optional, _plain_number, now_utc, parse_timestamp

log = logging.getLogger(__name__)

RECEIPT_FILE_MARKERS = ("RH", "RHE")
NOTE_KEYWORDS = ("detracción", "retencion", "operación", "sujeta")
ZERO = Decimal("0")


# ────────────────────────── funciones auxiliares ──────────────────────────
def _local(tag) -> str:
    return tag.split("}")[-1] if isinstance(tag, str) else ""


def _find_all(node: Optional[ET.Element], name: str) -> List[ET.Element]:
    """All descendants of ``node`` with local name ``name``, document order."""
    if node is None:
        return []
    return [el for el in node.iter() if el is not node and _local(el.tag) == name]


def _find(node: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    found = _find_all(node, name)
    return found[0] if found else None


def _header(root: ET.Element, name: str) -> Optional[ET.Element]:
    """Prefer a direct child of the document over a nested element."""
    for child in root:
        if _local(child.tag) == name:
            return child
    return _find(root, name)


def _text(el: Optional[ET.Element]) -> str:
    return "".join(el.itertext()).strip() if el is not None else ""


def _text_in(node: Optional[ET.Element], name: str) -> str:
    return _text(_find(node, name))


# ───────────────────── clasificación ─────────────────────
def _document_type(type_code: str, file_name: str) -> DocumentType:
    upper = (file_name or "").upper()
    if any(marker in upper for marker in RECEIPT_FILE_MARKERS):
        return DocumentType.RECEIPT
    mapping = {
        InvoiceTypeCode.INVOICE.value: DocumentType.INVOICE,
        InvoiceTypeCode.BOLETA.value: DocumentType.PURCHASE_ORDER,
        InvoiceTypeCode.CREDIT_NOTE.value: DocumentType.CREDIT_NOTE,
        InvoiceTypeCode.DEBIT_NOTE.value: DocumentType.DEBIT_NOTE,
    }
    return mapping.get(type_code, DocumentType.INVOICE)


def _notes(root: ET.Element):
    qr_code: Optional[str] = None
    document_notes: List[str] = []
    operation_notes: List[str] = []
    for note in _find_all(root, "Note"):
        text = _text(note)
        if not text:
            continue
        if qr_code is None and (QR_SEPARATOR in text or len(text) > QR_MIN_LENGTH):
            qr_code = text
            continue
        lower = text.lower()
        if note.get("languageLocaleID") == NoteLocale.OPERATION.value or any(
            word in lower for word in NOTE_KEYWORDS
        ):
            operation_notes.append(text)
        else:
            document_notes.append(text)
    return qr_code, document_notes, operation_notes


def _lines(root: ET.Element) -> List[LineItem]:
    lines: List[LineItem] = []
    for idx, line in enumerate(_find_all(root, "InvoiceLine"), start=1):
        item = _find(line, "Item")
        quantity_el = _find(line, "InvoicedQuantity")
        tax_total = _find(line, "TaxTotal")
        subtotal = _find(tax_total, "TaxSubtotal")
        category = _find(subtotal, "TaxCategory")
        scheme = _find(category, "TaxScheme")
        price_type = _text_in(
            _find(_find(line, "PricingReference"), "AlternativeConditionPrice"),
            "PriceTypeCode",
        )
        lines.append(
            LineItem(
                line_number=idx,
                product_code=(
                    _text_in(_find(item, "SellersItemIdentification"), "ID")
                    or f"PROD{idx:03d}"
                ),
                description=_text_in(item, "Description") or DEFAULT_LINE_DESCRIPTION,
                quantity=_decimal(_text(quantity_el)) or Decimal("1"),
                unit_code=(
                    quantity_el.get("unitCode") if quantity_el is not None else None
                )
                or DEFAULT_UNIT_CODE,
                unit_price=_decimal(_text_in(_find(line, "Price"), "PriceAmount")),
                line_total=_decimal(_text_in(line, "LineExtensionAmount")),
                igv_amount=_optional(_decimal(_text_in(tax_total, "TaxAmount"))),
                tax_percentage=_optional(_decimal(_text_in(category, "Percent"))),
                tax_category_id=_text_in(category, "ID") or None,
                tax_scheme_id=_text_in(scheme, "ID") or None,
                tax_scheme_name=_text_in(scheme, "Name") or None,
                taxable_amount=_optional(_decimal(_text_in(subtotal, "TaxableAmount"))),
                tax_exemption_code=_text_in(category, "TaxExemptionReasonCode") or None,
                free_of_charge_indicator=(
                    True if price_type == FREE_OF_CHARGE_PRICE_TYPE else None
                ),
            )
        )
    return lines


# ───────────────────── parser principal ─────────────────────
def _parse(
    xml_content: str,
    file_name: str,
    company_id: str,
    supplier_id: str,
    user_id: str,
) -> Optional[NormalizedDocument]:
    doc = SafeET.fromstring(xml_content)
    invoice = doc if _local(doc.tag) == "Invoice" else _find(doc, "Invoice")
    if invoice is None:
        log.error("Formato de documento no reconocido - no es una factura UBL")
        return None

    document_id = _text(_header(invoice, "ID"))
    doc_type = _document_type(_text(_header(invoice, "InvoiceTypeCode")), file_name)

    if not document_id:
        series, number = "", ""
    elif "-" in document_id:
        series, number = document_id.split("-", 1)
    elif len(document_id) >= 4:
        series, number = document_id[:4], document_id[4:]
    else:
        series, number = document_id, "0"

    # proveedor
    supplier_party = _header(invoice, "AccountingSupplierParty")
    party = _find(supplier_party, "Party")
    supplier_ruc = _text_in(supplier_party, "CustomerAssignedAccountID") or _text_in(
        _find(party, "PartyIdentification"), "ID"
    )
    supplier_name = _text_in(_find(party, "PartyLegalEntity"), "RegistrationName") or (
        _text_in(_find(supplier_party, "PartyName"), "Name")
    )
    address = _find(party, "PostalAddress")
    contact = _find(party, "Contact")
    supplier = SupplierInfo(
        business_name=supplier_name,
        document_number=supplier_ruc,
        document_type=(
            SUPPLIER_DOC_RUC if len(supplier_ruc) == RUC_LENGTH else SUPPLIER_DOC_DNI
        ),
        email=_text_in(contact, "ElectronicMail") or None,
        phone=_text_in(contact, "Telephone") or None,
        address=_text_in(address, "StreetName") or None,
        district=_text_in(address, "CitySubdivisionName") or None,
        province=_text_in(address, "CountrySubentity") or None,
        department=_text_in(address, "CountrySubentity") or None,
    )

    # montos
    monetary = _header(invoice, "LegalMonetaryTotal")
    subtotal = _decimal(_text_in(monetary, "LineExtensionAmount"))
    igv = _decimal(_text_in(_header(invoice, "TaxTotal"), "TaxAmount"))
    total = _decimal(_text_in(monetary, "PayableAmount"))
    allowance_total = _decimal(_text_in(monetary, "AllowanceTotalAmount"))
    exchange_rate = _decimal(_text(_header(invoice, "SourceCurrencyBaseRate")))

    detraction_amount = retention_amount = ZERO
    detraction_pct = retention_pct = ZERO
    detraction_code = ""
    for terms in _find_all(invoice, "PaymentTerms"):
        term_id = _text_in(terms, "ID").lower()
        if term_id == PaymentTermId.DETRACTION.value.lower():
            detraction_amount = _decimal(_text_in(terms, "Amount"))
            detraction_code = _text_in(terms, "PaymentMeansID")
            detraction_pct = _decimal(_text_in(terms, "PaymentPercent"))
        elif term_id == PaymentTermId.RETENTION.value.lower():
            retention_amount = _decimal(_text_in(terms, "Amount"))
            retention_pct = _decimal(_text_in(terms, "PaymentPercent"))
    has_detraction = detraction_amount > 0
    has_retention = retention_amount > 0

    qr_code, document_notes, operation_notes = _notes(invoice)
    lines = _lines(invoice)

    description = (
        ", ".join(line.description for line in lines)
        if lines
        else DEFAULT_DOCUMENT_DESCRIPTION
    )
    net_payable = max(
        ZERO,
        total
        - (retention_amount if has_retention else ZERO)
        - (detraction_amount if has_detraction else ZERO),
    )

    words = [
        w
        for w in description.lower().replace(",", " ").split()
        if len(w) > 2
    ]
    tags: List[str] = []
    for tag in [*IMPORT_TAGS, doc_type.value.lower(), *words[:3]]:
        if tag not in tags:
            tags.append(tag)

    if not document_id:
        log.error("No se encontró el ID del documento en el XML")
        return None
    if not supplier_name:
        log.error("No se encontró el nombre del proveedor en el XML")
        return None
    if not supplier_ruc:
        log.error("No se encontró el RUC del proveedor en el XML")
        return None

    due_date = _text(_header(invoice, "DueDate"))
    xml_hash = "".join(
        f"{document_id}-{supplier_ruc}-{_plain_number(total)}".split()
    )

    return NormalizedDocument(
        company_id=company_id,
        document_type=doc_type,
        document_type_description=doc_type.description,
        series=series,
        number=number,
        full_number=f"{series}-{number}",
        xml_ubl_version=_text(_header(invoice, "UBLVersionID")) or DEFAULT_UBL_VERSION,
        xml_customization_id=(
            _text(_header(invoice, "CustomizationID")) or DEFAULT_CUSTOMIZATION_ID
        ),
        supplier=supplier,
        supplier_id=supplier_id,
        issue_date=parse_timestamp(_text(_header(invoice, "IssueDate"))),
        due_date=parse_timestamp(due_date) if due_date else None,
        reception_date=now_utc(),
        currency=_text(_header(invoice, "DocumentCurrencyCode")) or DEFAULT_CURRENCY,
        exchange_rate=_optional(exchange_rate),
        subtotal=subtotal,
        igv=igv,
        other_taxes=_optional(allowance_total),
        total=total,
        has_retention=has_retention,
        retention_amount=retention_amount if has_retention else None,
        retention_percentage=retention_pct if has_retention else None,
        has_detraction=has_detraction,
        detraction_amount=detraction_amount if has_detraction else None,
        detraction_code=detraction_code if has_detraction else None,
        detraction_percentage=detraction_pct if has_detraction else None,
        detraction_service_code=detraction_code if has_detraction else None,
        net_payable_amount=net_payable,
        conciliated_amount=ZERO,
        pending_amount=net_payable,
        description=description,
        observations=DEFAULT_OBSERVATIONS,
        tags=tags,
        document_notes=document_notes,
        operation_notes=operation_notes,
        qr_code=qr_code,
        lines=lines,
        xml_file_name=file_name,
        xml_content=xml_content,
        xml_hash=xml_hash,
        created_by_id=user_id,
        status=DocumentStatus.PENDING,
    )


def parse_with_fallback(
    xml_content: str,
    file_name: str,
    company_id: str,
    supplier_id: str,
    user_id: str,
) -> Optional[NormalizedDocument]:
    """Parse ``xml_content`` by direct traversal; ``None`` on any failure."""
    try:
        return _parse(xml_content, file_name, company_id, supplier_id, user_id)
    except Exception as exc:
        log.error("Error parsing XML with fallback parser: %s", exc)
        return None


class FallbackParser:
    name = "fallback"

    def parse(
        self,
        xml_content: str,
        file_name: str,
        company_id: str,
        supplier_id: str,
        user_id: str,
    ) -> Optional[NormalizedDocument]:
        return parse_with_fallback(
            xml_content, file_name, company_id, supplier_id, user_id
        )
