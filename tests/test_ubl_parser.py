import json
import logging
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from cpe.models import DocumentStatus, DocumentType
from cpe.parsing import (
    DocumentParseError,
    FallbackParser,
    MissingMandatoryFieldError,
    UblTreeParser,
    get_parser,
    parse_document,
)


def _parse(xml, file_name="F001-000123.xml"):
    return parse_document(xml, file_name, "company-1", "supplier-9", "user-3")


def test_parse_invoice(invoice_xml):
    xml = invoice_xml()
    doc = _parse(xml)

    assert doc.document_type == DocumentType.INVOICE
    assert doc.document_type_description == "Factura Electrónica"
    assert (doc.series, doc.number, doc.full_number) == ("F001", "000123", "F001-000123")
    assert doc.xml_ubl_version == "2.1"
    assert doc.xml_customization_id == "2.0"
    assert doc.company_id == "company-1"
    assert doc.supplier_id == "supplier-9"
    assert doc.created_by_id == "user-3"
    assert doc.updated_by_id is None

    assert doc.supplier.business_name == "ACME INGENIEROS S.A.C."
    assert doc.supplier.document_number == "20100066603"
    assert doc.supplier.document_type == "6"
    assert doc.supplier.email == "facturas@acme.pe"
    assert doc.supplier.phone == "01-4445555"
    assert doc.supplier.address == "AV. AREQUIPA 123"
    assert doc.supplier.district == "MIRAFLORES"
    assert doc.supplier.province == "LIMA"
    assert doc.supplier.department == "LIMA"

    assert doc.issue_date == datetime(2024, 3, 15, tzinfo=timezone.utc)
    assert doc.due_date == datetime(2024, 4, 15, tzinfo=timezone.utc)
    assert doc.reception_date.tzinfo is not None

    assert doc.currency == "PEN"
    assert doc.exchange_rate is None
    assert doc.other_taxes is None
    assert doc.subtotal == Decimal("100.00")
    assert doc.igv == Decimal("18.00")
    assert doc.total == Decimal("118.00")
    assert doc.net_payable_amount == Decimal("118.00")
    assert doc.pending_amount == doc.net_payable_amount
    assert doc.conciliated_amount == 0

    assert doc.description == "Servicio de consultoria"
    assert doc.observations == "SON CIENTO DIECIOCHO CON 00/100 SOLES"
    assert doc.tags == ["imported", "xml", "invoice", "servicio", "consultoria"]
    assert len(doc.lines) == 1

    assert doc.xml_file_name == "F001-000123.xml"
    assert doc.xml_content == xml
    assert doc.xml_hash == "F001-000123-20100066603-118"
    assert doc.status == DocumentStatus.PENDING
    assert doc.sunat_response_code is None
    assert doc.cdr_status is None
    assert doc.pdf_file is None


def test_credit_note(invoice_xml):
    doc = _parse(invoice_xml(type_code="07"))
    assert doc.document_type == DocumentType.CREDIT_NOTE
    assert doc.document_type_description == "Nota de Crédito Electrónica"


def test_receipt_with_retention(invoice_xml, invoice_line, ret_subtotal):
    xml = invoice_xml(
        doc_id="E001-45",
        type_code=None,
        supplier_ruc="10456789",
        subtotal="1000.00",
        igv="0.00",
        payable="1000.00",
        lines=[invoice_line(total="1000.00", extra_subtotal=ret_subtotal("80.00"))],
    )
    doc = _parse(xml)
    assert doc.document_type == DocumentType.RECEIPT
    assert doc.supplier.document_type == "1"
    assert doc.has_retention is True
    assert doc.retention_amount == Decimal("80.00")
    assert doc.retention_percentage == Decimal("8")
    assert doc.net_payable_amount == Decimal("920.00")
    assert doc.pending_amount == Decimal("920.00")


def test_invoice_with_detraction(invoice_xml, payment_terms):
    xml = invoice_xml(
        payable="1180.00",
        payment_terms=payment_terms("Detraccion", "142.00", "037"),
        notes=(("Operación sujeta al Sistema de Pago de Obligaciones Tributarias", "2006"),),
    )
    doc = _parse(xml)
    assert doc.has_detraction
    assert doc.detraction_code == "037"
    assert doc.detraction_service_code == "037"
    assert doc.net_payable_amount == Decimal("1038.00")
    assert doc.operation_notes == [
        "Operación sujeta al Sistema de Pago de Obligaciones Tributarias"
    ]
    assert doc.observations == "Factura electrónica procesada automáticamente"


def test_zero_detraction_on_invoice(invoice_xml, payment_terms):
    doc = _parse(invoice_xml(payment_terms=payment_terms("Detraccion", "0")))
    assert doc.has_detraction is False
    assert doc.detraction_amount is None
    assert doc.detraction_service_code is None


def test_missing_supplier_tax_id(invoice_xml):
    with pytest.raises(MissingMandatoryFieldError) as exc:
        _parse(invoice_xml(supplier_ruc=None))
    assert exc.value.field == "supplierTaxId"
    assert isinstance(exc.value, DocumentParseError)


@pytest.mark.parametrize(
    "kwargs,field",
    [
        ({"doc_id": None}, "documentId"),
        ({"supplier_name": None}, "supplierName"),
    ],
)
def test_missing_mandatory_fields(invoice_xml, kwargs, field):
    with pytest.raises(MissingMandatoryFieldError) as exc:
        _parse(invoice_xml(**kwargs))
    assert exc.value.field == field


def test_invalid_issue_date_uses_now(invoice_xml, caplog):
    before = datetime.now(timezone.utc)
    with caplog.at_level(logging.WARNING):
        doc = _parse(invoice_xml(issue_date="no-es-fecha", due_date=None))
    assert doc.issue_date >= before
    assert doc.due_date is None
    assert "Fecha inválida" in caplog.text


def test_slash_dates_are_normalized(invoice_xml):
    doc = _parse(invoice_xml(issue_date="15/03/2024"))
    assert doc.issue_date.date().isoformat() == "2024-03-15"


def test_non_numeric_total_still_parses(invoice_xml):
    doc = _parse(invoice_xml(payable="N/A"))
    assert doc.total == Decimal("0")
    assert doc.net_payable_amount == Decimal("0")
    assert doc.xml_hash == "F001-000123-20100066603-0"


def test_no_lines_description(invoice_xml):
    doc = _parse(invoice_xml(lines=[]))
    assert doc.lines == []
    assert doc.description == "Documento electrónico"
    assert doc.tags == ["imported", "xml", "invoice", "documento", "electrónico"]


def test_optional_money_fields(invoice_xml):
    doc = _parse(invoice_xml(currency="USD", exchange_rate="3.75", allowance="5.00"))
    assert doc.currency == "USD"
    assert doc.exchange_rate == Decimal("3.75")
    assert doc.other_taxes == Decimal("5.00")


def test_to_dict_is_json_ready(invoice_xml):
    body = _parse(invoice_xml()).to_dict()
    assert body["documentType"] == "INVOICE"
    assert body["fullNumber"] == "F001-000123"
    assert body["netPayableAmount"] == "118.00"
    assert body["issueDate"].startswith("2024-03-15T00:00:00")
    assert body["supplier"]["businessName"] == "ACME INGENIEROS S.A.C."
    assert body["lines"][0]["productCode"] == "SRV-01"
    assert body["status"] == "PENDING"
    json.dumps(body)


def test_get_parser():
    assert isinstance(get_parser(), UblTreeParser)
    assert isinstance(get_parser("ubl"), UblTreeParser)
    assert isinstance(get_parser("fallback"), FallbackParser)
    with pytest.raises(ValueError):
        get_parser("auto")


def test_parser_interface(invoice_xml):
    doc = get_parser("ubl").parse(invoice_xml(), "a.xml", "c", "s", "u")
    assert doc.full_number == "F001-000123"


@pytest.mark.parametrize(
    "payable,plain",
    [
        ("1E+30", "1" + "0" * 30),
        ("1234567890123456789012345678901", "1234567890123456789012345678901"),
    ],
)
def test_huge_total_still_parses(invoice_xml, payable, plain):
    doc = _parse(invoice_xml(payable=payable))
    assert doc.total == Decimal(payable)
    assert doc.xml_hash == f"F001-000123-20100066603-{plain}"


def test_missing_issue_date_uses_now(invoice_xml, caplog):
    before = datetime.now(timezone.utc)
    with caplog.at_level(logging.WARNING):
        doc = _parse(invoice_xml(issue_date=None))
    assert doc.issue_date >= before
    assert "Fecha ausente" in caplog.text
