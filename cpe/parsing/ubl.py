# -*- coding: utf-8 -*-
"""
UBL 2.1 (SUNAT CPE) parser
==========================
• parse_document()   → NormalizedDocument or DocumentParseError
• UblTreeParser      → the same behind the :class:`DocumentParser` interface

The document is first converted into a :class:`RawNode` tree; classifier,
monetary decomposer, line extractor and note classifier all read that
tree.  Validation of mandatory fields happens after everything has been
extracted so the error can name the missing field.
"""

from __future__ import annotations

import logging

from cpe.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_CUSTOMIZATION_ID,
    DEFAULT_OBSERVATIONS,
    DEFAULT_UBL_VERSION,
    TRACE,
)
from cpe.models import DocumentStatus, NormalizedDocument

from .classify import classify_document
from .identity import (
    build_description,
    build_tags,
    compute_xml_hash,
    split_document_id,
    validate_mandatory,
)
from .lines import extract_lines
from .money import decompose_amounts
from .notes import classify_notes
from .parties import extract_supplier
from .tree import build_tree
from .utils import _optional, now_utc, parse_timestamp

log = logging.getLogger(__name__)


def _t(msg, *args):
    if TRACE:
        log.warning("[TRACE PARSE] " + msg, *args)


def parse_document(
    xml_content: str,
    file_name: str,
    company_id: str,
    supplier_id: str,
    user_id: str,
) -> NormalizedDocument:
    """Parse a UBL ``Invoice`` into a :class:`NormalizedDocument`.

    Raises
    ------
    MalformedXmlError
        The input is not well-formed XML.
    UnsupportedRootError
        The root element is not ``Invoice``.
    MissingMandatoryFieldError
        Document id, supplier name or supplier tax id is empty.
    """
    tree = build_tree(xml_content)

    document_id = tree.text_at("ID")
    doc_type, doc_type_description = classify_document(tree)
    _t("id=%s type=%s", document_id, doc_type.value)

    supplier = extract_supplier(tree)
    money = decompose_amounts(tree, doc_type)
    _t(
        "total=%s retention=%s detraction=%s net=%s",
        money.total,
        money.retention_amount,
        money.detraction_amount,
        money.net_payable_amount,
    )
    lines = extract_lines(tree)
    notes = classify_notes(tree)

    validate_mandatory(document_id, supplier.business_name, supplier.document_number)

    series, number, full_number = split_document_id(document_id)
    description = build_description(line.description for line in lines)
    due_date = tree.text_at("DueDate")

    document = NormalizedDocument(
        company_id=company_id,
        document_type=doc_type,
        document_type_description=doc_type_description,
        series=series,
        number=number,
        full_number=full_number,
        xml_ubl_version=tree.text_at("UBLVersionID") or DEFAULT_UBL_VERSION,
        xml_customization_id=(
            tree.text_at("CustomizationID") or DEFAULT_CUSTOMIZATION_ID
        ),
        supplier=supplier,
        supplier_id=supplier_id,
        issue_date=parse_timestamp(tree.text_at("IssueDate")),
        due_date=parse_timestamp(due_date) if due_date else None,
        reception_date=now_utc(),
        currency=tree.text_at("DocumentCurrencyCode") or DEFAULT_CURRENCY,
        exchange_rate=_optional(money.exchange_rate),
        subtotal=money.subtotal,
        igv=money.igv,
        other_taxes=_optional(money.allowance_total),
        total=money.total,
        has_retention=money.has_retention,
        retention_amount=money.retention_amount,
        retention_percentage=money.retention_percentage,
        has_detraction=money.has_detraction,
        detraction_amount=money.detraction_amount,
        detraction_code=money.detraction_code,
        detraction_percentage=money.detraction_percentage,
        detraction_service_code=money.detraction_code,
        net_payable_amount=money.net_payable_amount,
        conciliated_amount=money.conciliated_amount,
        pending_amount=money.pending_amount,
        description=description,
        observations="; ".join(notes.document_notes) or DEFAULT_OBSERVATIONS,
        tags=build_tags(description, doc_type),
        document_notes=notes.document_notes,
        operation_notes=notes.operation_notes,
        qr_code=notes.qr_code,
        lines=lines,
        xml_file_name=file_name,
        xml_content=xml_content,
        xml_hash=compute_xml_hash(
            document_id, supplier.document_number, money.total
        ),
        created_by_id=user_id,
        status=DocumentStatus.PENDING,
    )
    log.info(
        "Parsed %s %s from %s (total %s)",
        doc_type.value,
        full_number,
        file_name,
        money.total,
    )
    return document


class UblTreeParser:
    """Primary parser; raises :class:`DocumentParseError` on fatal input."""

    name = "ubl"

    def parse(
        self,
        xml_content: str,
        file_name: str,
        company_id: str,
        supplier_id: str,
        user_id: str,
    ) -> NormalizedDocument:
        return parse_document(
            xml_content, file_name, company_id, supplier_id, user_id
        )
