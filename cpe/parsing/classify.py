"""Document type detection.

Rules are applied in order and the *last* rule that matches decides the
type.  Explicit type codes are authoritative when present, but many
producers omit them, so content-based inference comes first in the list:
a ``RET 4TA`` withholding line, then the issuer/receiver entity kinds (a
DNI issuer billing a company is a recibo por honorarios even without the
withholding line), and finally ``InvoiceTypeCode``.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Tuple

from cpe.constants import NATURAL_PERSON_ID_LENGTH
from cpe.models import DocumentType

from .codes import RETENTION_TAX_CATEGORY, InvoiceTypeCode
from .parties import CUSTOMER_PARTY, SUPPLIER_PARTY, resolve_party_id
from .tree import RawNode, iter_line_tax_subtotals

log = logging.getLogger(__name__)

Rule = Callable[[RawNode], Optional[DocumentType]]

TYPE_CODES = {
    InvoiceTypeCode.INVOICE.value: DocumentType.INVOICE,
    InvoiceTypeCode.BOLETA.value: DocumentType.PURCHASE_ORDER,
    InvoiceTypeCode.CREDIT_NOTE.value: DocumentType.CREDIT_NOTE,
    InvoiceTypeCode.DEBIT_NOTE.value: DocumentType.DEBIT_NOTE,
}


def is_natural_person(tax_id: str) -> bool:
    return len(tax_id) == NATURAL_PERSON_ID_LENGTH


def has_retention_line(tree: RawNode) -> bool:
    return any(
        sub.text_at("TaxCategory.ID") == RETENTION_TAX_CATEGORY
        for sub in iter_line_tax_subtotals(tree)
    )


def _retention_line_rule(tree: RawNode) -> Optional[DocumentType]:
    return DocumentType.RECEIPT if has_retention_line(tree) else None


def _entity_kind_rule(tree: RawNode) -> Optional[DocumentType]:
    issuer = resolve_party_id(tree, SUPPLIER_PARTY)
    receiver = resolve_party_id(tree, CUSTOMER_PARTY)
    # A receiver that is not a DNI counts as a legal entity, even when absent.
    if is_natural_person(issuer) and not is_natural_person(receiver):
        return DocumentType.RECEIPT
    return None


def _type_code_rule(tree: RawNode) -> Optional[DocumentType]:
    return TYPE_CODES.get(tree.text_at("InvoiceTypeCode"))


CLASSIFICATION_RULES: List[Tuple[str, Rule]] = [
    ("retention_line", _retention_line_rule),
    ("entity_kind", _entity_kind_rule),
    ("type_code", _type_code_rule),
]


def classify_document(tree: RawNode) -> Tuple[DocumentType, str]:
    """Return ``(document_type, description)`` for ``tree``."""
    doc_type = DocumentType.INVOICE
    for name, rule in CLASSIFICATION_RULES:
        result = rule(tree)
        if result is not None:
            log.debug("Classification rule %s -> %s", name, result.value)
            doc_type = result
    return doc_type, doc_type.description
