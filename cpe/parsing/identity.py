"""Series/number split, mandatory-field checks, dedup hash and tags."""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Iterable, List, Tuple

from cpe.constants import DEFAULT_DOCUMENT_DESCRIPTION, IMPORT_TAGS
from cpe.models import DocumentType

from .errors import MissingMandatoryFieldError
from .utils import _plain_number

SERIES_LENGTH = 4


def split_document_id(document_id: str) -> Tuple[str, str, str]:
    """Return ``(series, number, full_number)`` for ``F001-000123``-style ids.

    Without a hyphen the first four characters are the series; an id
    shorter than that gets number ``"0"``.
    """
    if not document_id:
        series, number = "", ""
    elif "-" in document_id:
        series, number = document_id.split("-", 1)
    elif len(document_id) >= SERIES_LENGTH:
        series, number = document_id[:SERIES_LENGTH], document_id[SERIES_LENGTH:]
    else:
        series, number = document_id, "0"
    return series, number, f"{series}-{number}"


def validate_mandatory(document_id: str, supplier_name: str, supplier_tax_id: str) -> None:
    """Raise :class:`MissingMandatoryFieldError` for the first empty field."""
    for field_name, value in (
        ("documentId", document_id),
        ("supplierName", supplier_name),
        ("supplierTaxId", supplier_tax_id),
    ):
        if not value or not value.strip():
            raise MissingMandatoryFieldError(field_name)


def compute_xml_hash(document_id: str, supplier_tax_id: str, total: Decimal) -> str:
    """Dedup key ``<id>-<tax id>-<total>`` with all whitespace removed."""
    return re.sub(r"\s", "", f"{document_id}-{supplier_tax_id}-{_plain_number(total)}")


def build_description(line_descriptions: Iterable[str]) -> str:
    descriptions = list(line_descriptions)
    return ", ".join(descriptions) if descriptions else DEFAULT_DOCUMENT_DESCRIPTION


def build_tags(description: str, document_type: DocumentType) -> List[str]:
    words = [w for w in re.split(r"[\s,]+", description.lower()) if len(w) > 2]
    candidates = [*IMPORT_TAGS, document_type.value.lower(), *words[:3]]
    tags: List[str] = []
    for tag in candidates:
        if len(tag) > 2 and tag not in tags:
            tags.append(tag)
    return tags
