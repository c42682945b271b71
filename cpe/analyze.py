from __future__ import annotations

import logging
from dataclasses import asdict
from decimal import Decimal

import pandas as pd

from cpe.models import NormalizedDocument
from cpe.parsing.money import lines_match_total
from cpe.parsing.utils import _dec2

log = logging.getLogger(__name__)

LINE_COLUMNS = [
    "line_number",
    "product_code",
    "description",
    "quantity",
    "unit_code",
    "unit_price",
    "line_total",
    "igv_amount",
    "tax_percentage",
    "tax_category_id",
]


def lines_frame(document: NormalizedDocument) -> pd.DataFrame:
    """Return the document lines as a DataFrame (``Decimal`` object columns)."""
    if not document.lines:
        return pd.DataFrame(columns=LINE_COLUMNS)
    rows = [asdict(line) for line in document.lines]
    return pd.DataFrame(rows, dtype=object)[LINE_COLUMNS]


def summarize(document: NormalizedDocument) -> dict[str, Decimal | bool | str]:
    """Header amounts of ``document`` plus a line-sum check.

    ``lines_ok`` compares the sum of ``line_total`` with ``subtotal`` using
    the rounding step that fits best.  It is informational only; the
    parsers never reject a document over it.
    """
    df = lines_frame(document)
    line_sum = _dec2(sum(df["line_total"], Decimal("0")))
    lines_ok = lines_match_total(df["line_total"].tolist(), document.subtotal)
    if not lines_ok:
        log.warning(
            "Line sum %s differs from subtotal %s in %s",
            line_sum,
            document.subtotal,
            document.full_number,
        )
    return {
        "document": document.full_number,
        "type": document.document_type.value,
        "supplier": document.supplier.business_name,
        "subtotal": document.subtotal,
        "igv": document.igv,
        "total": document.total,
        "retention": document.retention_amount or Decimal("0"),
        "detraction": document.detraction_amount or Decimal("0"),
        "net_payable": document.net_payable_amount,
        "line_sum": line_sum,
        "lines_ok": lines_ok,
    }
