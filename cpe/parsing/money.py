"""Monetary totals, retention and detraction of a UBL document."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from cpe.constants import DEFAULT_RETENTION_PCT
from cpe.models import DocumentType

from .codes import RETENTION_TAX_CATEGORY, PaymentTermId
from .tree import RawNode, iter_line_tax_subtotals
from .utils import _decimal

log = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class MoneyFields:
    subtotal: Decimal
    igv: Decimal
    total: Decimal
    allowance_total: Decimal
    exchange_rate: Decimal
    has_retention: bool = False
    retention_amount: Optional[Decimal] = None
    retention_percentage: Optional[Decimal] = None
    has_detraction: bool = False
    detraction_amount: Optional[Decimal] = None
    detraction_code: Optional[str] = None
    detraction_percentage: Optional[Decimal] = None
    net_payable_amount: Decimal = ZERO
    conciliated_amount: Decimal = ZERO
    pending_amount: Decimal = ZERO


def round_to_step(
    value: Decimal, step: Decimal, rounding=ROUND_HALF_UP
) -> Decimal:
    """Round ``value`` to the nearest ``step`` (e.g. 0.01 or 0.05)."""
    if step == 0:
        return value
    quant = (value / step).quantize(Decimal("1"), rounding=rounding)
    return (quant * step).quantize(step)


def detect_round_step(reference: Decimal, candidate: Decimal) -> Decimal:
    """Return the rounding step (0.01 or 0.05) that makes ``candidate`` match
    ``reference`` if possible.  If neither matches exactly, return 0.05 as a
    safe default."""
    for step in (Decimal("0.01"), Decimal("0.05")):
        if round_to_step(candidate, step) == reference:
            return step
    return Decimal("0.05")


def lines_match_total(line_totals: Iterable[Decimal], header_total: Decimal) -> bool:
    """Check the sum of line totals against ``header_total`` using the
    rounding step that best fits the document."""
    line_sum = sum(line_totals, ZERO)
    step = detect_round_step(header_total, line_sum)
    return abs(round_to_step(line_sum, step) - header_total) <= step


def net_payable(
    total: Decimal,
    retention_amount: Optional[Decimal],
    detraction_amount: Optional[Decimal],
) -> Decimal:
    """``max(0, total - retention - detraction)``; absent amounts count as 0."""
    net = total - (retention_amount or ZERO) - (detraction_amount or ZERO)
    return max(ZERO, net)


def _amount(tree: RawNode, path: str) -> Decimal:
    return _decimal(tree.text_at(path))


def find_detraction(tree: RawNode) -> Optional[RawNode]:
    """Return the ``PaymentTerms`` whose ID is exactly ``Detraccion``."""
    for terms in tree.all("PaymentTerms"):
        if terms.text_at("ID") == PaymentTermId.DETRACTION.value:
            return terms
    return None


def find_retention(tree: RawNode) -> Optional[RawNode]:
    """Return the first line tax subtotal in the ``RET 4TA`` category."""
    for sub in iter_line_tax_subtotals(tree):
        if sub.text_at("TaxCategory.ID") == RETENTION_TAX_CATEGORY:
            return sub
    return None


def decompose_amounts(tree: RawNode, document_type: DocumentType) -> MoneyFields:
    """Read the header totals and split out retention and detraction.

    Detraction is only looked for on invoices and retention only on
    receipts.  Missing or unparseable amounts are ``0``.
    """
    subtotal = _amount(tree, "LegalMonetaryTotal.LineExtensionAmount")
    igv = _amount(tree, "TaxTotal.TaxAmount")
    total = _amount(tree, "LegalMonetaryTotal.PayableAmount")
    allowance_total = _amount(tree, "LegalMonetaryTotal.AllowanceTotalAmount")
    exchange_rate = _amount(tree, "SourceCurrencyBaseRate")

    has_detraction = False
    detraction_amount = detraction_code = detraction_pct = None
    if document_type == DocumentType.INVOICE:
        terms = find_detraction(tree)
        if terms is not None:
            amount = _amount(terms, "Amount")
            has_detraction = amount > 0
            if has_detraction:
                detraction_amount = amount
                detraction_code = terms.text_at("PaymentMeansID")
                detraction_pct = _amount(terms, "PaymentPercent")
            log.debug("Detraction %s (flag=%s)", amount, has_detraction)

    has_retention = False
    retention_amount = retention_pct = None
    if document_type == DocumentType.RECEIPT:
        sub = find_retention(tree)
        if sub is not None:
            amount = _amount(sub, "TaxAmount")
            pct = _amount(sub, "Percent") or _amount(sub, "TaxCategory.Percent")
            has_retention = amount > 0
            if has_retention:
                retention_amount = amount
                retention_pct = pct or DEFAULT_RETENTION_PCT
            log.debug("Retention %s (flag=%s)", amount, has_retention)

    net = net_payable(total, retention_amount, detraction_amount)
    return MoneyFields(
        subtotal=subtotal,
        igv=igv,
        total=total,
        allowance_total=allowance_total,
        exchange_rate=exchange_rate,
        has_retention=has_retention,
        retention_amount=retention_amount,
        retention_percentage=retention_pct,
        has_detraction=has_detraction,
        detraction_amount=detraction_amount,
        detraction_code=detraction_code,
        detraction_percentage=detraction_pct,
        net_payable_amount=net,
        conciliated_amount=ZERO,
        pending_amount=net,
    )
