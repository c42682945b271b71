"""Line item extraction (``cac:InvoiceLine``)."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List

from cpe.constants import DEFAULT_LINE_DESCRIPTION, DEFAULT_UNIT_CODE
from cpe.models import LineItem

from .codes import FREE_OF_CHARGE_PRICE_TYPE
from .tree import RawNode
from .utils import _decimal, _optional

log = logging.getLogger(__name__)


def placeholder_code(line_number: int) -> str:
    return f"PROD{line_number:03d}"


def _indicator(line: RawNode, value: str) -> bool:
    return any(
        charge.text_at("ChargeIndicator").lower() == value
        for charge in line.all("AllowanceCharge")
    )


def extract_line(line: RawNode, line_number: int) -> LineItem:
    """Build one :class:`LineItem`; every field degrades independently."""
    qty_node = line.first("InvoicedQuantity")
    quantity = _decimal(qty_node.text if qty_node is not None else "")
    unit_code = qty_node.attr("unitCode") if qty_node is not None else None

    subtotal = line.get("TaxTotal.TaxSubtotal")
    category = subtotal.first("TaxCategory") if subtotal is not None else None

    def _cat(path: str) -> str | None:
        if category is None:
            return None
        return category.text_at(path) or None

    free = (
        line.text_at("PricingReference.AlternativeConditionPrice.PriceTypeCode")
        == FREE_OF_CHARGE_PRICE_TYPE
    )
    return LineItem(
        line_number=line_number,
        product_code=(
            line.text_at("Item.SellersItemIdentification.ID")
            or placeholder_code(line_number)
        ),
        description=line.text_at("Item.Description") or DEFAULT_LINE_DESCRIPTION,
        quantity=quantity or Decimal("1"),
        unit_code=unit_code or DEFAULT_UNIT_CODE,
        unit_price=_decimal(line.text_at("Price.PriceAmount")),
        line_total=_decimal(line.text_at("LineExtensionAmount")),
        igv_amount=_optional(_decimal(line.text_at("TaxTotal.TaxAmount"))),
        tax_percentage=_optional(_decimal(_cat("Percent"))),
        tax_category_id=_cat("ID"),
        tax_scheme_id=_cat("TaxScheme.ID"),
        tax_scheme_name=_cat("TaxScheme.Name"),
        taxable_amount=(
            _optional(_decimal(subtotal.text_at("TaxableAmount")))
            if subtotal is not None
            else None
        ),
        tax_exemption_code=_cat("TaxExemptionReasonCode"),
        free_of_charge_indicator=True if free else None,
        allowance_indicator=_indicator(line, "false"),
        charge_indicator=_indicator(line, "true"),
    )


def extract_lines(tree: RawNode) -> List[LineItem]:
    """Return all lines in document order, numbered from 1."""
    lines = [
        extract_line(line, idx)
        for idx, line in enumerate(tree.all("InvoiceLine"), start=1)
    ]
    log.debug("Extracted %d lines", len(lines))
    return lines
