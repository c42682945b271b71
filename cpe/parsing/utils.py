"""Utility helpers for parsers."""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

import pandas as pd

log = logging.getLogger(__name__)


def _normalize_date(date_str: str) -> str:
    """Convert ``DD.MM.YYYY``, ``DD/MM/YYYY`` or ``YYYYMMDD`` into ``YYYY-MM-DD``."""
    s = date_str.replace(" ", "").replace("\xa0", "")
    m = re.match(r"(\d{4})(\d{2})(\d{2})$", s)
    if m:
        y, mth, d = m.groups()
        return f"{y}-{mth}-{d}"
    m = re.match(r"(\d{1,2})[./]\s*(\d{1,2})[./]\s*(\d{4})$", s)
    if m:
        d, mth, y = m.groups()
        return f"{y}-{int(mth):02d}-{int(d):02d}"
    return s


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str | None) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Missing or invalid dates never raise: the current time is returned and
    a warning is logged.
    """
    if not value or not value.strip():
        log.warning("Fecha ausente, usando fecha actual")
        return now_utc()
    ts = pd.to_datetime(_normalize_date(value.strip()), errors="coerce", utc=True)
    if pd.isna(ts):
        log.warning("Fecha inválida: %s, usando fecha actual", value)
        return now_utc()
    return ts.to_pydatetime()


def _decimal(txt: str | None) -> Decimal:
    """Parse a monetary text field; anything unparseable becomes ``0``."""
    if not txt:
        return Decimal("0")
    txt = txt.strip().replace("\xa0", "").replace(" ", "")
    if "," in txt and "." not in txt:
        txt = txt.replace(",", ".")
    else:
        txt = txt.replace(",", "")
    try:
        value = Decimal(txt)
    except InvalidOperation:
        return Decimal("0")
    return value if value.is_finite() else Decimal("0")


def _dec2(x: Decimal) -> Decimal:
    """Quantize value to two decimal places using ``ROUND_HALF_UP``."""
    return x.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _plain_number(x: Decimal) -> str:
    """Render ``x`` without exponent or trailing zeros (``118.00`` -> ``118``)."""
    text = format(x, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _optional(value: Decimal) -> Decimal | None:
    return value if value != 0 else None
