"""Project-wide constants."""

from decimal import Decimal
from os import getenv


def _env_bool(name: str, default: str | None = None) -> bool:
    """Return a boolean flag read from the environment."""

    value = getenv(name)
    if value is None:
        value = default if default is not None else "0"
    value = str(value).strip().lower()
    return value not in {"0", "false", "no", "off", ""}


def _env_decimal(name: str, default: Decimal | str) -> Decimal:
    """Return a non-negative :class:`Decimal` read from the environment."""

    fallback = Decimal(str(default))
    raw = getenv(name)
    if raw is None or str(raw).strip() == "":
        return abs(fallback)
    try:
        normalized = str(raw).strip().replace(",", ".")
        value = Decimal(normalized)
    except Exception:
        return abs(fallback)
    return abs(value) if value.is_finite() else abs(fallback)


def _env_int(name: str, default: int) -> int:
    """Return a positive integer read from the environment."""

    raw = getenv(name)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        return default
    return value if value > 0 else default


# Verbose per-field tracing of the parsers (``[TRACE PARSE]`` log lines).
TRACE = _env_bool("CPE_TRACE", "0")

# Notes longer than this (or containing QR_SEPARATOR) carry the QR payload.
QR_MIN_LENGTH = _env_int("CPE_QR_MIN_LENGTH", 100)
QR_SEPARATOR = "|"

# 4th-category withholding rate used when the line does not state one.
DEFAULT_RETENTION_PCT = _env_decimal("CPE_DEFAULT_RETENTION_PCT", "8")

DEFAULT_CURRENCY = getenv("CPE_DEFAULT_CURRENCY", "PEN").strip() or "PEN"
DEFAULT_UBL_VERSION = "2.1"
DEFAULT_CUSTOMIZATION_ID = "2.0"
DEFAULT_UNIT_CODE = "NIU"
DEFAULT_LINE_DESCRIPTION = "Producto/Servicio"
DEFAULT_DOCUMENT_DESCRIPTION = "Documento electrónico"
DEFAULT_OBSERVATIONS = "Factura electrónica procesada automáticamente"

# Fixed markers prepended to the keyword tags of every imported document.
IMPORT_TAGS = ("imported", "xml")

# Length of a DNI (natural person); an 11 character id is a RUC.
NATURAL_PERSON_ID_LENGTH = 8
RUC_LENGTH = 11
