from .base import DocumentParser
from .errors import (
    DocumentParseError,
    MalformedXmlError,
    MissingMandatoryFieldError,
    UnsupportedRootError,
)
from .fallback import FallbackParser, parse_with_fallback
from .ubl import UblTreeParser, parse_document

PARSERS = {
    UblTreeParser.name: UblTreeParser,
    FallbackParser.name: FallbackParser,
}


def get_parser(name: str = UblTreeParser.name) -> DocumentParser:
    """Return the parser registered under ``name`` (``ubl`` or ``fallback``)."""
    try:
        return PARSERS[name]()
    except KeyError:
        raise ValueError(f"Unknown parser {name!r}") from None


__all__ = [
    "DocumentParser",
    "DocumentParseError",
    "MalformedXmlError",
    "MissingMandatoryFieldError",
    "UnsupportedRootError",
    "FallbackParser",
    "UblTreeParser",
    "get_parser",
    "parse_document",
    "parse_with_fallback",
]
