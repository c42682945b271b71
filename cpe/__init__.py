"""Import of SUNAT UBL electronic documents into normalized records."""

from .models import DocumentType, LineItem, NormalizedDocument, SupplierInfo
from .parsing import get_parser, parse_document, parse_with_fallback

__all__ = [
    "DocumentType",
    "LineItem",
    "NormalizedDocument",
    "SupplierInfo",
    "get_parser",
    "parse_document",
    "parse_with_fallback",
]
