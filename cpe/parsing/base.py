"""Common interface of the two document parsers."""

from __future__ import annotations

from typing import Optional, Protocol

from cpe.models import NormalizedDocument


class DocumentParser(Protocol):
    """Turn one XML document into a :class:`NormalizedDocument`.

    The UBL tree parser raises :class:`~cpe.parsing.errors.DocumentParseError`
    on fatal problems; the fallback parser returns ``None`` instead.  The
    caller picks a parser explicitly, parsers never cascade into each other.
    """

    name: str

    def parse(
        self,
        xml_content: str,
        file_name: str,
        company_id: str,
        supplier_id: str,
        user_id: str,
    ) -> Optional[NormalizedDocument]:
        ...
