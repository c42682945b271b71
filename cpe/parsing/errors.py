"""Fatal parse errors raised by the primary UBL pipeline."""

from __future__ import annotations


class DocumentParseError(ValueError):
    """Base class; the message is meant to be shown to the user verbatim."""


class MalformedXmlError(DocumentParseError):
    def __init__(self, detail: str = "") -> None:
        msg = "XML mal formado"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class UnsupportedRootError(DocumentParseError):
    def __init__(self, root_tag: str) -> None:
        self.root_tag = root_tag
        super().__init__(
            f"No es un documento Invoice válido (raíz: {root_tag or '?'})"
        )


# Field name -> actionable message.
MANDATORY_FIELD_MESSAGES = {
    "documentId": "No se encontró el ID del documento en el XML",
    "supplierName": "No se encontró el nombre del proveedor en el XML",
    "supplierTaxId": "No se encontró el RUC del proveedor en el XML",
}


class MissingMandatoryFieldError(DocumentParseError):
    """A mandatory field is empty after full extraction."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(MANDATORY_FIELD_MESSAGES.get(field, f"Falta el campo {field}"))
