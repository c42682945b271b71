"""Enumerations for SUNAT UBL codes used in parsing."""

from enum import Enum


class InvoiceTypeCode(str, Enum):
    """Catalogue 01 document type codes (``cbc:InvoiceTypeCode``)."""

    INVOICE = "01"
    BOLETA = "03"
    CREDIT_NOTE = "07"
    DEBIT_NOTE = "08"


class NoteLocale(str, Enum):
    """Catalogue 52 legend codes carried in ``languageLocaleID``."""

    DOCUMENT = "1000"
    OPERATION = "2006"


class PaymentTermId(str, Enum):
    """``cac:PaymentTerms/cbc:ID`` markers."""

    DETRACTION = "Detraccion"
    RETENTION = "Retencion"


# Tax category of the 4th-category withholding on a recibo por honorarios.
RETENTION_TAX_CATEGORY = "RET 4TA"

# ``PriceTypeCode`` of a free-of-charge (transferencia gratuita) line.
FREE_OF_CHARGE_PRICE_TYPE = "02"

# Supplier document type codes (catalogue 06).
SUPPLIER_DOC_RUC = "6"
SUPPLIER_DOC_DNI = "1"
