"""Supplier and customer party readers."""

from __future__ import annotations

import logging

from cpe.constants import RUC_LENGTH
from cpe.models import SupplierInfo

from .codes import SUPPLIER_DOC_DNI, SUPPLIER_DOC_RUC
from .tree import RawNode

log = logging.getLogger(__name__)

SUPPLIER_PARTY = "AccountingSupplierParty"
CUSTOMER_PARTY = "AccountingCustomerParty"


def resolve_party_id(tree: RawNode, party: str) -> str:
    """Return the tax id (RUC/DNI) of ``party``.

    UBL 2.0 producers put it in ``CustomerAssignedAccountID``; UBL 2.1
    moved it to ``Party/PartyIdentification/ID``.
    """
    node = tree.first(party)
    if node is None:
        return ""
    return (
        node.text_at("CustomerAssignedAccountID")
        or node.text_at("Party.PartyIdentification.ID")
    ).strip()


def extract_supplier(tree: RawNode) -> SupplierInfo:
    party = tree.get(f"{SUPPLIER_PARTY}.Party")
    tax_id = resolve_party_id(tree, SUPPLIER_PARTY)
    if party is None:
        return SupplierInfo(
            business_name="",
            document_number=tax_id,
            document_type=_document_type(tax_id),
        )

    def _pick(*paths: str) -> str | None:
        for path in paths:
            value = party.text_at(path)
            if value:
                return value
        return None

    name = _pick("PartyLegalEntity.RegistrationName", "PartyName.Name") or ""
    supplier = SupplierInfo(
        business_name=name,
        document_number=tax_id,
        document_type=_document_type(tax_id),
        email=_pick("Contact.ElectronicMail"),
        phone=_pick("Contact.Telephone"),
        address=_pick("PostalAddress.StreetName"),
        district=_pick(
            "PostalAddress.CitySubdivisionName", "PostalAddress.District"
        ),
        province=_pick("PostalAddress.CountrySubentity", "PostalAddress.CityName"),
        department=_pick("PostalAddress.CountrySubentity"),
    )
    log.debug("Supplier %s (%s)", supplier.business_name, tax_id)
    return supplier


def _document_type(tax_id: str) -> str:
    return SUPPLIER_DOC_RUC if len(tax_id) == RUC_LENGTH else SUPPLIER_DOC_DNI
