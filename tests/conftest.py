import pytest

UBL_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<Invoice xmlns="urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"'
    ' xmlns:cac="urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2"'
    ' xmlns:cbc="urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2"'
    ' xmlns:ext="urn:oasis:names:specification:ubl:schema:xsd:CommonExtensionComponents-2">'
)


def make_line(
    code="SRV-01",
    description="Servicio de consultoria",
    qty="2",
    unit="ZZ",
    price="50.00",
    total="100.00",
    igv="18.00",
    percent="18.00",
    category="S",
    taxable="100.00",
    exemption="10",
    price_type=None,
    charge_indicator=None,
    extra_subtotal="",
):
    parts = ["<cac:InvoiceLine><cbc:ID>1</cbc:ID>"]
    if qty is not None:
        parts.append(f'<cbc:InvoicedQuantity unitCode="{unit}">{qty}</cbc:InvoicedQuantity>')
    parts.append(f'<cbc:LineExtensionAmount currencyID="PEN">{total}</cbc:LineExtensionAmount>')
    if price_type is not None:
        parts.append(
            "<cac:PricingReference><cac:AlternativeConditionPrice>"
            f'<cbc:PriceAmount currencyID="PEN">{price}</cbc:PriceAmount>'
            f"<cbc:PriceTypeCode>{price_type}</cbc:PriceTypeCode>"
            "</cac:AlternativeConditionPrice></cac:PricingReference>"
        )
    if charge_indicator is not None:
        parts.append(
            "<cac:AllowanceCharge>"
            f"<cbc:ChargeIndicator>{charge_indicator}</cbc:ChargeIndicator>"
            '<cbc:Amount currencyID="PEN">5.00</cbc:Amount>'
            "</cac:AllowanceCharge>"
        )
    if category is not None:
        parts.append(
            "<cac:TaxTotal>"
            f'<cbc:TaxAmount currencyID="PEN">{igv}</cbc:TaxAmount>'
            "<cac:TaxSubtotal>"
            f'<cbc:TaxableAmount currencyID="PEN">{taxable}</cbc:TaxableAmount>'
            f'<cbc:TaxAmount currencyID="PEN">{igv}</cbc:TaxAmount>'
            "<cac:TaxCategory>"
            f"<cbc:ID>{category}</cbc:ID>"
            f"<cbc:Percent>{percent}</cbc:Percent>"
            f"<cbc:TaxExemptionReasonCode>{exemption}</cbc:TaxExemptionReasonCode>"
            "<cac:TaxScheme><cbc:ID>1000</cbc:ID><cbc:Name>IGV</cbc:Name></cac:TaxScheme>"
            "</cac:TaxCategory>"
            "</cac:TaxSubtotal>"
            f"{extra_subtotal}"
            "</cac:TaxTotal>"
        )
    parts.append("<cac:Item>")
    if description is not None:
        parts.append(f"<cbc:Description>{description}</cbc:Description>")
    if code is not None:
        parts.append(f"<cac:SellersItemIdentification><cbc:ID>{code}</cbc:ID></cac:SellersItemIdentification>")
    parts.append("</cac:Item>")
    parts.append(f'<cac:Price><cbc:PriceAmount currencyID="PEN">{price}</cbc:PriceAmount></cac:Price>')
    parts.append("</cac:InvoiceLine>")
    return "".join(parts)


def retention_subtotal(amount="80.00", percent=None):
    pct = f"<cbc:Percent>{percent}</cbc:Percent>" if percent is not None else ""
    return (
        "<cac:TaxSubtotal>"
        '<cbc:TaxableAmount currencyID="PEN">1000.00</cbc:TaxableAmount>'
        f'<cbc:TaxAmount currencyID="PEN">{amount}</cbc:TaxAmount>'
        f"{pct}"
        "<cac:TaxCategory><cbc:ID>RET 4TA</cbc:ID>"
        "<cac:TaxScheme><cbc:ID>9999</cbc:ID><cbc:Name>RET</cbc:Name></cac:TaxScheme>"
        "</cac:TaxCategory>"
        "</cac:TaxSubtotal>"
    )


def payment_term(term_id, amount="0.00", means="001", percent="12"):
    return (
        "<cac:PaymentTerms>"
        f"<cbc:ID>{term_id}</cbc:ID>"
        f"<cbc:PaymentMeansID>{means}</cbc:PaymentMeansID>"
        f"<cbc:PaymentPercent>{percent}</cbc:PaymentPercent>"
        f'<cbc:Amount currencyID="PEN">{amount}</cbc:Amount>'
        "</cac:PaymentTerms>"
    )


def make_invoice(
    doc_id="F001-000123",
    type_code="01",
    issue_date="2024-03-15",
    due_date="2024-04-15",
    currency="PEN",
    notes=(("SON CIENTO DIECIOCHO CON 00/100 SOLES", "1000"),),
    supplier_ruc="20100066603",
    supplier_name="ACME INGENIEROS S.A.C.",
    customer_ruc="20601234567",
    supplier_id_tag="PartyIdentification",
    payment_terms="",
    subtotal="100.00",
    igv="18.00",
    payable="118.00",
    allowance=None,
    exchange_rate=None,
    lines=None,
):
    parts = [UBL_HEADER]
    parts.append(
        "<ext:UBLExtensions><ext:UBLExtension><ext:ExtensionContent/>"
        "</ext:UBLExtension></ext:UBLExtensions>"
    )
    parts.append("<cbc:UBLVersionID>2.1</cbc:UBLVersionID>")
    parts.append("<cbc:CustomizationID>2.0</cbc:CustomizationID>")
    if doc_id is not None:
        parts.append(f"<cbc:ID>{doc_id}</cbc:ID>")
    if issue_date is not None:
        parts.append(f"<cbc:IssueDate>{issue_date}</cbc:IssueDate>")
    if due_date is not None:
        parts.append(f"<cbc:DueDate>{due_date}</cbc:DueDate>")
    if type_code is not None:
        parts.append(f'<cbc:InvoiceTypeCode listID="0101">{type_code}</cbc:InvoiceTypeCode>')
    for text, locale in notes:
        if locale is None:
            parts.append(f"<cbc:Note><![CDATA[{text}]]></cbc:Note>")
        else:
            parts.append(f'<cbc:Note languageLocaleID="{locale}"><![CDATA[{text}]]></cbc:Note>')
    parts.append(f"<cbc:DocumentCurrencyCode>{currency}</cbc:DocumentCurrencyCode>")
    if exchange_rate is not None:
        parts.append(f"<cbc:SourceCurrencyBaseRate>{exchange_rate}</cbc:SourceCurrencyBaseRate>")

    parts.append("<cac:AccountingSupplierParty>")
    if supplier_ruc is not None and supplier_id_tag == "CustomerAssignedAccountID":
        parts.append(f"<cbc:CustomerAssignedAccountID>{supplier_ruc}</cbc:CustomerAssignedAccountID>")
    parts.append("<cac:Party>")
    if supplier_ruc is not None and supplier_id_tag == "PartyIdentification":
        parts.append(
            f'<cac:PartyIdentification><cbc:ID schemeID="6">{supplier_ruc}</cbc:ID></cac:PartyIdentification>'
        )
    if supplier_name is not None:
        parts.append(f"<cac:PartyName><cbc:Name><![CDATA[{supplier_name}]]></cbc:Name></cac:PartyName>")
        parts.append(
            "<cac:PartyLegalEntity>"
            f"<cbc:RegistrationName><![CDATA[{supplier_name}]]></cbc:RegistrationName>"
            "</cac:PartyLegalEntity>"
        )
    parts.append(
        "<cac:PostalAddress>"
        "<cbc:StreetName>AV. AREQUIPA 123</cbc:StreetName>"
        "<cbc:CitySubdivisionName>MIRAFLORES</cbc:CitySubdivisionName>"
        "<cbc:CityName>LIMA</cbc:CityName>"
        "<cbc:CountrySubentity>LIMA</cbc:CountrySubentity>"
        "</cac:PostalAddress>"
        "<cac:Contact>"
        "<cbc:Telephone>01-4445555</cbc:Telephone>"
        "<cbc:ElectronicMail>facturas@acme.pe</cbc:ElectronicMail>"
        "</cac:Contact>"
    )
    parts.append("</cac:Party></cac:AccountingSupplierParty>")

    parts.append("<cac:AccountingCustomerParty><cac:Party>")
    if customer_ruc is not None:
        parts.append(
            f'<cac:PartyIdentification><cbc:ID schemeID="6">{customer_ruc}</cbc:ID></cac:PartyIdentification>'
        )
    parts.append(
        "<cac:PartyLegalEntity><cbc:RegistrationName>CLIENTE SAC</cbc:RegistrationName></cac:PartyLegalEntity>"
    )
    parts.append("</cac:Party></cac:AccountingCustomerParty>")

    parts.append(payment_terms)
    parts.append(
        "<cac:TaxTotal>"
        f'<cbc:TaxAmount currencyID="PEN">{igv}</cbc:TaxAmount>'
        "</cac:TaxTotal>"
    )
    parts.append("<cac:LegalMonetaryTotal>")
    parts.append(f'<cbc:LineExtensionAmount currencyID="PEN">{subtotal}</cbc:LineExtensionAmount>')
    if allowance is not None:
        parts.append(f'<cbc:AllowanceTotalAmount currencyID="PEN">{allowance}</cbc:AllowanceTotalAmount>')
    parts.append(f'<cbc:PayableAmount currencyID="PEN">{payable}</cbc:PayableAmount>')
    parts.append("</cac:LegalMonetaryTotal>")

    for line in lines if lines is not None else [make_line()]:
        parts.append(line)
    parts.append("</Invoice>")
    return "".join(parts)


@pytest.fixture
def invoice_xml():
    return make_invoice


@pytest.fixture
def invoice_line():
    return make_line


@pytest.fixture
def ret_subtotal():
    return retention_subtotal


@pytest.fixture
def payment_terms():
    return payment_term
