# File: cpe/cli.py
import json
import logging
from pathlib import Path

import click

from cpe.analyze import lines_frame, summarize
from cpe.parsing import DocumentParseError, get_parser


def _read_xml(path: Path) -> str:
    raw = path.read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1")


def _iter_xml(paths):
    for path_str in paths:
        path = Path(path_str)
        if path.is_dir():
            yield from sorted(p for p in path.rglob("*") if p.suffix.lower() == ".xml")
        else:
            yield path


@click.group()
def main():
    """CPE – importación de comprobantes electrónicos UBL (XML)."""
    logging.basicConfig(level=logging.INFO)


@main.command()
@click.argument("invoice", type=click.Path(exists=True, dir_okay=False))
@click.option("--fallback", is_flag=True, default=False, help="Usar el parser alternativo")
@click.option("--company", default="", help="ID de la empresa")
@click.option("--supplier-id", default="", help="ID del proveedor")
@click.option("--user", default="", help="ID del usuario")
@click.option("--json", "as_json", is_flag=True, default=False, help="Imprimir el cuerpo JSON")
def parse(invoice, fallback, company, supplier_id, user, as_json):
    """Muestra el documento normalizado de un XML."""
    path = Path(invoice)
    parser = get_parser("fallback" if fallback else "ubl")
    try:
        doc = parser.parse(_read_xml(path), path.name, company, supplier_id, user)
    except DocumentParseError as exc:
        raise click.ClickException(str(exc))
    if doc is None:
        raise click.ClickException(f"No se pudo procesar {path.name}")

    if as_json:
        body = doc.to_dict()
        body.pop("xmlContent", None)
        click.echo(json.dumps(body, ensure_ascii=False, indent=2))
        return

    summary = summarize(doc)
    for key, value in summary.items():
        click.echo(f"{key:>12}: {value}")
    df = lines_frame(doc)
    if not df.empty:
        click.echo(df.to_string(index=False))


@main.command()
@click.argument("invoices", type=click.Path(exists=True), nargs=-1)
@click.option("--fallback", is_flag=True, default=False, help="Usar el parser alternativo")
def validate(invoices, fallback):
    """Valida uno o más XML (archivos o carpetas, búsqueda recursiva)."""
    if not invoices:
        click.echo("Indique al menos un archivo o carpeta.")
        return

    parser = get_parser("fallback" if fallback else "ubl")
    seen: dict[str, str] = {}
    failures = 0
    for xml_file in _iter_xml(invoices):
        filename = xml_file.name
        try:
            doc = parser.parse(_read_xml(xml_file), filename, "", "", "")
        except DocumentParseError as exc:
            click.echo(f"[ERROR]     {filename}: {exc}")
            failures += 1
            continue
        if doc is None:
            click.echo(f"[ERROR]     {filename}: no se pudo procesar")
            failures += 1
            continue
        if doc.xml_hash in seen:
            click.echo(f"[DUPLICADO] {filename}: igual a {seen[doc.xml_hash]}")
            continue
        seen[doc.xml_hash] = filename
        click.echo(
            f"[OK]        {filename}: {doc.document_type.value} {doc.full_number} "
            f"neto {doc.net_payable_amount} {doc.currency}"
        )
    if failures:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
