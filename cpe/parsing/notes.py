"""Classification of ``cbc:Note`` elements.

Each note ends up in exactly one bucket: the QR payload, the document
notes or the operation notes.  Explicit ``languageLocaleID`` metadata wins
over position, position wins over keyword sniffing.  Only the first
QR-shaped note is kept as the QR payload; later ones are not dropped but
classified like any other note.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from cpe.constants import QR_MIN_LENGTH, QR_SEPARATOR

from .codes import NoteLocale
from .tree import RawNode

log = logging.getLogger(__name__)

OPERATION_KEYWORDS = ("detracción", "retencion", "operación", "sujeta")


class NoteKind(str, Enum):
    QR = "qr"
    DOCUMENT = "document"
    OPERATION = "operation"


@dataclass
class NoteBuckets:
    qr_code: Optional[str] = None
    document_notes: List[str] = field(default_factory=list)
    operation_notes: List[str] = field(default_factory=list)


def looks_like_qr(text: str) -> bool:
    return QR_SEPARATOR in text or len(text) > QR_MIN_LENGTH


def has_operation_keyword(text: str) -> bool:
    lower = text.lower()
    return any(word in lower for word in OPERATION_KEYWORDS)


def classify_note(
    text: str,
    locale: Optional[str],
    *,
    qr_taken: bool,
    untagged_seen: bool,
) -> Tuple[NoteKind, bool]:
    """Classify one note.

    ``untagged_seen`` tells whether a note without locale has already been
    routed by position.  Returns the bucket and the updated flag.
    """
    if not qr_taken and looks_like_qr(text):
        return NoteKind.QR, untagged_seen
    if locale == NoteLocale.DOCUMENT.value:
        return NoteKind.DOCUMENT, untagged_seen
    if locale == NoteLocale.OPERATION.value:
        return NoteKind.OPERATION, untagged_seen
    if not locale and not untagged_seen:
        return NoteKind.DOCUMENT, True
    if has_operation_keyword(text):
        return NoteKind.OPERATION, untagged_seen
    return NoteKind.DOCUMENT, untagged_seen


def classify_notes(tree: RawNode) -> NoteBuckets:
    buckets = NoteBuckets()
    untagged_seen = False
    for note in tree.all("Note"):
        text = note.text
        if not text:
            continue
        kind, untagged_seen = classify_note(
            text,
            note.attr("languageLocaleID"),
            qr_taken=buckets.qr_code is not None,
            untagged_seen=untagged_seen,
        )
        if kind is NoteKind.QR:
            buckets.qr_code = text
        elif kind is NoteKind.OPERATION:
            buckets.operation_notes.append(text)
        else:
            buckets.document_notes.append(text)
    log.debug(
        "Notes: %d document, %d operation, qr=%s",
        len(buckets.document_notes),
        len(buckets.operation_notes),
        buckets.qr_code is not None,
    )
    return buckets
