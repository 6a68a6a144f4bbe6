from __future__ import annotations

import unicodedata


def display_text(value: str) -> str:
    """Printable form of a path for the report.

    Undecodable name bytes arrive as lone surrogates (`surrogateescape`) and
    are shown as U+FFFD. Filesystem calls keep using the raw value.
    """
    return value.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def filename_key(name: str, normalize: bool) -> str:
    """Return the comparison key of a directory child name.

    With `normalize`, canonically equivalent names (NFC vs NFD spellings of the
    same text) map to the same NFD key.
    """
    if not normalize:
        return name
    return unicodedata.normalize("NFD", name)
