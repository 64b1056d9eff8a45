"""Helpers for normalising answers and typed letters."""

from __future__ import annotations

import re
import unicodedata

NON_ALPHA_RE = re.compile(r"[^A-Z]")
ANSWER_RE = re.compile(r"^[A-Z]+$")


def clean_answer(text: str) -> str:
    """Return an uppercase A-Z representation of ``text``.

    Accents are folded to their base letter; spaces, digits and punctuation
    are dropped, so ``"Bussin'"`` becomes ``"BUSSIN"``.
    """

    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    ascii_text = decomposed.encode("ascii", "ignore").decode("ascii")
    return NON_ALPHA_RE.sub("", ascii_text.upper())


def is_valid_answer(text: str) -> bool:
    return bool(ANSWER_RE.match(text or ""))


def normalize_letter(char: str) -> str:
    """Return the single uppercase letter typed, or ``""`` if it is not one."""

    if not char or len(char) != 1:
        return ""
    upper = char.upper()
    return upper if "A" <= upper <= "Z" else ""


__all__ = ["clean_answer", "is_valid_answer", "normalize_letter"]
