"""
Text helpers shared by the API layer.

Functions
---------
normalize_text(text) -> str
    Canonicalize Persian text before it is stored or matched.
lc_text_from_content(content) -> str
    Flatten a LangChain message content payload to plain text.
"""

import re
import unicodedata

_PERSIAN_LETTERS = str.maketrans({
    "\u064a": "\u06cc",  # Arabic Yeh -> Farsi Yeh
    "\u0649": "\u06cc",  # Alef Maksura -> Farsi Yeh
    "\u0643": "\u06a9",  # Arabic Kaf -> Keheh
    "\u200c": " ",  # ZWNJ
})
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text) -> str:
    """
    Canonicalize Persian text for storage and matching.

    Applies NFC composition, maps Arabic Yeh/Kaf variants to their Persian
    letters, turns the zero-width non-joiner into a space, collapses
    whitespace runs and trims. ``None`` yields an empty string.

    Examples
    --------
    >>> normalize_text("كتاب")
    'کتاب'
    >>> normalize_text("  سلام   دنیا ")
    'سلام دنیا'
    """
    if text is None:
        return ""
    text = unicodedata.normalize("NFC", str(text))
    text = text.translate(_PERSIAN_LETTERS)
    return _WHITESPACE.sub(" ", text).strip()


def lc_text_from_content(content) -> str:
    """Normalize LangChain message content to plain text.

    - If string → return as-is.
    - If list of content parts → concatenates only 'text' parts.
    - Else → str(content).
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(p.get("text", "") for p in content if isinstance(p, dict) and p.get("type") == "text")
    return str(content)

