from __future__ import annotations

import re
import urllib.parse
from typing import Any, Dict, Iterable, List, Optional

from rapidfuzz.fuzz import ratio as fuzz_ratio
from unidecode import unidecode

from .config import WIKI_API_TEMPLATE
from .exceptions import DECODE_ERRORS, PARSE_ERRORS


__all__ = [
    "build_url",
    "wiki_api_url",
    "strip_namespace",
    "unescape_link_title",
    "parse_lang_list",
    "strip_accents",
    "normalize_name",
    "name_similarity",
    "safe_get_nested",
]

# \x{hh} escapes that older langlinks payloads leave in titles
_HEX_ESCAPE_RE = re.compile(r"\\x\{([0-9A-Fa-f]{2})\}")


def build_url(base: str, params: Dict[str, Any]) -> str:
    """
    Attach query parameters to a base URL and return the fully encoded address as a string.
    """
    q = urllib.parse.urlencode(params)
    return f"{base}?{q}"


def wiki_api_url(lang: str) -> str:
    """
    Return the action API endpoint of the Wikipedia edition for a language code.
    """
    return WIKI_API_TEMPLATE.format(lang=urllib.parse.quote(lang, safe=""))


def strip_namespace(title: str) -> str:
    """
    Drop the namespace prefix from a page title, so "Категорія:Українські поети"
    becomes "Українські поети". Everything up to the last colon is removed.
    """
    return title.rsplit(":", 1)[-1] if title else title


def unescape_link_title(title: str) -> str:
    r"""
    Replace \x{hh} byte escapes in a language link title with the characters
    they stand for.
    """
    if not title:
        return title
    return _HEX_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), title)


def parse_lang_list(values: Optional[Iterable[str]], primary: Optional[str] = None) -> List[str]:
    """
    Flatten repeated and comma-separated language options into one ordered
    list without duplicates, with the primary language first.

    The order matters: it is the priority used to resolve which existing
    record a fetched author belongs to.
    """
    langs: List[str] = []
    if primary:
        langs.append(primary.strip())
    for value in values or []:
        for part in value.split(","):
            part = part.strip()
            if part and part not in langs:
                langs.append(part)
    return langs


def strip_accents(s: str) -> str:
    """
    Transliterate a string to ASCII so spellings of the same name in different
    scripts or with different diacritics can be compared.
    """
    try:
        return unidecode(s)
    except PARSE_ERRORS + DECODE_ERRORS:
        return s


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize an author name for fuzzy comparison: transliterate, lowercase,
    drop punctuation and bracketed disambiguators, collapse whitespace.
    """
    if not name:
        return ""
    s = re.sub(r"\([^)]*\)", " ", str(name))
    s = strip_accents(s).lower()
    s = re.sub(r"[^\w\s]", " ", s)
    return re.sub(r"\s+", " ", s).strip()


def name_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Compute a similarity score between two names after normalization, returning
    a value between 0 and 1 where higher means more similar.
    """
    norm_a = normalize_name(a)
    norm_b = normalize_name(b)
    if not norm_a or not norm_b:
        return 0.0
    if norm_a == norm_b:
        return 1.0
    # rapidfuzz.fuzz.ratio returns 0-100, normalize to 0-1
    return fuzz_ratio(norm_a, norm_b) / 100.0


def safe_get_nested(obj: Any, *keys: str, default=None) -> Any:
    """
    Safely get a nested dictionary value with null-safety, traversing multiple keys
    and returning a default if any key is missing.
    """
    current = obj
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current
