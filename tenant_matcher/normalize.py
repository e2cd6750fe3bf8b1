"""Tenant Name Normalization Utilities.

This module provides the pure string transforms used to compare tenant
labels coming from the property manager (PM) and Odoo (AM) sources.
All functions are total: any input string produces an output, never an error.

Two levels of normalization are offered:
1. normalize_for_key: coarse folding used for row keys
   (diacritics, case, punctuation, whitespace)
2. normalize_legal_form: additionally cuts administrative clauses and
   strips legal-entity forms, used only by the matcher

Examples:
    "Müller-Brot GmbH"                  → normalize_for_key → "muller brot gmbh"
    "Müller-Brot GmbH"                  → normalize_legal_form → "muller brot"
    "REWE Markt GmbH Zweigniederlassung Süd" → tokenize → ["rewe"]
"""

import re
import unicodedata
from typing import Iterable, List, Set


# Separators folded to a space in row keys
_KEY_PUNCTUATION = re.compile(r"[-–—_/.,;:()&]")
_WHITESPACE = re.compile(r"\s+")

# Everything from one of these markers to the end of the label is dropped
_TRAILING_CLAUSES = [
    re.compile(r"\bc/o\b.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"\bobjektmanagement\b.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"\bzweigniederlassung\b.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"\bvertragswesen\b.*$", re.IGNORECASE | re.DOTALL),
    re.compile(r"\bregion\b.*$", re.IGNORECASE | re.DOTALL),
]

# Legal-entity forms and generic business words, as regex fragments.
# Alternation order matters: the first alternative that matches wins.
LEGAL_FORMS = [
    "gmbh", "gmbh & co", "gmbh & co. kg", "kg", "se", "ag", "eg", r"e\.k\.", "ohg", "ug",
    "stiftung", r"stiftung & co\. kg", "stiftung & co kg",
    "gesellschaft", "gesellschaft mbh",
    "vermessungs", "verwaltung", "immobilien", "immobilien-?service", "service",
    "handelsgesellschaft", "vertrieb", "vertriebs-?gmbh", "discothekenbetriebs",
    "qualitatswerkzeuge", "qualitätswerkzeuge",
    "center", "center gmbh", "beteiligungs", "holding", "objekt", "objektmanagement",
    "niederlassung",
]

_LEGAL_FORMS_RE = re.compile(
    r"\b(?:" + "|".join(LEGAL_FORMS) + r")\b",
    re.IGNORECASE,
)

_LEGAL_PUNCTUATION = re.compile(r"[.,/()\[\]&]+")

# Tokens that carry no identifying information
STOPWORDS: Set[str] = {
    "gmbh", "kg", "se", "ag", "eg", "ohg", "ug", "stiftung", "gesellschaft",
    "verwaltung", "immobilien", "service", "handelsgesellschaft", "vertrieb",
    "center", "holding", "beteiligungs", "niederlassung", "region", "markt",
    "discothekenbetriebs", "qualitatswerkzeuge", "qualitats", "qualitäts",
    "werkzeuge", "objekt", "objektmanagement", "abteilung", "mietwesen",
    "immobilienmanagement", "immobilien-", "vertragswesen", "zweigniederlassung",
    "co", "und", "&", "der", "die", "das",
}


def fold_diacritics(text: str) -> str:
    """Decompose to NFD and drop combining marks (ü → u, é → e)."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _fold_basic(text: str) -> str:
    """Case, diacritic and whitespace folding shared by both normalizers."""
    folded = fold_diacritics(text.lower())
    return _WHITESPACE.sub(" ", folded).strip()


def normalize_for_key(text: str) -> str:
    """Normalize a tenant name for use in a row key.

    Coarse on purpose: legal suffixes are kept, so "Aldi GmbH" and "Aldi"
    produce different keys.

    Args:
        text: Any tenant label

    Returns:
        Folded label (lowercase, no diacritics, punctuation as single spaces)

    Examples:
        >>> normalize_for_key("  Café  Müller / Bäckerei ")
        'cafe muller backerei'
    """
    if not text:
        return ""
    folded = fold_diacritics(str(text).lower())
    folded = _KEY_PUNCTUATION.sub(" ", folded)
    return _WHITESPACE.sub(" ", folded).strip()


def normalize_legal_form(text: str) -> str:
    """Normalize a tenant name with legal and administrative noise removed.

    The process:
    1. Cut trailing clauses ("c/o ...", "Zweigniederlassung ...", "Region ...")
    2. Remove legal-entity forms as whole words (GmbH, KG, AG, Holding, ...)
    3. Replace remaining punctuation and hyphens with spaces
    4. Fold case, diacritics and whitespace

    Examples:
        >>> normalize_legal_form("Carrefour GmbH")
        'carrefour'
        >>> normalize_legal_form("Netto Marken-Discount c/o Objektverwaltung")
        'netto marken discount'
    """
    if not text:
        return ""
    s = f" {text} "
    for clause in _TRAILING_CLAUSES:
        s = clause.sub(" ", s)
    s = _LEGAL_FORMS_RE.sub(" ", s)
    s = _LEGAL_PUNCTUATION.sub(" ", s).replace("-", " ")
    return _fold_basic(s)


def tokenize(text: str) -> List[str]:
    """Split a label into significant tokens.

    Applies normalize_legal_form, splits on whitespace and drops stopwords.
    Order is preserved and duplicates are kept.

    Examples:
        >>> tokenize("Edeka Markt Müller & Söhne")
        ['edeka', 'muller', 'sohne']
    """
    return [t for t in normalize_legal_form(text).split() if t and t not in STOPWORDS]


def token_signature(text: str) -> str:
    """Order- and duplicate-insensitive fingerprint of a label's tokens."""
    return " ".join(sorted(set(tokenize(text))))


def jaccard_similarity(tokens_a: Iterable[str], tokens_b: Iterable[str]) -> float:
    """Jaccard similarity |A ∩ B| / |A ∪ B| over token sets.

    Returns 0.0 when both sets are empty.
    """
    set_a = set(tokens_a)
    set_b = set(tokens_b)
    union = len(set_a | set_b)
    if union == 0:
        return 0.0
    return len(set_a & set_b) / union
