"""
Tenant Name Normalization Tests

Covers the pure string transforms used for row keys and matching:
1. normalize_for_key folds case, diacritics, punctuation and whitespace
2. normalize_legal_form strips legal forms and trailing clauses
3. tokenize / token_signature drop stopwords and ignore order
4. jaccard_similarity over token sets
"""

import pytest

from tenant_matcher.normalize import (
    fold_diacritics,
    jaccard_similarity,
    normalize_for_key,
    normalize_legal_form,
    token_signature,
    tokenize,
)


class TestNormalizeForKey:
    """Coarse folding used for row keys."""

    def test_folds_case_and_diacritics(self):
        assert normalize_for_key("Müller Bäckerei") == "muller backerei"
        assert normalize_for_key("CAFÉ") == "cafe"

    def test_punctuation_becomes_single_space(self):
        assert normalize_for_key("A-B_C/D.E,F;G:H(I)J&K") == "a b c d e f g h i j k"
        assert normalize_for_key("Foo – Bar — Baz") == "foo bar baz"

    def test_whitespace_collapsed_and_trimmed(self):
        assert normalize_for_key("  Netto \t Marken\nDiscount  ") == "netto marken discount"

    def test_legal_suffix_kept(self):
        """Row keys do not strip legal forms."""
        assert normalize_for_key("Aldi GmbH") == "aldi gmbh"

    def test_empty_and_none(self):
        assert normalize_for_key("") == ""
        assert normalize_for_key(None) == ""

    @pytest.mark.parametrize("text", [
        "  Café  Müller / Bäckerei ",
        "Kik Textilien & Non-Food GmbH",
        "(((---)))",
        "ÄÖÜ äöü ß",
        "Rossmann   Drogerie-Markt",
    ])
    def test_idempotent(self, text):
        once = normalize_for_key(text)
        assert normalize_for_key(once) == once


class TestNormalizeLegalForm:
    """Legal-form stripping used by the matcher."""

    def test_strips_gmbh(self):
        assert normalize_legal_form("Carrefour GmbH") == "carrefour"

    def test_strips_several_forms(self):
        assert normalize_legal_form("XYZ Immobilien Verwaltung GmbH") == "xyz"

    def test_only_whole_words(self):
        """'ag' inside a word is not a legal form."""
        assert normalize_legal_form("Aga Markt") == "aga markt"

    def test_cuts_trailing_clauses(self):
        assert normalize_legal_form("Netto Marken-Discount c/o Objektverwaltung") == "netto marken discount"
        assert normalize_legal_form("REWE Zweigniederlassung Süd") == "rewe"
        assert normalize_legal_form("Edeka Region Nord") == "edeka"

    def test_punctuation_and_hyphens(self):
        assert normalize_legal_form("Müller-Brot (Filiale) [alt]") == "muller brot filiale alt"

    def test_empty(self):
        assert normalize_legal_form("") == ""
        assert normalize_legal_form("GmbH") == ""


class TestTokenize:
    """Tokens and signatures."""

    def test_drops_stopwords(self):
        assert tokenize("Edeka Markt Müller & Söhne") == ["edeka", "muller", "sohne"]

    def test_keeps_order_and_duplicates(self):
        assert tokenize("Beta Alpha Beta") == ["beta", "alpha", "beta"]

    def test_co_is_a_stopword(self):
        assert tokenize("XYZ Immobilien Verwaltung GmbH & Co. KG") == ["xyz"]

    def test_signature_ignores_order_and_duplicates(self):
        assert token_signature("Handels Carrefour") == token_signature("Carrefour Handels Carrefour")
        assert token_signature("Handels Carrefour") == "carrefour handels"

    def test_signature_of_noise_is_empty(self):
        assert token_signature("GmbH & Co. KG") == ""


class TestJaccard:
    """Jaccard similarity over token sets."""

    def test_identical(self):
        assert jaccard_similarity(["a", "b"], ["b", "a"]) == 1.0

    def test_disjoint(self):
        assert jaccard_similarity(["a"], ["b"]) == 0.0

    def test_partial(self):
        assert jaccard_similarity(["a", "b", "c"], ["a", "b", "d"]) == pytest.approx(0.5)

    def test_duplicates_ignored(self):
        assert jaccard_similarity(["a", "a", "b"], ["a", "b"]) == 1.0

    def test_both_empty(self):
        assert jaccard_similarity([], []) == 0.0


def test_fold_diacritics():
    assert fold_diacritics("Crème brûlée") == "Creme brulee"
