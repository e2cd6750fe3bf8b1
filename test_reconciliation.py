"""
Reconciliation Engine Tests

Validates the PM/Odoo join:
1. Join completeness and one-sided classification
2. Delta absence for one-sided rows (None, never 0)
3. Flagging thresholds and monotonicity
4. AM code precedence and guessing
5. Presentation views (hidden tenants, filters, display flags)
6. AM code resolver
"""

import random

import pytest

from core.models import TenancyRecord
from reconciliation import (
    AMCodeResolver,
    CombinedRow,
    ThresholdConfig,
    ViewMode,
    am_code_for_salesperson,
    display_flags,
    drop_hidden_tenants,
    filter_rows,
    is_hidden_tenant,
    reconcile,
    row_key,
    split_row_key,
    summarize,
)
from tenant_matcher import TenantNameMatcher


def pm(asset, tenant, space=0, rent=0, walt=None, city=None, am=""):
    return TenancyRecord(asset_ref=asset, tenant_name=tenant, space=space, rent=rent, walt=walt, city=city, am=am)


am_row = pm  # same shape on both sides


@pytest.fixture
def sample():
    pm_rows = [
        pm("AA1", "Carrefour", space=1000, rent=5000),
        pm("AA1", "Netto", space=500, rent=2000, walt=3.0),
        pm("BB2", "Kik", space=300, rent=900),
    ]
    am_rows = [
        am_row("AA1", "Carrefour", space=1010, rent=5050, walt=2.0, city="Berlin", am="CFR"),
        am_row("AA1", "NETTO", space=500, rent=2001, walt=3.2, city="Berlin", am="CFR"),
        am_row("CC3", "Lidl", space=800, rent=4000, walt=5.0, city="Köln", am="BKO"),
    ]
    return pm_rows, am_rows


class TestRowKey:

    def test_composite_key(self):
        assert row_key(" aa 1", "Café Müller GmbH") == "AA1@@cafe muller gmbh"

    def test_split(self):
        assert split_row_key("AA1@@cafe muller") == ("AA1", "cafe muller")

    def test_same_tenancy_despite_formatting(self):
        assert row_key("AA1", "Müller-Brot") == row_key("aa1", "MULLER brot")


class TestJoin:
    """Outer join classification."""

    def test_join_completeness(self, sample):
        pm_rows, am_rows = sample
        rows = reconcile(pm_rows, am_rows)

        pm_keys = {row_key(r.asset_ref, r.tenant_name) for r in pm_rows}
        am_keys = {row_key(r.asset_ref, r.tenant_name) for r in am_rows}
        assert {r.key for r in rows} == pm_keys | am_keys
        assert len(rows) == len(pm_keys | am_keys)

        for row in rows:
            assert row.only_pm == (row.key in pm_keys and row.key not in am_keys)
            assert row.only_am == (row.key in am_keys and row.key not in pm_keys)

    def test_case_and_punctuation_join(self, sample):
        pm_rows, am_rows = sample
        netto = next(r for r in reconcile(pm_rows, am_rows) if r.key == "AA1@@netto")
        assert netto.matched
        assert netto.tenant == "Netto"  # PM display name wins

    def test_pm_only_row_has_no_deltas(self, sample):
        pm_rows, am_rows = sample
        kik = next(r for r in reconcile(pm_rows, am_rows) if r.asset_ref == "BB2")
        assert kik.only_pm and not kik.only_am
        assert kik.delta_space is None
        assert kik.delta_rent is None
        assert kik.delta_walt is None
        assert not kik.flagged

    def test_am_only_row(self, sample):
        pm_rows, am_rows = sample
        lidl = next(r for r in reconcile(pm_rows, am_rows) if r.asset_ref == "CC3")
        assert lidl.only_am and not lidl.only_pm
        assert lidl.tenant == "Lidl"
        assert lidl.city == "Köln"
        assert lidl.am_code == "BKO"
        assert lidl.delta_rent is None

    def test_empty_inputs(self):
        assert reconcile([], []) == []

    def test_duplicate_keys_last_wins(self):
        rows = reconcile([pm("AA1", "Netto", rent=1), pm("AA1", "NETTO", rent=2)], [])
        assert len(rows) == 1
        assert rows[0].pm_record.rent == 2

    def test_input_order_does_not_matter(self, sample):
        pm_rows, am_rows = sample
        expected = reconcile(pm_rows, am_rows)
        shuffled_pm, shuffled_am = list(pm_rows), list(am_rows)
        random.Random(7).shuffle(shuffled_pm)
        random.Random(11).shuffle(shuffled_am)
        assert reconcile(shuffled_pm, shuffled_am) == expected

    def test_sorted_by_asset_then_tenant(self, sample):
        pm_rows, am_rows = sample
        rows = reconcile(pm_rows, am_rows)
        assert [(r.asset_ref, r.tenant) for r in rows] == [
            ("AA1", "Carrefour"),
            ("AA1", "Netto"),
            ("BB2", "Kik"),
            ("CC3", "Lidl"),
        ]


class TestDeltas:
    """AM minus PM deltas and flagging."""

    def test_carrefour_scenario(self):
        matcher = TenantNameMatcher.from_pairs([("Carrefour GmbH", "Carrefour")])
        result = matcher.match("Carrefour GmbH")
        assert result.reason == "exact"

        pm_rows = [pm("AA1", matcher.canonicalize("Carrefour GmbH"), space=1000, rent=5000)]
        am_rows = [am_row("AA1", "Carrefour", space=1010, rent=5050, walt=2.0)]
        rows = reconcile(pm_rows, am_rows)

        assert len(rows) == 1
        row = rows[0]
        assert row.matched
        assert row.delta_space == 10
        assert row.delta_rent == 50
        assert row.delta_walt is None
        assert row.flagged

    def test_pm_only_scenario(self):
        rows = reconcile([pm("BB2", "Kik", space=300, rent=900)], [])
        assert rows[0].only_pm is True
        assert rows[0].only_am is False
        assert (rows[0].delta_space, rows[0].delta_rent, rows[0].delta_walt) == (None, None, None)

    def test_small_deltas_not_flagged(self, sample):
        pm_rows, am_rows = sample
        netto = next(r for r in reconcile(pm_rows, am_rows) if r.key == "AA1@@netto")
        assert netto.delta_rent == pytest.approx(1)
        assert netto.delta_walt == pytest.approx(0.2)
        assert not netto.flagged

    def test_threshold_is_strict(self):
        rows = reconcile([pm("AA1", "X", rent=100)], [am_row("AA1", "X", rent=105)])
        assert not rows[0].flagged
        rows = reconcile([pm("AA1", "X", rent=100)], [am_row("AA1", "X", rent=105.5)])
        assert rows[0].flagged

    def test_negative_delta_flags(self):
        rows = reconcile([pm("AA1", "X", space=100)], [am_row("AA1", "X", space=90)])
        assert rows[0].delta_space == -10
        assert rows[0].flagged

    def test_walt_delta_flags(self):
        rows = reconcile([pm("AA1", "X", walt=1.0)], [am_row("AA1", "X", walt=1.6)])
        assert rows[0].delta_walt == pytest.approx(0.6)
        assert rows[0].flagged

    def test_flagging_monotonic_in_thresholds(self):
        rng = random.Random(3)
        pm_rows, am_rows = [], []
        for i in range(60):
            pm_rows.append(pm("AS1", f"T{i}", space=rng.uniform(0, 50), rent=rng.uniform(0, 50), walt=rng.uniform(0, 5)))
            am_rows.append(am_row("AS1", f"T{i}", space=rng.uniform(0, 50), rent=rng.uniform(0, 50), walt=rng.uniform(0, 5)))

        previous = None
        for scale in [0, 0.5, 1, 2, 5, 10, 20, 50]:
            thresholds = ThresholdConfig(space_highlight=scale, rent_highlight=scale, walt_highlight=scale / 10)
            flagged = summarize(reconcile(pm_rows, am_rows, thresholds))["flagged"]
            if previous is not None:
                assert flagged <= previous
            previous = flagged


class TestRowEnrichment:
    """City and AM code selection."""

    def test_city_prefers_am(self):
        rows = reconcile([pm("AA1", "X", city="Bonn")], [am_row("AA1", "X", city="Berlin")])
        assert rows[0].city == "Berlin"

    def test_city_falls_back_to_pm(self):
        rows = reconcile([pm("AA1", "X", city="Bonn")], [am_row("AA1", "X")])
        assert rows[0].city == "Bonn"
        assert reconcile([pm("AA1", "X")], [])[0].city == ""

    def test_am_code_prefers_pm(self):
        rows = reconcile([pm("AA1", "X", am="FKE")], [am_row("AA1", "X", am="CFR")])
        assert rows[0].am_code == "FKE"

    def test_am_code_from_am_side(self):
        rows = reconcile([pm("AA1", "X")], [am_row("AA1", "X", am="CFR")])
        assert rows[0].am_code == "CFR"

    def test_am_code_guessed_from_asset(self):
        rows = reconcile(
            [pm("AA1", "Only PM")],
            [am_row("aa1", "Other", am="MSC")],
        )
        only_pm = next(r for r in rows if r.only_pm)
        assert only_pm.am_code == "MSC"

    def test_am_code_unknown(self):
        assert reconcile([pm("ZZ9", "X")], [])[0].am_code == ""


class TestSummary:

    def test_counts(self, sample):
        pm_rows, am_rows = sample
        summary = summarize(reconcile(pm_rows, am_rows))
        assert summary == {"total": 4, "matched": 2, "only_pm": 1, "only_am": 1, "flagged": 1}

    def test_serialization(self, sample):
        pm_rows, am_rows = sample
        data = reconcile(pm_rows, am_rows)[0].to_dict()
        assert set(data) == {
            "key", "asset_ref", "tenant", "city", "am", "pm", "odoo",
            "delta_space", "delta_rent", "delta_walt", "only_pm", "only_am", "flagged",
        }
        assert data["pm"]["tenant_name"] == "Carrefour"
        assert data["odoo"]["am"] == "CFR"


class TestViews:
    """Presentation filters over engine output."""

    @pytest.fixture
    def rows(self, sample):
        pm_rows, am_rows = sample
        return reconcile(pm_rows, am_rows)

    @pytest.mark.parametrize("name,hidden", [
        ("Leerstand", True),
        ("LEERSTAND EG links", True),
        ("Vacant unit", True),
        ("StPfl.", True),
        ("stfr Fläche", True),
        ("Carrefour", False),
        ("", False),
    ])
    def test_is_hidden_tenant(self, name, hidden):
        assert is_hidden_tenant(name) is hidden

    def test_drop_hidden_tenants(self):
        records = [pm("AA1", "Leerstand"), pm("AA1", "Netto")]
        assert [r.tenant_name for r in drop_hidden_tenants(records)] == ["Netto"]

    def test_no_filters(self, rows):
        assert filter_rows(rows) == rows

    def test_query_matches_asset_city_tenant(self, rows):
        assert [r.tenant for r in filter_rows(rows, query="netto")] == ["Netto"]
        assert [r.tenant for r in filter_rows(rows, query="koln")] == ["Lidl"]
        assert {r.asset_ref for r in filter_rows(rows, query="aa1")} == {"AA1"}

    def test_am_filter(self, rows):
        assert [r.tenant for r in filter_rows(rows, am_filter="bko")] == ["Lidl"]
        assert len(filter_rows(rows, am_filter="ALL")) == len(rows)
        assert [r.tenant for r in filter_rows(rows, am_filter="")] == ["Kik"]

    def test_highlighted_view(self, rows):
        selected = filter_rows(rows, mode=ViewMode.HIGHLIGHTED)
        assert {r.tenant for r in selected} == {"Carrefour", "Kik", "Lidl"}

    def test_missing_rent_view(self, rows):
        selected = filter_rows(rows, mode="missing_rent")
        assert {r.tenant for r in selected} == {"Carrefour", "Kik", "Lidl"}

        space_only = reconcile([pm("AA1", "X", space=1)], [am_row("AA1", "X", space=50)])
        assert space_only[0].flagged
        assert filter_rows(space_only, mode=ViewMode.MISSING_RENT) == []

    def test_display_flags(self, rows):
        netto = next(r for r in rows if r.tenant == "Netto")
        assert display_flags(netto) == {"space": False, "rent": False, "walt": True}

        kik = next(r for r in rows if r.tenant == "Kik")
        assert display_flags(kik) == {"space": False, "rent": False, "walt": False}


class TestAMCodeResolver:

    @pytest.mark.parametrize("salesperson,code", [
        (12, "CFR"),
        (7, "FKE"),
        (8, "BKO"),
        (9, "MSC"),
        (1, ""),
        ([12, "Anna"], "CFR"),
        (False, ""),
        (None, ""),
        ("x", ""),
    ])
    def test_salesperson_table(self, salesperson, code):
        assert am_code_for_salesperson(salesperson) == code

    def test_resolve_normalizes_ref(self):
        resolver = AMCodeResolver.from_salesperson_ids({"aa 1": 12, "BB2": 99})
        assert resolver.resolve("AA1") == "CFR"
        assert resolver.resolve("BB2") == ""
        assert resolver.resolve("unknown") == ""

    def test_annotate_fills_only_empty_codes(self):
        resolver = AMCodeResolver({"AA1": "CFR"})
        records = [pm("AA1", "X"), pm("AA1", "Y", am="BKO"), pm("ZZ9", "Z")]
        annotated = resolver.annotate(records)
        assert [r.am_code for r in annotated] == ["CFR", "BKO", ""]
        assert records[0].am_code == ""  # originals untouched
