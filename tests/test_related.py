"""Tests for related-transaction scoring."""

import pytest

from ledger.related import score_pair, score_related


class TestScorePair:
    """Additive criteria between two transactions."""

    def test_same_day_similar_value(self, make_transaction):
        target = make_transaction(date="1520-05-28", amounts=[(100, "f")])
        candidate = make_transaction(date="1520-05-28", amounts=[(2460, "s")])
        assert candidate.base_value == pytest.approx(82.0)
        assert score_pair(target, candidate) == 7

    def test_within_week_only(self, make_transaction):
        target = make_transaction(date="1520-05-28")
        candidate = make_transaction(date="1520-06-03")
        assert score_pair(target, candidate) == 2

    def test_more_than_a_week_apart(self, make_transaction):
        target = make_transaction(date="1520-05-28")
        candidate = make_transaction(date="1520-06-05")
        assert score_pair(target, candidate) == 0

    def test_undated_pair_gets_no_date_points(self, make_transaction):
        assert score_pair(make_transaction(), make_transaction(date="1520-05-28")) == 0

    def test_dissimilar_values(self, make_transaction):
        target = make_transaction(amounts=[(100, "f")])
        candidate = make_transaction(amounts=[(50, "l")])
        assert score_pair(target, candidate) == 0

    def test_zero_values_are_not_similar(self, make_transaction):
        assert score_pair(make_transaction(), make_transaction()) == 0

    def test_shared_currency(self, make_transaction):
        target = make_transaction(amounts=[(1, "f")])
        candidate = make_transaction(amounts=[(100, "f")])
        assert score_pair(target, candidate) == 1

    def test_person_fuzzy_match(self, make_transaction):
        target = make_transaction(people=["Martin Öder"])
        candidate = make_transaction(people=["martin öder von Aitenpach"])
        assert score_pair(target, candidate) == 3

    def test_place_exact_match(self, make_transaction):
        target = make_transaction(places=["Passau"])
        assert score_pair(target, make_transaction(places=["passau"])) == 2
        assert score_pair(target, make_transaction(places=["Passauer Tor"])) == 0

    def test_commodity_match(self, make_transaction):
        target = make_transaction(commodities=["Wein", "Salz"])
        assert score_pair(target, make_transaction(commodities=["Salz"])) == 1


class TestScoreRelated:
    """Ranking a pool against a selected transaction."""

    def test_excludes_target_and_zero_scores(self, make_transaction):
        target = make_transaction(date="1520-05-28")
        near = make_transaction(date="1520-05-29")
        far = make_transaction(date="1530-01-01")
        result = score_related(target, [target, near, far], top_n=5)
        assert [r.transaction for r in result] == [near]
        assert result[0].score == 5

    def test_excludes_same_id(self, make_transaction):
        target = make_transaction(date="1520-05-28", id=3)
        twin = make_transaction(date="1520-05-28", id=3)
        assert score_related(target, [twin], top_n=5) == []

    def test_sorted_by_score_with_stable_ties(self, make_transaction):
        target = make_transaction(date="1520-05-28", places=["Passau"])
        week = make_transaction("Item a", date="1520-06-02")
        same_day = make_transaction("Item b", date="1520-05-28")
        place = make_transaction("Item c", places=["Passau"])
        result = score_related(target, [week, place, same_day], top_n=5)
        assert [r.transaction.text for r in result] == ["Item b", "Item a", "Item c"]
        assert [r.score for r in result] == [5, 2, 2]

    def test_top_n(self, make_transaction):
        target = make_transaction(date="1520-05-28")
        pool = [make_transaction(date="1520-05-28") for _ in range(4)]
        assert len(score_related(target, pool, top_n=2)) == 2
        assert score_related(target, pool, top_n=0) == []

    def test_empty_pool(self, make_transaction):
        assert score_related(make_transaction(), [], top_n=5) == []
