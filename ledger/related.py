"""Ranking of transactions related to a selected one.

Scores are additive over independent criteria:

==========================================  ======
criterion                                   points
==========================================  ======
both dated, at most 7 days apart            +2
both dated, at most 1 day apart             +3 more
nonzero values with min/max ratio > 0.8     +2
at least one shared currency code           +1
a person name contained in the other's      +3
a place shared (case-insensitive)           +2
a commodity shared                          +1
==========================================  ======
"""

from __future__ import annotations

from typing import List, Sequence

from .models import RelatedTransaction, Transaction

WEEK_DAYS = 7
WEEK_POINTS = 2
SAME_DAY_DAYS = 1
SAME_DAY_POINTS = 3
VALUE_RATIO_THRESHOLD = 0.8
VALUE_POINTS = 2
CURRENCY_POINTS = 1
PERSON_POINTS = 3
PLACE_POINTS = 2
COMMODITY_POINTS = 1


def _people_overlap(left: Sequence[str], right: Sequence[str]) -> bool:
    for a in left:
        a = a.casefold()
        for b in right:
            b = b.casefold()
            if a in b or b in a:
                return True
    return False


def _exact_overlap(left: Sequence[str], right: Sequence[str]) -> bool:
    return bool({v.casefold() for v in left} & {v.casefold() for v in right})


def score_pair(target: Transaction, candidate: Transaction) -> int:
    score = 0

    if target.date is not None and candidate.date is not None:
        days = abs((target.date - candidate.date).days)
        if days <= WEEK_DAYS:
            score += WEEK_POINTS
        if days <= SAME_DAY_DAYS:
            score += SAME_DAY_POINTS

    low, high = sorted((target.base_value, candidate.base_value))
    if low > 0 and low / high > VALUE_RATIO_THRESHOLD:
        score += VALUE_POINTS

    if set(target.currency_codes) & set(candidate.currency_codes):
        score += CURRENCY_POINTS

    if _people_overlap(target.people, candidate.people):
        score += PERSON_POINTS
    if _exact_overlap(target.places, candidate.places):
        score += PLACE_POINTS
    if _exact_overlap(target.commodities, candidate.commodities):
        score += COMMODITY_POINTS

    return score


def score_related(
    target: Transaction,
    pool: Sequence[Transaction],
    top_n: int,
) -> List[RelatedTransaction]:
    """Best ``top_n`` candidates by score; ties keep pool order, zeros are dropped."""
    scored = []
    for candidate in pool:
        if candidate is target or candidate.id == target.id:
            continue
        score = score_pair(target, candidate)
        if score > 0:
            scored.append(RelatedTransaction(transaction=candidate, score=score))
    scored.sort(key=lambda related: related.score, reverse=True)
    return scored[:max(top_n, 0)]
