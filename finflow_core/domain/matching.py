"""Obligation matching - links a debt payment to the bill it most likely settles"""

import re
import unicodedata
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Optional

from finflow_core.config import settings
from finflow_core.domain.models import Obligation
from finflow_core.domain.money import to_number
from finflow_core.utils.date_utils import parse_date

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class MatchingRules:
    """Scoring weights and the amount gate for fuzzy matches"""

    amount_gate_ratio: float = settings.match_amount_gate_ratio
    amount_gate_floor: float = settings.match_amount_gate_floor
    due_date_weight: float = settings.match_due_date_weight
    title_bonus: float = settings.match_title_bonus

    def amount_gate(self, payment_amount: float) -> float:
        return max(payment_amount * self.amount_gate_ratio, self.amount_gate_floor)


def normalize_text(value: Any) -> str:
    """Lowercase, strip diacritics and collapse whitespace"""
    if value is None:
        return ""
    decomposed = unicodedata.normalize("NFD", str(value).lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", stripped).strip()


def titles_related(a: str, b: str) -> bool:
    """Either normalized title contains the other"""
    if not a or not b:
        return False
    return a in b or b in a


def score_obligation(
    obligation: Obligation,
    normalized_name: str,
    payment_amount: float,
    payment_date: date,
    rules: MatchingRules,
) -> Optional[float]:
    """
    Score a candidate; lower is better. None means the candidate is gated out.

    score = amount delta + due-date drift in days * weight - title bonus
    """
    related = titles_related(normalize_text(obligation.title), normalized_name)
    amount_delta = abs(to_number(obligation.amount) - payment_amount)

    if not related and amount_delta > rules.amount_gate(payment_amount):
        return None

    due_date = parse_date(obligation.due_date)
    drift_days = abs((due_date - payment_date).days) if due_date else 0

    score = amount_delta + drift_days * rules.due_date_weight
    if related:
        score -= rules.title_bonus
    return score


def pick_matching_obligation(
    open_obligations: Iterable[Obligation],
    debt_name: str,
    payment_amount: Any,
    payment_date: date,
    rules: Optional[MatchingRules] = None,
) -> Optional[Obligation]:
    """
    Pick the open obligation a payment most likely belongs to.

    An obligation whose normalized title equals the debt name wins outright.
    Otherwise every candidate is scored and the lowest score wins; unrelated
    titles whose amount is far from the payment are never considered.
    """
    rules = rules or MatchingRules()
    candidates = list(open_obligations)
    normalized_name = normalize_text(debt_name)
    amount = to_number(payment_amount)

    if normalized_name:
        for obligation in candidates:
            if normalize_text(obligation.title) == normalized_name:
                return obligation

    best: Optional[Obligation] = None
    best_score: Optional[float] = None
    for obligation in candidates:
        score = score_obligation(obligation, normalized_name, amount, payment_date, rules)
        if score is None:
            continue
        if best_score is None or score < best_score:
            best, best_score = obligation, score

    return best
