"""
Probability distributions over a small symbol alphabet.

ProbabilityDist wraps a symbol -> weight mapping. Weights need not sum to 1
on construction (frequencies and raw counts are accepted); `normalize()`
returns the distribution scaled to sum to 1. Insertion order of the mapping
is kept everywhere since the label spreader uses it to break ties.
"""

import math
from typing import Dict, Hashable, Iterable, List, Optional

import numpy as np
import pytest

from furor.core.errors import InvalidFrequencyError


class ProbabilityDist:
    """Validated symbol -> positive weight mapping."""

    def __init__(self, prob_dict: Dict[Hashable, float]):
        self._validate(prob_dict)
        self._prob_dict = dict(prob_dict)

    @staticmethod
    def _validate(prob_dict):
        for sym, weight in prob_dict.items():
            try:
                weight = float(weight)
            except (TypeError, ValueError):
                raise InvalidFrequencyError(
                    f"Frequency of symbol {sym!r} is not a number: {weight!r}"
                ) from None
            if not math.isfinite(weight) or weight <= 0:
                raise InvalidFrequencyError(
                    f"Frequency of symbol {sym!r} must be positive and finite, got {weight}"
                )

    @classmethod
    def normalize_prob_dict(cls, prob_dict: Dict[Hashable, float]) -> "ProbabilityDist":
        """Build a normalized distribution from raw counts or weights."""
        return cls(prob_dict).normalize()

    @classmethod
    def random(cls, symbols: Iterable[Hashable], seed: Optional[int] = None) -> "ProbabilityDist":
        """
        Draw an independent uniform weight for every symbol and normalize.

        Weights are drawn from (0, 1] so every symbol keeps a positive probability.
        """
        symbols = list(dict.fromkeys(symbols))
        rng = np.random.default_rng(seed)
        weights = 1.0 - rng.random(len(symbols))
        return cls.normalize_prob_dict(dict(zip(symbols, weights.tolist())))

    @property
    def prob_dict(self) -> Dict[Hashable, float]:
        return dict(self._prob_dict)

    @property
    def alphabet(self) -> List[Hashable]:
        return list(self._prob_dict.keys())

    @property
    def size(self) -> int:
        return len(self._prob_dict)

    @property
    def total(self) -> float:
        return math.fsum(self._prob_dict.values())

    @property
    def is_normalized(self) -> bool:
        return math.isclose(self.total, 1.0, rel_tol=1e-9)

    def normalize(self) -> "ProbabilityDist":
        total = self.total
        return ProbabilityDist({s: w / total for s, w in self._prob_dict.items()})

    def probability(self, symbol: Hashable) -> float:
        return self._prob_dict[symbol] / self.total

    def neg_log_probability(self, symbol: Hashable) -> float:
        return -math.log2(self.probability(symbol))

    @property
    def entropy(self) -> float:
        probs = np.array(list(self._prob_dict.values()), dtype=np.float64) / self.total
        return float(-np.sum(probs * np.log2(probs)))

    def information_content(self, message: Iterable[Hashable]) -> float:
        """Total self-information -sum(log2 p(s)) of `message`, in bits."""
        alphabet = {s: i for i, s in enumerate(self._prob_dict)}
        neg_logs = -np.log2(np.array(list(self._prob_dict.values()), dtype=np.float64) / self.total)
        indices = np.fromiter((alphabet[s] for s in message), dtype=np.int64)
        return float(neg_logs[indices].sum())

    def __contains__(self, symbol) -> bool:
        return symbol in self._prob_dict

    def __len__(self) -> int:
        return len(self._prob_dict)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ProbabilityDist):
            return NotImplemented
        return self._prob_dict == other._prob_dict

    def __repr__(self) -> str:
        return f"ProbabilityDist({self._prob_dict!r})"


def test_normalize_and_entropy():
    dist = ProbabilityDist({"a": 1, "b": 1, "c": 2})
    assert not dist.is_normalized

    norm = dist.normalize()
    assert norm.is_normalized
    assert norm.alphabet == ["a", "b", "c"]
    assert math.isclose(norm.probability("c"), 0.5)
    assert math.isclose(norm.entropy, 1.5)
    # entropy does not depend on the scale of the weights
    assert math.isclose(dist.entropy, norm.entropy)


@pytest.mark.parametrize("bad", [0, -0.5, float("inf"), float("nan"), "x", None])
def test_invalid_frequencies_rejected(bad):
    with pytest.raises(InvalidFrequencyError):
        ProbabilityDist({"a": 0.5, "b": bad})


def test_random_dist_is_seeded():
    dist_1 = ProbabilityDist.random("abc", seed=7)
    dist_2 = ProbabilityDist.random("abc", seed=7)
    assert dist_1 == dist_2
    assert dist_1.is_normalized
    assert dist_1.alphabet == ["a", "b", "c"]
    assert all(p > 0 for p in dist_1.prob_dict.values())


def test_information_content():
    dist = ProbabilityDist({"a": 0.5, "b": 0.25, "c": 0.25})
    assert math.isclose(dist.information_content("aabc"), 1 + 1 + 2 + 2)
    assert dist.information_content("") == 0
