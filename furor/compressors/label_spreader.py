"""
Label spreading for the labeled ANS coder.

Given symbol frequencies and a block length, `spread` builds a labeling: a
sequence of symbols whose per-symbol counts approximate the frequencies and
whose occurrences of each symbol are interleaved rather than grouped.

Each symbol s gets a period total / freq[s] and a running threshold that
starts at its period. At every step the symbol with the smallest threshold
is emitted and its threshold moves forward by its period, so a symbol with
twice the frequency comes up twice as often. Once only enough room is left
for the symbols that have never been emitted, those are appended once each.

Ties on the threshold go to the symbol that comes first in the frequency
mapping. The trailing never-emitted symbols are appended in the same order.
"""

import math
import operator
from collections import Counter
from typing import Dict, Hashable, List, Mapping, Union

import pytest

from furor.core.errors import ConfigurationError, InvalidFrequencyError
from furor.core.prob_dist import ProbabilityDist


def spread(freqs: Union[Mapping[Hashable, float], ProbabilityDist], length: int) -> List[Hashable]:
    """
    Build a labeling of exactly `length` symbols from `freqs`.

    Args:
        freqs: symbol -> positive finite frequency (need not be normalized)
        length: size of the labeling, i.e. the coder block size

    Returns:
        list of symbols; every symbol of `freqs` occurs at least once
    """
    if not isinstance(freqs, ProbabilityDist):
        freqs = ProbabilityDist(freqs)
    freqs = freqs.prob_dict

    try:
        length = operator.index(length)
    except TypeError:
        raise ConfigurationError(f"Labeling length must be an integer, got {length!r}") from None
    if length < 0:
        raise ConfigurationError(f"Labeling length must be non-negative, got {length}")
    if length < len(freqs):
        raise ConfigurationError(
            f"Labeling length {length} cannot hold {len(freqs)} distinct symbols"
        )
    if length > 0 and not freqs:
        raise ConfigurationError(f"Cannot fill a labeling of length {length} from an empty alphabet")

    # scale by the largest weight so the sum cannot overflow
    largest = max(freqs.values(), default=1.0)
    weights = {sym: freq / largest for sym, freq in freqs.items()}
    total = sum(weights.values())
    periods = {sym: total / w if w > 0 else math.inf for sym, w in weights.items()}
    thresholds = dict(periods)
    # sort key position for tie breaking
    order = {sym: i for i, sym in enumerate(freqs)}

    unseen = dict.fromkeys(freqs)
    labeling = []
    while len(labeling) < length - len(unseen):
        sym = min(thresholds, key=lambda s: (thresholds[s], order[s]))
        labeling.append(sym)
        unseen.pop(sym, None)
        thresholds[sym] += periods[sym]

    labeling.extend(unseen)
    assert len(labeling) == length
    return labeling


def labeling_probs(labeling: List[Hashable]) -> Dict[Hashable, float]:
    """Empirical probability of each symbol of `labeling`, in first-occurrence order."""
    if not labeling:
        return {}
    counts = Counter(labeling)
    return {sym: count / len(labeling) for sym, count in counts.items()}


def test_spread_covers_alphabet():
    # 'c' is far too rare to be picked by the greedy loop
    freqs = {"a": 0.6, "b": 0.399, "c": 0.001}
    labeling = spread(freqs, 8)
    assert len(labeling) == 8
    assert set(labeling) == {"a", "b", "c"}
    assert labeling[-1] == "c"


def test_spread_matches_frequencies():
    freqs = {"a": 0.5, "b": 0.25, "c": 0.25}
    labeling = spread(freqs, 32)
    counts = Counter(labeling)
    assert counts == {"a": 16, "b": 8, "c": 8}

    # interleaved, not grouped
    assert labeling[:4] == ["a", "a", "b", "c"]


def test_spread_tie_break_follows_input_order():
    assert spread({"x": 1, "y": 1}, 4) == ["x", "y", "x", "y"]
    assert spread({"y": 1, "x": 1}, 4) == ["y", "x", "y", "x"]


def test_spread_is_deterministic():
    freqs = ProbabilityDist.random("abcdef", seed=3)
    assert spread(freqs, 64) == spread(freqs, 64)


def test_spread_exact_length_is_alphabet_size():
    labeling = spread({"a": 5, "b": 1, "c": 1}, 3)
    assert sorted(labeling) == ["a", "b", "c"]


def test_spread_rejects_short_length():
    with pytest.raises(ConfigurationError):
        spread({"a": 1, "b": 1, "c": 1}, 2)
    with pytest.raises(ConfigurationError):
        spread({}, 1)


@pytest.mark.parametrize("length", [2.5, 3.0, "4", None, -1])
def test_spread_rejects_non_integer_or_negative_length(length):
    with pytest.raises(ConfigurationError):
        spread({"a": 1}, length)


def test_spread_rejects_zero_frequency():
    with pytest.raises(InvalidFrequencyError):
        spread({"a": 1, "b": 0}, 4)


def test_spread_huge_weights_do_not_overflow():
    assert spread({"a": 1e308, "b": 1e308}, 4) == ["a", "b", "a", "b"]
    assert spread({"a": 1e308, "b": 1e308, "c": 1e308}, 6) == list("abcabc")


def test_labeling_probs():
    assert labeling_probs(list("aab")) == {"a": 2 / 3, "b": 1 / 3}
    assert labeling_probs([]) == {}
