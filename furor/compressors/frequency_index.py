"""
Per-symbol tables derived from a labeling.

For a labeling such as ['a', 'a', 'b']:
    count_per_block  = {'a': 2, 'b': 1}
    rank_of_position = (0, 1, 0)
    positions_of     = {'a': (0, 1), 'b': (2,)}
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Hashable, Mapping, Sequence, Tuple

import pytest

from furor.core.errors import ConfigurationError


@dataclass(frozen=True)
class FrequencyIndex:
    """
    count_per_block: occurrences of each symbol in one pass over the labeling
    rank_of_position: for every position, occurrences of its symbol before it
    positions_of: increasing positions where each symbol occurs
    """

    count_per_block: Mapping[Hashable, int]
    rank_of_position: Tuple[int, ...]
    positions_of: Mapping[Hashable, Tuple[int, ...]]

    @classmethod
    def from_labeling(cls, labeling: Sequence[Hashable]) -> "FrequencyIndex":
        counts = {}
        ranks = []
        positions = {}
        for i, sym in enumerate(labeling):
            try:
                rank = counts.get(sym, 0)
            except TypeError:
                raise ConfigurationError(f"Labeling symbol {sym!r} is not hashable") from None
            ranks.append(rank)
            counts[sym] = rank + 1
            positions.setdefault(sym, []).append(i)

        return cls(
            count_per_block=MappingProxyType(counts),
            rank_of_position=tuple(ranks),
            positions_of=MappingProxyType({s: tuple(p) for s, p in positions.items()}),
        )

    @property
    def alphabet(self):
        return list(self.count_per_block.keys())

    def __contains__(self, symbol) -> bool:
        try:
            return symbol in self.count_per_block
        except TypeError:
            return False


def test_frequency_index_worked_example():
    index = FrequencyIndex.from_labeling(list("aab"))
    assert dict(index.count_per_block) == {"a": 2, "b": 1}
    assert index.rank_of_position == (0, 1, 0)
    assert dict(index.positions_of) == {"a": (0, 1), "b": (2,)}
    assert index.alphabet == ["a", "b"]
    assert "b" in index and "c" not in index


def test_frequency_index_invariants():
    labeling = list("abacabadabacaba")
    index = FrequencyIndex.from_labeling(labeling)
    for sym, positions in index.positions_of.items():
        assert index.count_per_block[sym] == len(positions)
        assert list(positions) == sorted(set(positions))
        for k, pos in enumerate(positions):
            assert labeling[pos] == sym
            assert index.rank_of_position[pos] == k
    for i, sym in enumerate(labeling):
        assert index.rank_of_position[i] < index.count_per_block[sym]


def test_frequency_index_is_deterministic_and_read_only():
    index_1 = FrequencyIndex.from_labeling(list("abcabcaa"))
    index_2 = FrequencyIndex.from_labeling(list("abcabcaa"))
    assert index_1 == index_2
    with pytest.raises(TypeError):
        index_1.count_per_block["z"] = 1


def test_frequency_index_empty_and_unhashable():
    index = FrequencyIndex.from_labeling([])
    assert index.alphabet == [] and index.rank_of_position == ()
    with pytest.raises(ConfigurationError):
        FrequencyIndex.from_labeling([["a"], ["b"]])
