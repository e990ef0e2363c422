"""
Labeled ANS coder

An asymmetric numeral system where the whole message is folded into a single
Python int. The symbol layout of one block of states is given by a labeling
(see label_spreader.spread): state x carries the symbol labeling[x % block_size].
The block size does not have to be a power of two, and the state is never
renormalized, so there is no bitstream: the final state is the codeword.

Encode step c(x, s): the position of the (x + 1)-th state labeled s.
Decode step d(x): (labeling[x % block_size], number of states labeled that
symbol below x). The two are exact inverses: d(c(x, s)) == (s, x).

The initial state, where encoding starts and decoding stops, is derived from
the labeling:
    []              -> 0
    [s]             -> 1
    [s0, s1, ...]   -> length of the run of s0 starting at s1
Note that c(initial_state, labeling[0]) == initial_state, so trailing
occurrences of labeling[0] at the end of a message are not recovered by decode.
"""

from typing import Hashable, Iterable, List, Sequence, Tuple

import pytest

from furor.compressors.frequency_index import FrequencyIndex
from furor.compressors.label_spreader import spread
from furor.core.errors import ConfigurationError, MalformedStateError, UnknownSymbolError
from furor.core.prob_dist import ProbabilityDist
from furor.utils.test_utils import ensure_recoverable_tail, get_random_message, try_lossless_compression


def initial_state_for(labeling: Sequence[Hashable]) -> int:
    if len(labeling) == 0:
        return 0
    if len(labeling) == 1:
        return 1
    first = labeling[0]
    run = 0
    for sym in labeling[1:]:
        if sym != first:
            break
        run += 1
    return run


class LabeledANSCoder:
    """
    Encodes symbol sequences into a single non-negative int and back.

    The coder is immutable once built and can be shared between callers.
    """

    def __init__(self, labeling: Iterable[Hashable]):
        self._labeling = tuple(labeling)
        self._block_size = len(self._labeling)
        self._index = FrequencyIndex.from_labeling(self._labeling)
        self._initial_state = initial_state_for(self._labeling)

    @classmethod
    def from_frequencies(cls, freqs, labeling_length: int) -> "LabeledANSCoder":
        """Spread `freqs` over `labeling_length` states and build a coder on the result."""
        return cls(spread(freqs, labeling_length))

    @property
    def labeling(self) -> Tuple[Hashable, ...]:
        return self._labeling

    @property
    def block_size(self) -> int:
        return self._block_size

    @property
    def frequency_index(self) -> FrequencyIndex:
        return self._index

    @property
    def initial_state(self) -> int:
        return self._initial_state

    @property
    def alphabet(self) -> List[Hashable]:
        return self._index.alphabet

    def encode_step(self, state: int, symbol: Hashable) -> int:
        """Returns the position of the (state + 1)-th state labeled `symbol`."""
        if symbol not in self._index:
            raise UnknownSymbolError(f"Symbol {symbol!r} not in labeling")
        count = self._index.count_per_block[symbol]

        full_blocks, symbols_left = divmod(state + 1, count)
        if symbols_left == 0:
            # an exact multiple lands on the last occurrence of the previous block
            full_blocks -= 1
            symbols_left = count

        index_within_block = self._index.positions_of[symbol][symbols_left - 1]
        return full_blocks * self._block_size + index_within_block

    def decode_step(self, state: int) -> Tuple[Hashable, int]:
        """Returns the symbol labeling `state` and the number of states below it with that label."""
        num_previous_blocks, index_within_block = divmod(state, self._block_size)
        symbol = self._labeling[index_within_block]

        count_before_block = self._index.count_per_block[symbol] * num_previous_blocks
        return symbol, count_before_block + self._index.rank_of_position[index_within_block]

    def encode(self, message: Iterable[Hashable]) -> int:
        message = list(message)
        if message and self._block_size == 0:
            raise ConfigurationError("Cannot encode with an empty labeling")

        state = self._initial_state
        # process in reverse so that decode yields symbols in message order
        for symbol in reversed(message):
            state = self.encode_step(state, symbol)
        return state

    def decode(self, state: int) -> List[Hashable]:
        if state < 0:
            raise MalformedStateError(f"State must be non-negative, got {state}")

        if state > self._initial_state and self._block_size == 0:
            raise MalformedStateError(f"State {state} cannot be decoded with an empty labeling")

        message = []
        while state > self._initial_state:
            symbol, prev_state = self.decode_step(state)
            if prev_state >= state:
                raise MalformedStateError(
                    f"Decoding does not terminate: state {state} maps to {prev_state}"
                )
            message.append(symbol)
            state = prev_state
        return message

    def decode_text(self, state: int) -> str:
        return "".join(self.decode(state))

    @staticmethod
    def code_length(state: int) -> int:
        """Number of significant bits of `state`."""
        return state.bit_length()

    def __repr__(self) -> str:
        return (
            f"LabeledANSCoder(labeling={list(self._labeling)!r}, "
            f"block_size={self._block_size}, "
            f"count_per_block={dict(self._index.count_per_block)}, "
            f"initial_state={self._initial_state})"
        )


def test_worked_example():
    coder = LabeledANSCoder("aab")
    assert coder.block_size == 3
    assert coder.initial_state == 1

    assert coder.encode_step(1, "b") == 5
    assert coder.encode_step(5, "a") == 7
    assert coder.encode("ab") == 7

    assert coder.decode_step(7) == ("a", 5)
    assert coder.decode_step(5) == ("b", 1)
    assert coder.decode(7) == ["a", "b"]
    assert coder.decode_text(7) == "ab"


def test_initial_state():
    assert initial_state_for([]) == 0
    assert initial_state_for(["a"]) == 1
    assert initial_state_for(list("ab")) == 0
    assert initial_state_for(list("aab")) == 1
    assert initial_state_for(list("aaab")) == 2
    assert initial_state_for(list("abaa")) == 0
    assert initial_state_for(list("aaaa")) == 3


def test_step_inverse():
    for labeling in ["aab", "abcab", "aaabbc", "cabbage", "ab" * 7 + "c"]:
        coder = LabeledANSCoder(labeling)
        for symbol in coder.alphabet:
            for state in range(200):
                next_state = coder.encode_step(state, symbol)
                assert next_state >= state
                assert coder.decode_step(next_state) == (symbol, state)


def test_step_inverse_big_states():
    coder = LabeledANSCoder("aaabbcd")
    for state in [2**64, 2**64 + 1, 3**200, 10**300 - 1]:
        for symbol in "abcd":
            assert coder.decode_step(coder.encode_step(state, symbol)) == (symbol, state)


def test_round_trip():
    coder = LabeledANSCoder.from_frequencies({"a": 0.5, "b": 0.3, "c": 0.2}, 10)
    # a message whose last symbol is not the labeling's first is fully recovered
    last = next(s for s in coder.alphabet if s != coder.labeling[0])
    for message in ["", last, "abcabcbbbaaa" + last, "c" * 50 + "a" * 50 + last]:
        assert coder.decode_text(coder.encode(message)) == message


def test_trailing_first_symbol_is_lost():
    coder = LabeledANSCoder("aab")
    assert coder.encode("a") == coder.initial_state
    assert coder.decode(coder.encode("ba")) == ["b"]


def test_non_power_of_two_block_sizes():
    for length in [3, 5, 7, 11, 13, 100]:
        coder = LabeledANSCoder.from_frequencies({"x": 3, "y": 2, "z": 1}, length)
        message = "xyzzyxxyxz" * 20
        if message[-1] == coder.labeling[0]:
            message += next(s for s in "xyz" if s != coder.labeling[0])
        assert coder.decode_text(coder.encode(message)) == message


def test_encode_unknown_symbol():
    with pytest.raises(UnknownSymbolError):
        LabeledANSCoder("aab").encode("abc")


def test_empty_labeling():
    coder = LabeledANSCoder([])
    assert coder.encode("") == 0
    with pytest.raises(ConfigurationError):
        coder.encode("a")
    with pytest.raises(MalformedStateError):
        coder.decode(3)


def test_decode_malformed_states():
    with pytest.raises(MalformedStateError):
        LabeledANSCoder("aab").decode(-1)

    # a single-symbol labeling never shrinks the state
    with pytest.raises(MalformedStateError):
        LabeledANSCoder("aa").decode(5)


def test_code_length():
    assert LabeledANSCoder.code_length(0) == 0
    assert LabeledANSCoder.code_length(1) == 1
    assert LabeledANSCoder.code_length(7) == 3
    assert LabeledANSCoder.code_length(2**100) == 101


def test_labeled_ans_random_round_trip():
    """
    Round trip random messages over a few random distributions and labeling
    lengths, including non-power-of-two ones.
    """
    num_samples = 2000

    prob_dists = [
        ProbabilityDist({s: 1.0 / 4 for s in "abcd"}),
        ProbabilityDist({s: i + 1 for i, s in enumerate("abcdefgh")}).normalize(),
        ProbabilityDist({"a": 0.9, "b": 0.05, "c": 0.04, "d": 0.01}),
        ProbabilityDist.random("xyz", seed=1),
    ]

    for seed, prob_dist in enumerate(prob_dists):
        for labeling_length in [prob_dist.size, 17, 32, 100]:
            coder = LabeledANSCoder.from_frequencies(prob_dist, labeling_length)
            assert set(coder.alphabet) == set(prob_dist.alphabet)

            message = get_random_message(prob_dist, num_samples, seed=seed)
            message = ensure_recoverable_tail(message, coder)
            is_lossless, code_length, _ = try_lossless_compression(message, coder)
            assert is_lossless, "Labeled ANS coding is not lossless for this test case"
            assert code_length > 0
