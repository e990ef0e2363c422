"""
Helpers for exercising coders on synthetic data.
"""

from typing import Hashable, List, Optional, Sequence, Tuple

import numpy as np

from furor.core.prob_dist import ProbabilityDist


def get_random_message(prob_dist: ProbabilityDist, size: int, seed: Optional[int] = None) -> List[Hashable]:
    """Draw `size` i.i.d. symbols from `prob_dist`."""
    rng = np.random.default_rng(seed)
    alphabet = prob_dist.alphabet
    probs = np.array([prob_dist.probability(s) for s in alphabet], dtype=np.float64)
    probs /= probs.sum()
    indices = rng.choice(len(alphabet), size=size, p=probs)
    return [alphabet[i] for i in indices]


def ensure_recoverable_tail(message: Sequence[Hashable], coder) -> List[Hashable]:
    """
    Append one symbol other than the labeling's first if `message` ends with it.

    The coder's initial state absorbs trailing occurrences of labeling[0], so
    such a message would not come back intact.
    """
    message = list(message)
    first = coder.labeling[0] if coder.labeling else None
    if message and message[-1] == first:
        others = [s for s in coder.alphabet if s != first]
        if others:
            message.append(others[0])
    return message


def try_lossless_compression(message: Sequence[Hashable], coder) -> Tuple[bool, int, int]:
    """
    Encode and decode `message` with `coder`.

    Returns:
        is_lossless: decoded message equals the input
        code_length: significant bits of the encoded state
        state: the encoded state
    """
    message = list(message)
    state = coder.encode(message)
    decoded = coder.decode(state)
    return decoded == message, coder.code_length(state), state


def test_random_message_is_seeded():
    dist = ProbabilityDist({"a": 0.7, "b": 0.2, "c": 0.1})
    msg_1 = get_random_message(dist, 1000, seed=0)
    msg_2 = get_random_message(dist, 1000, seed=0)
    assert msg_1 == msg_2
    assert len(msg_1) == 1000
    assert set(msg_1) <= {"a", "b", "c"}
    # the most likely symbol dominates
    assert msg_1.count("a") > msg_1.count("b") > msg_1.count("c")


def test_try_lossless_compression():
    from furor.compressors.labeled_ans import LabeledANSCoder

    coder = LabeledANSCoder("aab")
    is_lossless, code_length, state = try_lossless_compression("ab", coder)
    assert is_lossless
    assert state == 7 and code_length == 3

    is_lossless, _, _ = try_lossless_compression("ba", coder)
    assert not is_lossless
    assert ensure_recoverable_tail("ba", coder) == list("bab")
    assert ensure_recoverable_tail("ab", coder) == list("ab")
