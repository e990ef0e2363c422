"""
Benchmark script for the labeled ANS coder.

Usage:
    python -m furor.compressors.labeled_ans_benchmark
    python -m furor.compressors.labeled_ans_benchmark -s abcd -l 16 32 100 -n 40000
    python -m furor.compressors.labeled_ans_benchmark -i path/to/file1 path/to/file2 ...

For every labeling length (and every input file, if given) this:
  1. Builds a distribution: random weights over --symbols, or the empirical
     character frequencies of the input file.
  2. Spreads it into a labeling and prints the given probabilities, the
     labeling and the probabilities the labeling actually realizes.
  3. Encodes a message (sampled from the distribution, or the file text),
     prints its information content next to the code length of the state,
     and checks that decoding gives the message back.
"""

import argparse
import os
from collections import Counter
from typing import Hashable, List, Optional

from tqdm import tqdm

from furor.compressors.label_spreader import labeling_probs
from furor.compressors.labeled_ans import LabeledANSCoder
from furor.core.prob_dist import ProbabilityDist
from furor.utils.test_utils import ensure_recoverable_tail, get_random_message

DEFAULT_SYMBOLS = "abc"
DEFAULT_LABELING_LENGTH = 32
DEFAULT_NUM_SAMPLES = 40_000


def _format_probs(probs) -> str:
    return "\n".join(f"  {sym!r}: {p:.6f}" for sym, p in probs.items())


def run_single_benchmark(prob_dist: ProbabilityDist, message: List[Hashable], labeling_length: int):
    """Print the report for one (distribution, labeling length, message) combination."""
    coder = LabeledANSCoder.from_frequencies(prob_dist, labeling_length)
    message = ensure_recoverable_tail(message, coder)

    print(f"\n=== Labeling length {labeling_length} ===")
    print(f"Given probs:\n{_format_probs(prob_dist.normalize().prob_dict)}")
    print(f"Generated labeling: {''.join(map(str, coder.labeling))!r}")
    print(f"Labeling probs:\n{_format_probs(labeling_probs(coder.labeling))}")
    print(f"Init encoder: {coder!r}")

    information_content = prob_dist.information_content(message)
    state = coder.encode(message)
    ans_len = coder.code_length(state)

    print(f"Information content: {information_content:.2f}")
    print(f"Code length: {ans_len}")
    if information_content > 0:
        print(f"Code length / information : {ans_len / information_content:.4f}")

    decoded = coder.decode(state)
    assert len(decoded) == len(message), (
        f"Mismatching lengths! Expected: {len(message)}, Found: {len(decoded)}"
    )
    assert decoded == message, "Labeled ANS decode mismatch!"
    return information_content, ans_len


def run_random_benchmarks(symbols: str, labeling_lengths: List[int], num_samples: int, seed: Optional[int] = None):
    prob_dist = ProbabilityDist.random(symbols, seed=seed)
    message = get_random_message(prob_dist, num_samples, seed=seed)
    for labeling_length in tqdm(labeling_lengths, desc="Labeling lengths"):
        if labeling_length < prob_dist.size:
            print(f"Warning: labeling length {labeling_length} < alphabet size {prob_dist.size}, skipping.")
            continue
        run_single_benchmark(prob_dist, message, labeling_length)


def run_file_benchmark(input_path: str, labeling_lengths: List[int]):
    """Use the characters of a text file as both the distribution and the message."""
    with open(input_path, "r", encoding="utf-8") as f:
        text = f.read()
    if not text:
        print(f"[Warning] {input_path} is empty, skipping.")
        return

    prob_dist = ProbabilityDist.normalize_prob_dict(Counter(text))
    print(f"\n--- {os.path.basename(input_path)}: {len(text)} chars, {prob_dist.size} distinct ---")
    print(f"Entropy: {prob_dist.entropy:.4f} bits/char")

    for labeling_length in tqdm(labeling_lengths, desc=f"Coding {os.path.basename(input_path)}"):
        if labeling_length < prob_dist.size:
            print(f"Warning: labeling length {labeling_length} < alphabet size {prob_dist.size}, skipping.")
            continue
        run_single_benchmark(prob_dist, list(text), labeling_length)


def main():
    parser = argparse.ArgumentParser(
        description=(
            "Compare the code length of the labeled ANS coder with the "
            "information content of the message."
        )
    )

    parser.add_argument(
        "-i",
        "--input",
        nargs="+",
        help="Text file(s) to encode with their empirical character frequencies.",
    )

    parser.add_argument(
        "-s",
        "--symbols",
        type=str,
        default=DEFAULT_SYMBOLS,
        help=f"Alphabet for random probabilities (default: {DEFAULT_SYMBOLS}).",
    )

    parser.add_argument(
        "-l",
        "--labeling_length",
        type=int,
        nargs="+",
        default=[DEFAULT_LABELING_LENGTH],
        help=f"Labeling length(s), i.e. coder block size (default: {DEFAULT_LABELING_LENGTH}).",
    )

    parser.add_argument(
        "-n",
        "--num_samples",
        type=int,
        default=DEFAULT_NUM_SAMPLES,
        help=f"Length of the sampled message (default: {DEFAULT_NUM_SAMPLES}).",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random probabilities and the sampled message.",
    )

    args = parser.parse_args()

    if args.input:
        for path in args.input:
            if not os.path.isfile(path):
                print(f"Warning: {path} is not a file, skipping.")
                continue
            run_file_benchmark(path, args.labeling_length)
    else:
        run_random_benchmarks(args.symbols, args.labeling_length, args.num_samples, seed=args.seed)


def test_run_single_benchmark():
    prob_dist = ProbabilityDist({"a": 0.6, "b": 0.3, "c": 0.1})
    message = get_random_message(prob_dist, 3000, seed=0)
    information_content, ans_len = run_single_benchmark(prob_dist, message, 64)
    # a 64-state labeling codes within a few percent of the information content
    assert ans_len < 1.1 * information_content + 64


def test_run_random_benchmarks_skips_short_lengths(capsys):
    run_random_benchmarks("abcd", [2, 16], 500, seed=0)
    out = capsys.readouterr().out
    assert "labeling length 2 < alphabet size 4, skipping." in out
    assert "=== Labeling length 16 ===" in out
    assert "=== Labeling length 2 ===" not in out


def test_run_file_benchmark(tmp_path):
    path = tmp_path / "sample.txt"
    path.write_text("the quick brown fox jumps over the lazy dog\n" * 20, encoding="utf-8")
    run_file_benchmark(str(path), [8, 64, 100])


if __name__ == "__main__":
    main()
