"""
Content generator for Number Nosher.

Produces the values shown on the grid for a (level, rule mode) pair. Each
grid holds a random share of "correct" entries (35-55% of the cells by
default) and the rest "incorrect", shuffled together.

Rule modes:
  - multiples:  correct values are multiples of the level's target
  - factors:    correct values divide the level's target evenly
  - primes:     correct values are primes up to the level's bound
  - equality:   arithmetic expressions; correct iff they evaluate to target
  - inequality: arithmetic expressions; correct iff they do NOT evaluate to target

Generation never fails. Rejection sampling runs for a bounded number of
attempts and then falls through to a formulaic construction that is known
to satisfy (or violate) the rule.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

import numpy as np

from src.core.config import GeneratorConfig


class RuleMode(str, Enum):
    """The five rule families."""
    MULTIPLES = "multiples"
    FACTORS = "factors"
    PRIMES = "primes"
    EQUALITY = "equality"
    INEQUALITY = "inequality"


# Per-level tables. Multiples, factors and expressions cycle; prime bounds
# grow and then hold at the last entry.
MULTIPLES_SEQUENCE: tuple[int, ...] = (2, 5, 3, 4, 6, 7, 8, 9, 10, 11, 12)
FACTORS_SEQUENCE: tuple[int, ...] = (12, 18, 20, 24, 30, 36, 40, 48, 60, 72)
PRIME_BOUNDS: tuple[int, ...] = (20, 30, 40, 50, 60, 70, 80, 100)
EXPRESSION_TARGETS: tuple[int, ...] = (5, 6, 8, 10, 12, 15, 16, 18, 20, 24)

PLUS = "+"
MINUS = "−"
TIMES = "×"
DIVIDE = "÷"

CellScalar = Union[int, str]


@dataclass(slots=True)
class CellValue:
    """One generated grid entry."""
    value: CellScalar
    is_correct: bool


# ---------------------------------------------------------------------------
# Targets and rule text
# ---------------------------------------------------------------------------

def _cyclic(sequence: tuple[int, ...], level: int) -> int:
    return sequence[(max(level, 1) - 1) % len(sequence)]


def get_target(level: int, mode: RuleMode | str) -> int:
    """
    The level's target number for a rule mode.

    For primes this is the upper bound of the value range; for every other
    mode it is the number the rule refers to.
    """
    mode = RuleMode(mode)
    if mode is RuleMode.MULTIPLES:
        return _cyclic(MULTIPLES_SEQUENCE, level)
    if mode is RuleMode.FACTORS:
        return _cyclic(FACTORS_SEQUENCE, level)
    if mode is RuleMode.PRIMES:
        return PRIME_BOUNDS[min(max(level, 1) - 1, len(PRIME_BOUNDS) - 1)]
    return _cyclic(EXPRESSION_TARGETS, level)


def rule_text(level: int, mode: RuleMode | str) -> str:
    """Human-readable rule for display."""
    mode = RuleMode(mode)
    target = get_target(level, mode)
    if mode is RuleMode.MULTIPLES:
        return f"Multiples of {target}"
    if mode is RuleMode.FACTORS:
        return f"Factors of {target}"
    if mode is RuleMode.PRIMES:
        return f"Primes up to {target}"
    if mode is RuleMode.EQUALITY:
        return f"Equals {target}"
    return f"Not equal to {target}"


# ---------------------------------------------------------------------------
# Number helpers
# ---------------------------------------------------------------------------

def is_prime(n: int) -> bool:
    """Trial division up to sqrt(n)."""
    if n < 2:
        return False
    for d in range(2, math.isqrt(n) + 1):
        if n % d == 0:
            return False
    return True


def divisors(n: int) -> list[int]:
    """All positive divisors of n, by trial division up to n."""
    return [d for d in range(1, n + 1) if n % d == 0]


def correct_count_range(
    grid_size: int,
    min_ratio: float = 0.35,
    max_ratio: float = 0.55,
) -> tuple[int, int]:
    """
    Inclusive integer bounds for the number of correct entries.

    The bounds are the integers inside [min_ratio * n, max_ratio * n].
    """
    low = math.ceil(round(grid_size * min_ratio, 9))
    high = math.floor(round(grid_size * max_ratio, 9))
    if low > high:
        low = high
    return max(low, 0), max(high, 0)


def _sample_pool(pool: list[int], count: int, rng: np.random.Generator) -> list[int]:
    """Draw without replacement, then with replacement once the pool runs out."""
    shuffled = list(pool)
    rng.shuffle(shuffled)
    picked = shuffled[:count]
    while len(picked) < count:
        picked.append(pool[int(rng.integers(0, len(pool)))])
    return picked


# ---------------------------------------------------------------------------
# Numeric modes
# ---------------------------------------------------------------------------

def _generate_multiples(
    level: int, n_correct: int, n_incorrect: int,
    rng: np.random.Generator, config: GeneratorConfig,
) -> tuple[list[CellScalar], list[CellScalar]]:
    target = get_target(level, RuleMode.MULTIPLES)

    max_multiplier = min(12 + level, 20)
    pool = [target * i for i in range(1, max_multiplier + 1)]
    correct = _sample_pool(pool, n_correct, rng)

    max_value = target * (12 + level)
    incorrect: list[CellScalar] = []
    attempts = 0
    while len(incorrect) < n_incorrect and attempts < config.max_attempts:
        num = int(rng.integers(1, max_value + 1))
        if num % target != 0:
            incorrect.append(num)
        attempts += 1

    while len(incorrect) < n_incorrect:
        offset = int(rng.integers(1, target))
        multiplier = int(rng.integers(1, 11))
        incorrect.append(target * multiplier + offset)

    return list(correct), incorrect


def _generate_factors(
    level: int, n_correct: int, n_incorrect: int,
    rng: np.random.Generator, config: GeneratorConfig,
) -> tuple[list[CellScalar], list[CellScalar]]:
    target = get_target(level, RuleMode.FACTORS)

    correct = _sample_pool(divisors(target), n_correct, rng)

    # target+1 .. target+10 never divide target, so this is never empty
    candidates = [n for n in range(1, target + 11) if target % n != 0]
    incorrect: list[CellScalar] = [
        candidates[int(rng.integers(0, len(candidates)))] for _ in range(n_incorrect)
    ]
    return list(correct), incorrect


def _generate_primes(
    level: int, n_correct: int, n_incorrect: int,
    rng: np.random.Generator, config: GeneratorConfig,
) -> tuple[list[CellScalar], list[CellScalar]]:
    bound = get_target(level, RuleMode.PRIMES)

    primes = [n for n in range(2, bound + 1) if is_prime(n)]
    correct = _sample_pool(primes, n_correct, rng)

    incorrect: list[CellScalar] = []
    attempts = 0
    while len(incorrect) < n_incorrect and attempts < config.max_attempts:
        num = int(rng.integers(1, bound + 1))
        if not is_prime(num):
            incorrect.append(num)
        attempts += 1

    while len(incorrect) < n_incorrect:
        # 2k with k >= 2 is always composite
        incorrect.append(2 * int(rng.integers(2, max(3, bound // 2 + 1))))

    return list(correct), incorrect


# ---------------------------------------------------------------------------
# Expression modes
# ---------------------------------------------------------------------------

def _factor_pairs(value: int) -> list[tuple[int, int]]:
    """Non-trivial factor pairs (a, b) with 2 <= a <= sqrt(value)."""
    return [(a, value // a) for a in range(2, math.isqrt(value) + 1) if value % a == 0]


def build_expression(value: int, rng: np.random.Generator) -> str:
    """
    Build a random arithmetic expression that evaluates to `value`.

    Operators offered:
      - addition:       a + b, a in [1, value-1]     (only when value >= 2)
      - subtraction:    a - b, a = value + b, b in [1, 10]
      - multiplication: a x b                        (only with a non-trivial factor pair)
      - division:       a / b, a = value * b, b in [2, 5]
    """
    builders: list[Callable[[], str]] = []

    if value >= 2:
        def addition() -> str:
            a = int(rng.integers(1, value))
            return f"{a} {PLUS} {value - a}"
        builders.append(addition)

    def subtraction() -> str:
        b = int(rng.integers(1, 11))
        return f"{value + b} {MINUS} {b}"
    builders.append(subtraction)

    pairs = _factor_pairs(value)
    if pairs:
        def multiplication() -> str:
            a, b = pairs[int(rng.integers(0, len(pairs)))]
            if rng.random() < 0.5:
                a, b = b, a
            return f"{a} {TIMES} {b}"
        builders.append(multiplication)

    def division() -> str:
        b = int(rng.integers(2, 6))
        return f"{value * b} {DIVIDE} {b}"
    builders.append(division)

    return builders[int(rng.integers(0, len(builders)))]()


def evaluate_expression(text: str) -> int | float:
    """
    Evaluate an expression produced by `build_expression`.

    Accepts the display operators as well as their ASCII forms.

    Raises:
        ValueError: If the text is not of the form "a <op> b".
    """
    parts = text.split()
    if len(parts) != 3:
        raise ValueError(f"Malformed expression: '{text}'")
    a, op, b = int(parts[0]), parts[1], int(parts[2])

    if op == PLUS:
        return a + b
    if op in (MINUS, "-"):
        return a - b
    if op in (TIMES, "*", "x"):
        return a * b
    if op in (DIVIDE, "/"):
        return a // b if a % b == 0 else a / b
    raise ValueError(f"Unknown operator '{op}' in expression '{text}'")


def wrong_target(target: int, rng: np.random.Generator) -> int:
    """A value near target (within +-5) that differs from it and is positive."""
    while True:
        offset = int(rng.integers(-5, 6))
        if offset == 0:
            continue
        wrong = target + offset
        if wrong <= 0:
            wrong = target + abs(offset)
        return wrong


def _unique_expression(
    make_value: Callable[[], int],
    used: set[str],
    rng: np.random.Generator,
    attempts: int,
) -> str:
    expression = build_expression(make_value(), rng)
    for _ in range(attempts - 1):
        if expression not in used:
            break
        expression = build_expression(make_value(), rng)
    used.add(expression)
    return expression


def _generate_expressions(
    level: int, n_matching: int, n_other: int,
    rng: np.random.Generator, config: GeneratorConfig,
) -> tuple[list[CellScalar], list[CellScalar]]:
    """Returns (expressions equal to target, expressions for other values)."""
    target = get_target(level, RuleMode.EQUALITY)
    used: set[str] = set()

    matching: list[CellScalar] = [
        _unique_expression(lambda: target, used, rng, config.dedup_attempts)
        for _ in range(n_matching)
    ]
    other: list[CellScalar] = [
        _unique_expression(lambda: wrong_target(target, rng), used, rng, config.dedup_attempts)
        for _ in range(n_other)
    ]
    return matching, other


def _generate_equality(
    level: int, n_correct: int, n_incorrect: int,
    rng: np.random.Generator, config: GeneratorConfig,
) -> tuple[list[CellScalar], list[CellScalar]]:
    return _generate_expressions(level, n_correct, n_incorrect, rng, config)


def _generate_inequality(
    level: int, n_correct: int, n_incorrect: int,
    rng: np.random.Generator, config: GeneratorConfig,
) -> tuple[list[CellScalar], list[CellScalar]]:
    equal, unequal = _generate_expressions(level, n_incorrect, n_correct, rng, config)
    return unequal, equal


_MODE_GENERATORS = {
    RuleMode.MULTIPLES: _generate_multiples,
    RuleMode.FACTORS: _generate_factors,
    RuleMode.PRIMES: _generate_primes,
    RuleMode.EQUALITY: _generate_equality,
    RuleMode.INEQUALITY: _generate_inequality,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def generate(
    level: int,
    grid_size: int,
    mode: RuleMode | str,
    rng: np.random.Generator,
    config: Optional[GeneratorConfig] = None,
) -> list[CellValue]:
    """
    Generate the entries for one grid.

    Args:
        level: Level number (1-based).
        grid_size: Number of entries to produce.
        mode: Rule mode.
        rng: Random generator.
        config: Generator settings. None = defaults.

    Returns:
        Exactly `grid_size` CellValue entries, shuffled. In testing mode the
        single correct entry is first (grid origin).
    """
    if config is None:
        config = GeneratorConfig()
    mode = RuleMode(mode)

    if grid_size <= 0:
        return []

    if config.testing_mode:
        n_correct = 1
    else:
        low, high = correct_count_range(grid_size, config.min_correct_ratio, config.max_correct_ratio)
        n_correct = int(rng.integers(low, high + 1))
    n_incorrect = grid_size - n_correct

    correct, incorrect = _MODE_GENERATORS[mode](level, n_correct, n_incorrect, rng, config)
    entries = (
        [CellValue(value=v, is_correct=True) for v in correct]
        + [CellValue(value=v, is_correct=False) for v in incorrect]
    )

    if config.testing_mode:
        rest = entries[1:]
        rng.shuffle(rest)
        return [entries[0]] + rest

    rng.shuffle(entries)
    return entries


def generate_value(
    level: int,
    mode: RuleMode | str,
    is_correct: bool,
    rng: np.random.Generator,
    config: Optional[GeneratorConfig] = None,
) -> CellScalar:
    """Generate a single value that satisfies (or violates) the level's rule."""
    if config is None:
        config = GeneratorConfig()
    mode = RuleMode(mode)
    if is_correct:
        correct, _ = _MODE_GENERATORS[mode](level, 1, 0, rng, config)
        return correct[0]
    _, incorrect = _MODE_GENERATORS[mode](level, 0, 1, rng, config)
    return incorrect[0]


def check_value(level: int, mode: RuleMode | str, value: CellScalar) -> bool:
    """
    Reference rule check: does `value` satisfy the level's rule?

    Used for validation and by the test-suite; the generator itself tracks
    correctness by construction.
    """
    mode = RuleMode(mode)
    target = get_target(level, mode)
    if mode is RuleMode.MULTIPLES:
        return int(value) % target == 0
    if mode is RuleMode.FACTORS:
        return target % int(value) == 0
    if mode is RuleMode.PRIMES:
        return is_prime(int(value))
    result = evaluate_expression(str(value))
    if mode is RuleMode.EQUALITY:
        return result == target
    return result != target
