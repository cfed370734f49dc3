"""
Random sampling primitives used to pick questions and answers.

All functions take the random source explicitly so that sessions can use a
seeded generator in tests.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable, Sequence
from typing import TypeVar

from loguru import logger

from ..srs.errors import InvariantViolation

T = TypeVar("T")


def weighted_pick(
    candidates: Sequence[T],
    weight: Callable[[T], float],
    rng: random.Random,
) -> tuple[T, float]:
    """
    Pick one candidate with probability proportional to its weight.

    Walks the candidates accumulating weights and returns the first one whose
    cumulative weight reaches a uniform draw over the total. The last
    candidate is the fallback when rounding leaves the draw unreached.

    Returns:
        (picked candidate, total weight of the candidates)
    """
    if not candidates:
        raise InvariantViolation("Cannot pick from an empty candidate pool")

    total_weight = sum(weight(c) for c in candidates)
    position = rng.random() * total_weight
    logger.debug(f"Picking a question, position: {position}, totalWeight: {total_weight}")

    current_weight = 0.0
    for candidate in candidates:
        current_weight += weight(candidate)
        if current_weight >= position:
            return candidate, total_weight

    logger.debug("Cumulative weight fell short of the draw, taking the last candidate")
    return candidates[-1], total_weight


def pick_random(
    items: Iterable[T],
    sample: int,
    rng: random.Random,
    avoid: Iterable[T] = (),
) -> list[T]:
    """
    Uniformly pick `sample` distinct items, none of them in `avoid`.

    Raises:
        InvariantViolation: if fewer than `sample` eligible items exist
    """
    avoided = set(avoid)
    eligible = list(dict.fromkeys(i for i in items if i not in avoided))
    if sample > len(eligible):
        raise InvariantViolation(
            f"Can't get a sample of size {sample} on list of size {len(eligible)}"
        )
    if sample <= 0:
        return []
    return rng.sample(eligible, sample)


def sample_from_pools(
    pools: Sequence[Iterable[T]],
    initial: Sequence[T],
    count: int,
    rng: random.Random,
    excluded: Iterable[T] = (),
) -> list[T]:
    """
    Fill a selection up to `count` items from ordered candidate pools.

    Each pool is used whole while it fits in the remaining slots; the first
    pool that does not fit is sampled uniformly and the rest are ignored.
    Ids in `excluded` are removed from every pool for this call only.
    """
    selected = list(initial)
    excluded_ids = set(excluded)

    for pool in pools:
        remaining = count - len(selected)
        if remaining <= 0:
            break
        taken = set(selected)
        candidates = list(dict.fromkeys(i for i in pool if i not in taken and i not in excluded_ids))
        if len(candidates) <= remaining:
            selected.extend(candidates)
        else:
            selected.extend(rng.sample(candidates, remaining))

    return selected
