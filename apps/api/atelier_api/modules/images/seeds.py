from __future__ import annotations

import math
import random
from typing import Optional, Union

SEED_LIMIT = 2**31  # exclusive upper bound of a normalized seed

_sysrand = random.SystemRandom()


def _to_int32(n: int) -> int:
    """Two's-complement truncation to a signed 32-bit integer."""
    return ((n + 2**31) % 2**32) - 2**31


def normalize_seed(raw: Optional[Union[int, float]]) -> int:
    """
    floor -> int32 wraparound -> abs, always in [0, 2**31).

    None and non-finite values draw a fresh random seed. abs(-2**31) is the
    one value that would land on 2**31; it folds to 0.
    """
    if raw is None or isinstance(raw, bool):
        return random_seed()
    if isinstance(raw, float) and not math.isfinite(raw):
        return random_seed()
    return abs(_to_int32(math.floor(raw))) % SEED_LIMIT


def random_seed() -> int:
    return normalize_seed(_sysrand.randrange(0, SEED_LIMIT))
