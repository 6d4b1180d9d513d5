"""
Scalar sampling for commitments, ephemeral keys and the proving system.

Production code draws from the OS CSPRNG through `secrets`. Test fixtures
may inject a seeded `random.Random`; nothing in the library ever falls back
to such a generator on its own.
"""

from __future__ import annotations

import random
import secrets


class RandomnessError(Exception):
    """Raised when the OS entropy source cannot supply randomness."""
    pass


def random_scalar(modulus: int, rng: random.Random | None = None) -> int:
    """
    Draw a uniform scalar in [1, modulus - 1].

    Args:
        modulus: The group or field order to sample below.
        rng: Optional deterministic generator (test fixtures only).

    Returns:
        A non-zero scalar.

    Raises:
        RandomnessError: If the OS entropy source fails.
    """
    if rng is not None:
        return rng.randrange(1, modulus)
    try:
        return secrets.randbelow(modulus - 1) + 1
    except OSError as e:
        raise RandomnessError(f"OS entropy source failed: {e}") from e
