from __future__ import annotations

import random
import typing as t

from judge0_client.config import BackoffPolicy


def compute_delay(
    *,
    policy: BackoffPolicy,
    attempt: int,
    rng: random.Random | None = None,
) -> float:
    """
    Compute the delay that follows a given attempt.

    Parameters
    ----------
    policy : BackoffPolicy
        Backoff parameters.
    attempt : int
        Zero-based index of the attempt that just finished.
    rng : random.Random | None, optional
        Random source for jitter; the module-level generator when omitted.

    Returns
    -------
    float
        Delay in seconds, never negative.
    """
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    # exponent capped to stay clear of float overflow on long polls
    delay = min(
        policy.base_interval_seconds * policy.multiplier ** min(attempt, 64),
        policy.max_interval_seconds,
    )
    if policy.jitter:
        spread = delay * policy.jitter
        delay += (rng or random).uniform(-spread, spread)
    return max(delay, 0.0)


def iter_delays(
    *,
    policy: BackoffPolicy,
    rng: random.Random | None = None,
) -> t.Iterator[float]:
    """Yield an unbounded backoff schedule."""
    attempt = 0
    while True:
        yield compute_delay(policy=policy, attempt=attempt, rng=rng)
        attempt += 1
