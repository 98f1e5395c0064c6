"""Apportion a download total observed over a multi-day gap into per-day values.

Everything here is a pure function of its arguments: the same gap length,
total and baseline always give the same sequence. Both strategies use
largest-remainder rounding, so the output is integers that sum exactly to
the total.
"""

import logging
from typing import Optional, Sequence

from download_stats.config import BackfillConfig, BackfillStrategy, PatternFallback
from download_stats.errors import NegativeDeltaError, PatternUnavailableError, UnsupportedStrategyError

logger = logging.getLogger(__name__)


def should_distribute(gap_days: int, config: BackfillConfig) -> bool:
    """Return False when the gap is handled as a single day instead of backfilled."""
    if config.strategy is BackfillStrategy.NONE:
        return False
    return gap_days >= config.minimum_gap_days


def distribute_even(gap_days: int, total_delta: int) -> list[int]:
    """Split ``total_delta`` evenly, giving the remainder to the earliest days.

    >>> distribute_even(3, 10)
    [4, 3, 3]

    Floor division keeps this exact for negative totals too; the values are
    then ``base`` and ``base + 1`` with ``base`` negative.
    """
    if gap_days < 1:
        raise ValueError(f"gap_days must be positive, got {gap_days}")
    base, remainder = divmod(total_delta, gap_days)
    return [base + 1 if i < remainder else base for i in range(gap_days)]


def build_pattern_series(baseline: Sequence[int], length: int) -> list[int]:
    """Repeat ``baseline`` until it is ``length`` values long.

    A baseline longer than ``length`` contributes only its most recent
    ``length`` values. An empty baseline gives an empty series.
    """
    source = list(baseline)[-length:] if length > 0 else []
    if not source:
        return []
    return [source[i % len(source)] for i in range(length)]


def scale_to_total(shape: Sequence[int], total_delta: int) -> Optional[list[int]]:
    """Scale a shape to integers summing to ``total_delta`` (largest remainder).

    Negative shape values count as zero weight. Returns None when the shape
    has no positive mass to scale.

    Raises:
        NegativeDeltaError: If ``total_delta`` is negative.
    """
    if total_delta < 0:
        raise NegativeDeltaError(f"Cannot scale a pattern to negative total {total_delta}")
    n = len(shape)
    if n == 0:
        return []
    if total_delta == 0:
        return [0] * n

    weights = [max(0, int(v)) for v in shape]
    mass = sum(weights)
    if mass <= 0:
        return None

    # Integer divmod keeps the shares exact: share_i = floor_i + rem_i / mass
    floors: list[int] = []
    remainders: list[int] = []
    for w in weights:
        q, r = divmod(total_delta * w, mass)
        floors.append(q)
        remainders.append(r)

    residual = total_delta - sum(floors)
    by_fraction = sorted(range(n), key=lambda i: (-remainders[i], i))
    for i in by_fraction[:residual]:
        floors[i] += 1
    return floors


def distribute_pattern(
    gap_days: int,
    total_delta: int,
    baseline: Sequence[int],
    fallback: PatternFallback = PatternFallback.EVEN,
) -> list[int]:
    """Shape the gap like the recent baseline of daily deltas.

    Falls back to even distribution when the baseline has nothing to scale
    or the total is negative, unless ``fallback`` is ``none``.
    """
    if gap_days < 1:
        raise ValueError(f"gap_days must be positive, got {gap_days}")

    if total_delta < 0:
        if fallback is PatternFallback.EVEN:
            logger.warning("Negative total delta %d, using even distribution", total_delta)
            return distribute_even(gap_days, total_delta)
        raise NegativeDeltaError(f"Negative total delta {total_delta} for pattern backfill")
    if total_delta == 0:
        return [0] * gap_days

    pattern = build_pattern_series(baseline, gap_days)
    scaled = scale_to_total(pattern, total_delta) if pattern else None
    if scaled is None:
        if fallback is PatternFallback.EVEN:
            logger.info(
                "Pattern unavailable (baseline of %d value(s) has no positive mass), using even distribution",
                len(baseline),
            )
            return distribute_even(gap_days, total_delta)
        raise PatternUnavailableError(
            f"No usable baseline for pattern backfill and fallback is '{fallback.value}'"
        )
    return scaled


def distribute(
    gap_days: int,
    total_delta: int,
    config: BackfillConfig,
    baseline: Sequence[int] = (),
) -> list[int]:
    """Dispatch to the configured strategy.

    Returns:
        Exactly ``gap_days`` integers summing to ``total_delta``.
    """
    strategy = config.strategy
    if strategy is BackfillStrategy.EVEN:
        return distribute_even(gap_days, total_delta)
    if strategy is BackfillStrategy.PATTERN:
        return distribute_pattern(gap_days, total_delta, baseline, config.pattern_fallback)
    if strategy is BackfillStrategy.NONE:
        raise UnsupportedStrategyError("Strategy 'none' never distributes across a gap")
    if strategy is BackfillStrategy.STOCHASTIC:
        raise UnsupportedStrategyError("Strategy 'stochastic' is not implemented")
    raise UnsupportedStrategyError(f"Unknown backfill strategy: {strategy!r}")
