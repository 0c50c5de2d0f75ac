"""Search the JPEG quality parameter for a target output size."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from photoconv.config.constants import (
    QUALITY_SEARCH_ITERATIONS,
    QUALITY_SEARCH_MAX,
    QUALITY_SEARCH_MIN,
)
from photoconv.utils.logging import get_logger

log = get_logger(__name__)


@dataclass
class QualitySearchResult:
    """Closest encode found by :func:`search_quality`."""

    data: bytes = field(repr=False)
    quality: int
    distance: int

    @property
    def size(self) -> int:
        return len(self.data)


def search_quality(
    encode: Callable[[float], bytes],
    target_size: int,
    iterations: int = QUALITY_SEARCH_ITERATIONS,
    low: float = QUALITY_SEARCH_MIN,
    high: float = QUALITY_SEARCH_MAX,
) -> QualitySearchResult:
    """Binary search over encoder quality to approach ``target_size`` bytes.

    Every round encodes at the midpoint of ``[low, high]``; the search never
    stops early, so ``encode`` is called exactly ``iterations`` times. The
    encode whose size is closest to the target wins, whether it lands above
    or below it.

    Args:
        encode: Callable producing encoded bytes for a quality in (0, 1]
        target_size: Desired output size in bytes
        iterations: Number of encode rounds
        low: Lower quality bound
        high: Upper quality bound

    Returns:
        Best bytes, their quality as an integer percentage and the distance
        from the target in bytes
    """
    if target_size <= 0:
        raise ValueError(f"Target size must be positive, got {target_size}")
    if iterations < 1:
        raise ValueError(f"At least one iteration is required, got {iterations}")

    best: QualitySearchResult | None = None

    for _ in range(iterations):
        mid = (low + high) / 2
        data = encode(mid)
        size = len(data)
        distance = abs(size - target_size)

        if best is None or distance < best.distance:
            best = QualitySearchResult(data=data, quality=round(mid * 100), distance=distance)

        if size > target_size:
            high = mid
        else:
            low = mid

    if best is None:
        raise RuntimeError("Quality search finished without an encode")
    log.debug(
        "Quality search finished",
        target_size=target_size,
        achieved_size=best.size,
        quality=best.quality,
    )
    return best
