"""
Barbell plate calculator.

Splits a target total load (bar included) into the plates to put on each
side, greedily from the heaviest available plate down.

    per_side = (total − bar) / 2
    count(p) = floor(remaining / p)   for p in plates (descending)

A leftover above PLATE_TOLERANCE means the load cannot be built exactly
from the available plates; that is reported as such, never rounded.
"""

from dataclasses import dataclass
from typing import Literal, Sequence

from .config import AVAILABLE_PLATES, BAR_WEIGHT, PLATE_TOLERANCE, WEIGHT_UNIT

PlateStatus = Literal["below_minimum", "bar_only", "loaded", "inexact"]


@dataclass(frozen=True)
class PlateLoad:
    """Result of a plate calculation."""

    total: float
    bar_weight: float
    status: PlateStatus
    plates: tuple[tuple[float, int], ...] = ()  # (plate weight, count per side)
    remainder: float = 0.0  # per side, left after greedy selection

    @property
    def per_side(self) -> float:
        """Weight loaded on one side."""
        return sum(weight * count for weight, count in self.plates)

    @property
    def loaded_total(self) -> float:
        """Bar plus both sides, as actually loaded."""
        return self.bar_weight + 2 * self.per_side


def format_plate(weight: float) -> str:
    """Format a plate weight: whole numbers without decimals, else one decimal."""
    if weight == int(weight):
        return str(int(weight))
    return f"{weight:.1f}"


def calculate_plates(
    total: float,
    bar_weight: float = BAR_WEIGHT,
    plates: Sequence[float] = AVAILABLE_PLATES,
    tolerance: float = PLATE_TOLERANCE,
) -> PlateLoad:
    """
    Compute the per-side plate breakdown for a total load.

    Args:
        total: Target total including the bar
        bar_weight: Bar weight
        plates: Available plate denominations, heaviest first
        tolerance: Per-side leftover still treated as exact

    Returns:
        PlateLoad with status below_minimum, bar_only, loaded or inexact
    """
    if total < bar_weight:
        return PlateLoad(total=total, bar_weight=bar_weight, status="below_minimum")

    per_side = (total - bar_weight) / 2.0
    if per_side == 0:
        return PlateLoad(total=total, bar_weight=bar_weight, status="bar_only")

    remaining = per_side
    selected: list[tuple[float, int]] = []
    for plate in sorted(plates, reverse=True):
        count = int(remaining / plate)
        if count > 0:
            selected.append((plate, count))
            remaining -= count * plate
        if remaining <= tolerance:
            break

    if remaining > tolerance:
        return PlateLoad(
            total=total,
            bar_weight=bar_weight,
            status="inexact",
            plates=tuple(selected),
            remainder=remaining,
        )

    status: PlateStatus = "loaded" if selected else "bar_only"
    return PlateLoad(
        total=total,
        bar_weight=bar_weight,
        status=status,
        plates=tuple(selected),
        remainder=remaining,
    )


def _plates_string(load: PlateLoad) -> str:
    return " + ".join(f"{count}×{format_plate(weight)}" for weight, count in load.plates)


def describe_plates(
    total: float,
    bar_weight: float = BAR_WEIGHT,
    plates: Sequence[float] = AVAILABLE_PLATES,
    unit: str = WEIGHT_UNIT,
    tolerance: float = PLATE_TOLERANCE,
) -> str:
    """
    Return a human-readable loading description.

    e.g. "Load per side: 2×45 + 1×2.5", "Bar only (45 lbs)",
    "Weight too low for barbell", "Can't make exact weight".
    """
    load = calculate_plates(total, bar_weight=bar_weight, plates=plates, tolerance=tolerance)
    if load.status == "below_minimum":
        return "Weight too low for barbell"
    if load.status == "bar_only":
        return f"Bar only ({format_plate(bar_weight)} {unit})"
    if load.status == "inexact":
        return "Can't make exact weight"
    return f"Load per side: {_plates_string(load)}"


def compact_plates(
    total: float,
    bar_weight: float = BAR_WEIGHT,
    plates: Sequence[float] = AVAILABLE_PLATES,
    tolerance: float = PLATE_TOLERANCE,
) -> str | None:
    """Short form for inline display; None when below the bar or inexact."""
    load = calculate_plates(total, bar_weight=bar_weight, plates=plates, tolerance=tolerance)
    if load.status in ("below_minimum", "inexact"):
        return None
    if load.status == "bar_only":
        return "Bar only"
    return _plates_string(load)
