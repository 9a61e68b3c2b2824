"""
State Merger - Folding one cycle's results into the zone snapshot.

Pure functions: zones in, new zones out. The registry applies the returned
tuple in a single replace(), so readers only ever see whole cycles.
"""

from typing import Iterable, Sequence, Tuple

from capcolor_classifier import ERROR_RESULT, ZoneColorResult
from capcolor_zone import Zone


def merge_results(
    zones: Sequence[Zone], results: Iterable[ZoneColorResult]
) -> Tuple[Zone, ...]:
    """
    Apply per-zone results to a zone snapshot.

    Zones with a result take its color; zones without one keep their
    previous color. Every zone leaves with is_processing=False. If several
    results target the same zone, the first one wins.

    Args:
        zones: Zones before the cycle
        results: Results of the cycle (may not cover every zone)

    Returns:
        New zone tuple, same order as `zones`
    """
    by_zone_id = {}
    for zone_result in results:
        by_zone_id.setdefault(zone_result.zone_id, zone_result.result)

    merged = []
    for zone in zones:
        result = by_zone_id.get(zone.id)
        if result is None:
            merged.append(zone.with_processing(False))
        else:
            merged.append(zone.with_color(result.color_name, result.hex_code))
    return tuple(merged)


def mark_processing(zones: Sequence[Zone], is_processing: bool) -> Tuple[Zone, ...]:
    """Set the processing flag of every zone, colors untouched."""
    return tuple(zone.with_processing(is_processing) for zone in zones)


def force_error(zones: Sequence[Zone]) -> Tuple[Zone, ...]:
    """Every zone to the Error color, processing cleared."""
    return tuple(
        zone.with_color(ERROR_RESULT.color_name, ERROR_RESULT.hex_code) for zone in zones
    )
