"""
Sling geometry.

Angles are measured from horizontal, in degrees. Nothing here rounds; rounding
is a presentation concern and must never happen ahead of a threshold check.
"""
from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

from .errors import InvalidGeometry, InvalidMitigationGeometry
from .models import BeamInput, LegInput, PickPoint, RiggingResult

# plan offset below which a leg is treated as hanging straight down
VERTICAL_LEG_TOL_FT = 1e-9


def sling_angle_deg(vertical_rise_ft: float, horizontal_offset_ft: float) -> float:
    """
    Angle of a leg from horizontal: tan(theta) = rise / offset.

    A leg must rise to its bearing point (rise > 0) and the offset is a
    distance (>= 0).
    """
    if not vertical_rise_ft > 0:
        raise InvalidGeometry(f"Vertical rise must be greater than zero (got {vertical_rise_ft}).")
    if horizontal_offset_ft < 0:
        raise InvalidGeometry(f"Horizontal offset cannot be negative (got {horizontal_offset_ft}).")
    return math.degrees(math.atan2(vertical_rise_ft, horizontal_offset_ft))


def pair_sling_angle_deg(span_ft: float, vertical_rise_ft: float) -> float:
    """Symmetric two-point pick: bearing point centred over the span."""
    return sling_angle_deg(vertical_rise_ft, span_ft / 2.0)


def vertical_rise_for_length(sling_length_ft: float, horizontal_offset_ft: float) -> float:
    """Rise of a sling of given length hung over a fixed horizontal offset (mitigation search)."""
    if sling_length_ft <= horizontal_offset_ft:
        raise InvalidMitigationGeometry(
            f"Sling length {sling_length_ft} ft must exceed horizontal offset {horizontal_offset_ft} ft."
        )
    return math.sqrt(sling_length_ft**2 - horizontal_offset_ft**2)


def bearing_point(pick_points: Sequence[PickPoint]) -> Tuple[float, float]:
    """Plan location of the hook: centroid of the pick points."""
    n = len(pick_points)
    if n == 0:
        raise InvalidGeometry("At least one pick point is required.")
    return (sum(p.x for p in pick_points) / n, sum(p.y for p in pick_points) / n)


def resolve_pick_point_legs(
    pick_points: Sequence[PickPoint],
    sling_length_ft: float,
    load_weight_lbs: float,
    sling_id: str,
) -> List[LegInput]:
    """
    One leg per pick point, all slings of the same length, equal load share.

      h_i = plan distance from pick point i to the hook centroid
      r_i = sqrt(L^2 - h_i^2)

    Every leg must be angled (h_i > 0) and reach its pick point (L > h_i).
    """
    cx, cy = bearing_point(pick_points)
    share = load_weight_lbs / len(pick_points)
    legs: List[LegInput] = []
    for i, p in enumerate(pick_points):
        h = math.hypot(p.x - cx, p.y - cy)
        if math.isclose(h, 0.0, abs_tol=VERTICAL_LEG_TOL_FT):
            raise InvalidGeometry(
                f"Pick point {p.id} is directly below the hook; a vertical leg cannot share the load "
                f"with the angled legs. Move the pick points or use a single vertical pick."
            )
        if sling_length_ft <= h:
            raise InvalidGeometry(
                f"Sling length {sling_length_ft} ft does not reach pick point {p.id} "
                f"({h:.2f} ft horizontal offset from the hook)."
            )
        legs.append(
            LegInput(
                id=f"{sling_id}-leg-{i + 1}",
                load_share_lbs=share,
                vertical_rise_ft=math.sqrt(sling_length_ft**2 - h**2),
                horizontal_offset_ft=h,
                sling_length_ft=sling_length_ft,
                pick_point_id=p.id,
            )
        )
    return legs


def hook_height_ft(
    bottom: RiggingResult,
    top: Optional[RiggingResult] = None,
    beam: Optional[BeamInput] = None,
) -> float:
    """Rigging stack height above the pick points: bottom rise + beam height + top rise."""
    height = bottom.governing_leg().vertical_rise_ft
    if beam is not None:
        height += beam.height_ft
    if top is not None:
        height += top.governing_leg().vertical_rise_ft
    return height
