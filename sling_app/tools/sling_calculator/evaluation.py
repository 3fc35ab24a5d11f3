from __future__ import annotations

import math
from typing import List, Optional, Sequence

from sling_app.blocks.rigging_tables import DEFAULT_TABLES, CapacityTables

from .constants import BOTTOM_MIN_ANGLE_DEG, MAX_LATERAL_PERCENT, MAX_SLING_LENGTH_FT, TOP_MIN_ANGLE_DEG
from .errors import AngleBelowMinimum, BeamWeightMissing, GoverningLegNotFound, NoCompliantSling
from .forces import lateral_force_lbs, lateral_percent, sling_tension_lbs
from .geometry import hook_height_ft, sling_angle_deg, vertical_rise_for_length
from .models import (
    BeamEvaluationResult,
    BeamInput,
    CraneLimits,
    HookHeightInfo,
    LateralPressureResult,
    LateralStatus,
    LegInput,
    LegResult,
    MitigationAlternative,
    RiggingPosition,
    RiggingResult,
)
from .selection import select_shackle, select_sling

HOOK_HEIGHT_NOTE = (
    "Hook height evaluated for informational purposes only. "
    "Sling geometry and selection remain independent of hook height."
)
LONGER_SLING_CAUTION = "Longer slings increase hook height and require block clearance verification."


# ---------------------------------------------------------------------------
# Bottom / top rigging
# ---------------------------------------------------------------------------

def angle_meets_minimum(angle_deg: float, position: RiggingPosition) -> bool:
    """Bottom: strictly greater than 45 deg. Top: 60 deg or more."""
    if position == "top":
        return angle_deg >= TOP_MIN_ANGLE_DEG
    return angle_deg > BOTTOM_MIN_ANGLE_DEG


def _minimum_text(position: RiggingPosition) -> str:
    if position == "top":
        return f">= {TOP_MIN_ANGLE_DEG:g}°"
    return f"> {BOTTOM_MIN_ANGLE_DEG:g}°"


def evaluate_leg(
    leg: LegInput,
    position: RiggingPosition,
    sharp_edges_present: bool,
    tables: CapacityTables = DEFAULT_TABLES,
) -> LegResult:
    angle = sling_angle_deg(leg.vertical_rise_ft, leg.horizontal_offset_ft)
    if not angle_meets_minimum(angle, position):
        raise AngleBelowMinimum(
            f"Invalid {position} rigging configuration: sling angle {angle:.1f}° on leg {leg.id} "
            f"is below the minimum allowed ({_minimum_text(position)} from horizontal)."
        )

    tension = sling_tension_lbs(leg.load_share_lbs, angle)

    try:
        sling = select_sling(tension, sharp_edges_present, tables)
    except NoCompliantSling as e:
        if position == "top":
            raise NoCompliantSling(str(e), reason="top_rigging_wll_exceeded") from e
        raise

    shackle = select_shackle(tension, sling.minimum_wll_lbs, tables)

    return LegResult(
        leg_id=leg.id,
        pick_point_id=leg.pick_point_id,
        load_share_lbs=leg.load_share_lbs,
        sling_length_ft=leg.sling_length_ft,
        vertical_rise_ft=leg.vertical_rise_ft,
        horizontal_offset_ft=leg.horizontal_offset_ft,
        angle_deg=angle,
        tension_lbs=tension,
        sling=sling,
        shackle=shackle,
    )


def evaluate_rigging(
    legs: Sequence[LegInput],
    position: RiggingPosition,
    sharp_edges_present: bool = False,
    tables: CapacityTables = DEFAULT_TABLES,
) -> RiggingResult:
    """
    Angle check -> tension -> sling -> shackle for every leg, then the leg with
    the highest tension governs (first leg wins an exact tie).
    """
    results = [evaluate_leg(leg, position, sharp_edges_present, tables) for leg in legs]
    if not results:
        raise GoverningLegNotFound(f"No {position} rigging legs to evaluate.")

    governing = results[0]
    for r in results[1:]:
        if r.tension_lbs > governing.tension_lbs:
            governing = r

    return RiggingResult(
        position=position,
        legs=tuple(results),
        governing_leg_id=governing.leg_id,
        governing_tension_lbs=governing.tension_lbs,
        governing_reason=f"Highest calculated sling tension governs {position} rigging.",
    )


# ---------------------------------------------------------------------------
# Lateral pressure + longer-sling mitigation
# ---------------------------------------------------------------------------

def classify_lateral_percent(percent: float) -> LateralStatus:
    if percent == 0:
        return "ideal"
    if percent <= MAX_LATERAL_PERCENT:
        return "acceptable-with-warning"
    return "exceeds-limit"


def mitigation_lengths(current_length_ft: float) -> List[int]:
    """Whole-foot sling lengths tried above the current length, capped at 40 ft."""
    start = int(math.floor(current_length_ft)) + 1
    return list(range(start, MAX_SLING_LENGTH_FT + 1))


def evaluate_alternative(leg: LegResult, sling_length_ft: float, total_load_lbs: float) -> MitigationAlternative:
    rise = vertical_rise_for_length(sling_length_ft, leg.horizontal_offset_ft)
    angle = sling_angle_deg(rise, leg.horizontal_offset_ft)
    tension = sling_tension_lbs(leg.load_share_lbs, angle)
    force = lateral_force_lbs(tension, angle)
    return MitigationAlternative(
        sling_length_ft=float(sling_length_ft),
        vertical_rise_ft=rise,
        angle_deg=angle,
        tension_lbs=tension,
        lateral_force_lbs=force,
        lateral_percent=lateral_percent(force, total_load_lbs),
    )


def evaluate_lateral_pressure(total_load_lbs: float, bottom: RiggingResult) -> LateralPressureResult:
    """
    Lateral pressure of the governing bottom leg as % of total load.

      0%        -> ideal
      <= 10%    -> acceptable with warning
      > 10%     -> try longer slings (whole feet, up to 40 ft); first length
                   reaching <= 10% is selected, otherwise a beam is required
    """
    leg = bottom.governing_leg()
    force = lateral_force_lbs(leg.tension_lbs, leg.angle_deg)
    percent = lateral_percent(force, total_load_lbs)

    status = classify_lateral_percent(percent)
    if status != "exceeds-limit":
        return LateralPressureResult(
            lateral_force_lbs=force,
            lateral_percent=percent,
            status=status,
            mitigation_required=False,
        )

    alternatives: List[MitigationAlternative] = []
    for length in mitigation_lengths(leg.sling_length_ft):
        alt = evaluate_alternative(leg, length, total_load_lbs)
        alternatives.append(alt)
        if alt.lateral_percent <= MAX_LATERAL_PERCENT:
            return LateralPressureResult(
                lateral_force_lbs=force,
                lateral_percent=percent,
                status="mitigated-with-longer-slings",
                mitigation_required=True,
                selected_alternative=alt,
                evaluated_alternatives=tuple(alternatives),
                caution=LONGER_SLING_CAUTION,
            )

    return LateralPressureResult(
        lateral_force_lbs=force,
        lateral_percent=percent,
        status="exceeds-limit",
        mitigation_required=True,
        beam_required=True,
        evaluated_alternatives=tuple(alternatives),
        failure_reason=(
            f"Lateral pressure exceeds {MAX_LATERAL_PERCENT:g}% and cannot be reduced within the "
            f"{MAX_SLING_LENGTH_FT} ft sling length cap."
        ),
    )


# ---------------------------------------------------------------------------
# Spreader bar / lift beam
# ---------------------------------------------------------------------------

def evaluate_beam_requirement(lateral: LateralPressureResult, beam: Optional[BeamInput]) -> BeamEvaluationResult:
    if not lateral.beam_required:
        return BeamEvaluationResult(beam_required=False, beam_weight_lbs=0.0, added_to_rigging_weight=False)

    if beam is None:
        raise BeamWeightMissing("Spreader bar or lift beam is required, but no beam data was provided.")
    if beam.weight_lbs is None or not beam.weight_lbs > 0:
        raise BeamWeightMissing(
            "Spreader bar or lift beam weight is mandatory and must be provided. Estimated weights are not permitted."
        )

    return BeamEvaluationResult(
        beam_required=True,
        beam_weight_lbs=float(beam.weight_lbs),
        added_to_rigging_weight=True,
        beam_type=beam.type,
        beam_wll_lbs=beam.wll_lbs,
        governing_reason="Beam required to control lateral pressure exceeding allowable limits.",
    )


# ---------------------------------------------------------------------------
# Hook height (informational only)
# ---------------------------------------------------------------------------

def evaluate_hook_height(
    bottom: RiggingResult,
    top: Optional[RiggingResult] = None,
    beam: Optional[BeamInput] = None,
    crane: Optional[CraneLimits] = None,
) -> HookHeightInfo:
    height = hook_height_ft(bottom, top, beam)
    warnings: List[str] = []

    if crane is not None and crane.max_hook_height_ft is not None and height > crane.max_hook_height_ft:
        warnings.append(
            f"Calculated hook height ({height:.1f} ft) exceeds crane maximum hook height "
            f"({crane.max_hook_height_ft:g} ft)."
        )
    if crane is not None and crane.block_clearance_ft is not None and height < crane.block_clearance_ft:
        warnings.append(
            f"Insufficient block or headroom clearance. Required clearance: {crane.block_clearance_ft:g} ft."
        )

    return HookHeightInfo(hook_height_ft=height, warnings=tuple(warnings), note=HOOK_HEIGHT_NOTE)
