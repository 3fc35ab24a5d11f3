"""
Governing summary.

Fixed priority, first match wins:
  1. beam required but not validated            -> block
  2. otherwise                                   -> governing, reason built from
     bottom governing leg, top governing leg (if any), lateral pressure (if > 0)
     and a hook height advisory (if hook height warnings exist)

Reads results only; never alters them.
"""
from __future__ import annotations

from typing import List, Optional

from .models import (
    BeamOutcome,
    BeamRequirementUnmet,
    GoverningSummary,
    HookHeightInfo,
    LateralPressureResult,
    RiggingResult,
)


def finalize_governing_summary(
    bottom: RiggingResult,
    top: Optional[RiggingResult],
    lateral: LateralPressureResult,
    beam: BeamOutcome,
    hook: HookHeightInfo,
) -> GoverningSummary:
    if isinstance(beam, BeamRequirementUnmet):
        return GoverningSummary(
            governing_condition="Spreader bar or lift beam required but not valid.",
            reason=(
                f"Lateral pressure of {lateral.lateral_percent:.1f}% exceeds allowable limits and a beam is "
                f"required. Beam weight was not provided. {beam.reason}"
            ),
            severity="block",
            condition_code="beam_weight_missing",
        )

    reasons: List[str] = [
        f"Bottom rigging governing leg: {bottom.governing_leg_id} at {bottom.governing_tension_lbs:.0f} lb."
    ]
    if top is not None:
        reasons.append(f"Top rigging governing leg: {top.governing_leg_id} at {top.governing_tension_lbs:.0f} lb.")
    if lateral.lateral_percent > 0:
        reasons.append(f"Lateral pressure: {lateral.lateral_percent:.1f}% of total load.")
    if hook.warnings:
        reasons.append("Hook height evaluated for feasibility and clearance only.")

    if top is not None and top.governing_tension_lbs > bottom.governing_tension_lbs:
        return GoverningSummary(
            governing_condition="Top rigging sling tension governs the lift.",
            reason=" ".join(reasons),
            severity="governing",
            condition_code="top_rigging_sling_tension",
            governing_element_id=top.governing_leg_id,
        )

    return GoverningSummary(
        governing_condition="Bottom rigging sling tension governs the lift.",
        reason=" ".join(reasons),
        severity="governing",
        condition_code="bottom_rigging_sling_tension",
        governing_element_id=bottom.governing_leg_id,
    )
