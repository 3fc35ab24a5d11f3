"""
Rigging engine entry point.

Single synchronous pass, leaves first:
  bottom rigging -> lateral pressure (+ longer-sling search) -> beam requirement
  -> top rigging -> hook height (informational) -> governing summary

Business rejections come back as EngineRejection; contract violations
(RiggingContractError) propagate to the caller.
"""
from __future__ import annotations

from sling_app.blocks.rigging_tables import DEFAULT_TABLES, CapacityTables

from .errors import BeamWeightMissing, RiggingRejection
from .evaluation import (
    evaluate_beam_requirement,
    evaluate_hook_height,
    evaluate_lateral_pressure,
    evaluate_rigging,
)
from .governing import finalize_governing_summary
from .models import (
    BeamOutcome,
    BeamRequirementUnmet,
    EngineInput,
    EngineOutput,
    EngineRejection,
    EngineResult,
    EngineSuccess,
)


def run_rigging_engine(engine_input: EngineInput, tables: CapacityTables = DEFAULT_TABLES) -> EngineResult:
    try:
        bottom = evaluate_rigging(
            engine_input.bottom_legs, "bottom", engine_input.sharp_edges_present, tables
        )
        lateral = evaluate_lateral_pressure(engine_input.load_weight_lbs, bottom)

        beam: BeamOutcome
        try:
            beam = evaluate_beam_requirement(lateral, engine_input.beam)
        except BeamWeightMissing as e:
            beam = BeamRequirementUnmet(reason=str(e))

        top = None
        if engine_input.top_legs:
            top = evaluate_rigging(engine_input.top_legs, "top", engine_input.sharp_edges_present, tables)

        hook = evaluate_hook_height(bottom, top, engine_input.beam, engine_input.crane)
    except RiggingRejection as e:
        return EngineRejection(reason=e.reason, details=str(e))

    summary = finalize_governing_summary(bottom, top, lateral, beam, hook)

    if isinstance(beam, BeamRequirementUnmet):
        return EngineRejection(
            reason=BeamWeightMissing.reason,
            details=f"{summary.governing_condition} {summary.reason}",
            summary=summary,
        )

    return EngineSuccess(
        output=EngineOutput(
            input=engine_input,
            bottom_rigging=bottom,
            lateral_pressure=lateral,
            beam_evaluation=beam,
            top_rigging=top,
            hook_height=hook,
            governing_summary=summary,
        )
    )
