"""
Engine value objects.

Everything here is a frozen dataclass produced by one calculation call and
never mutated afterwards. Hardware selections are held by value (copies of
the table row data), never as references into the tables.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal, Optional, Tuple, Union

from .constants import DISCLAIMER, LIMIT_STATEMENT
from .errors import BeamWeightMissing, BlockedReason, GoverningLegNotFound

RiggingPosition = Literal["bottom", "top"]
LateralStatus = Literal["ideal", "acceptable-with-warning", "mitigated-with-longer-slings", "exceeds-limit"]
Severity = Literal["governing", "block"]


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PickPoint:
    id: str
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class LegInput:
    """One sling strand: pick point geometry relative to its bearing point."""
    id: str
    load_share_lbs: float
    vertical_rise_ft: float
    horizontal_offset_ft: float
    sling_length_ft: float
    pick_point_id: Optional[str] = None


@dataclass(frozen=True)
class BeamInput:
    type: Literal["spreader_bar", "lift_beam"]
    wll_lbs: float
    height_ft: float = 0.0
    # Actual weight only; None means "not supplied" and is never estimated.
    weight_lbs: Optional[float] = None


@dataclass(frozen=True)
class CraneLimits:
    max_hook_height_ft: Optional[float] = None
    block_clearance_ft: Optional[float] = None


@dataclass(frozen=True)
class EngineInput:
    load_weight_lbs: float
    bottom_legs: Tuple[LegInput, ...]
    sharp_edges_present: bool = False
    top_legs: Optional[Tuple[LegInput, ...]] = None
    beam: Optional[BeamInput] = None
    crane: Optional[CraneLimits] = None


# ---------------------------------------------------------------------------
# Hardware selections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SlingSelection:
    material: str
    minimum_wll_lbs: float
    recommended_wll_lbs: float
    selected_size: str
    recommended_size: str


@dataclass(frozen=True)
class ShackleSelection:
    size: str
    tonnage: float
    wll_lbs: float
    weight_lbs: float
    required_capacity_lbs: float
    applied_factor: float
    sized_from: Literal["tension", "sling_wll"]


# ---------------------------------------------------------------------------
# Rigging results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LegResult:
    leg_id: str
    pick_point_id: Optional[str]
    load_share_lbs: float
    sling_length_ft: float
    vertical_rise_ft: float
    horizontal_offset_ft: float
    angle_deg: float
    tension_lbs: float
    sling: SlingSelection
    shackle: ShackleSelection


@dataclass(frozen=True)
class RiggingResult:
    position: RiggingPosition
    legs: Tuple[LegResult, ...]
    governing_leg_id: str
    governing_tension_lbs: float
    governing_reason: str

    def governing_leg(self) -> LegResult:
        for leg in self.legs:
            if leg.leg_id == self.governing_leg_id:
                return leg
        raise GoverningLegNotFound(f"Governing {self.position} rigging leg {self.governing_leg_id!r} not found.")


@dataclass(frozen=True)
class MitigationAlternative:
    sling_length_ft: float
    vertical_rise_ft: float
    angle_deg: float
    tension_lbs: float
    lateral_force_lbs: float
    lateral_percent: float


@dataclass(frozen=True)
class LateralPressureResult:
    lateral_force_lbs: float
    lateral_percent: float
    status: LateralStatus
    mitigation_required: bool
    beam_required: bool = False
    selected_alternative: Optional[MitigationAlternative] = None
    evaluated_alternatives: Tuple[MitigationAlternative, ...] = ()
    caution: Optional[str] = None
    failure_reason: Optional[str] = None


@dataclass(frozen=True)
class BeamEvaluationResult:
    beam_required: bool
    beam_weight_lbs: float
    added_to_rigging_weight: bool
    beam_type: Optional[str] = None
    beam_wll_lbs: Optional[float] = None
    governing_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if self.beam_required and not self.beam_weight_lbs > 0:
            raise BeamWeightMissing(
                "Spreader bar or lift beam weight is mandatory and must be provided. "
                "Estimated weights are not permitted."
            )


@dataclass(frozen=True)
class BeamRequirementUnmet:
    """A beam is required but the supplied beam data could not be validated."""
    reason: str
    beam_required: bool = True


BeamOutcome = Union[BeamEvaluationResult, BeamRequirementUnmet]


@dataclass(frozen=True)
class HookHeightInfo:
    hook_height_ft: float
    warnings: Tuple[str, ...] = ()
    note: str = ""
    informational_only: bool = True


@dataclass(frozen=True)
class GoverningSummary:
    governing_condition: str
    reason: str
    severity: Severity
    condition_code: str
    governing_element_id: Optional[str] = None
    statement: str = LIMIT_STATEMENT

    @property
    def text(self) -> str:
        return f"{self.governing_condition} {self.reason} {self.statement}"


# ---------------------------------------------------------------------------
# Engine output (tagged result)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EngineOutput:
    input: EngineInput
    bottom_rigging: RiggingResult
    lateral_pressure: LateralPressureResult
    beam_evaluation: BeamEvaluationResult
    top_rigging: Optional[RiggingResult]
    hook_height: HookHeightInfo
    governing_summary: GoverningSummary
    disclaimer: str = DISCLAIMER

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EngineSuccess:
    output: EngineOutput
    ok: Literal[True] = True


@dataclass(frozen=True)
class EngineRejection:
    reason: BlockedReason
    details: str
    summary: Optional[GoverningSummary] = None
    disclaimer: str = DISCLAIMER
    ok: Literal[False] = False


EngineResult = Union[EngineSuccess, EngineRejection]
