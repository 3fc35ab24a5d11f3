"""
Sling calculation API v1 request/response schemas.

If a request fails here, calculations must not run. Every outgoing response
is checked against the response models before it leaves the tool.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from sling_app.core.schema_utils import format_validation_error

from .constants import MAX_SLING_LENGTH_FT
from .errors import BlockedReason

# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class PickPointIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str = Field(..., min_length=1, description="Pick point ID")
    x_ft: float = Field(..., allow_inf_nan=False, description="Plan x of pick point [ft]")
    y_ft: float = Field(..., allow_inf_nan=False, description="Plan y of pick point [ft]")
    z_ft: float = Field(..., ge=0, allow_inf_nan=False, description="Top of load to pick point centerline [ft]")


class LoadIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    weight_lbs: float = Field(..., gt=0, description="Load weight [lb]")
    cg_known: bool
    sharp_edges_present: bool = Field(False, description="Sharp edges at sling contact points")


class GeometryIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    pick_points: List[PickPointIn] = Field(..., min_length=1)
    distances_authoritative: Literal[True]


class SlingIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str = Field(..., min_length=1)
    type: Literal["wire_rope", "chain", "synthetic"]
    legs: int = Field(..., gt=0)
    length_ft: float = Field(..., gt=0, le=MAX_SLING_LENGTH_FT, description="Sling leg length [ft]")
    wll_lbs: float = Field(..., gt=0, description="Rated WLL of one leg [lb]")
    sharing_allowed: bool


class ShackleIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str = Field(..., min_length=1)
    wll_lbs: float = Field(..., gt=0)


class TopRiggingIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    slings: int = Field(..., gt=0, description="Number of top slings")
    sharing_allowed: bool
    length_ft: Optional[float] = Field(None, gt=0, le=MAX_SLING_LENGTH_FT, description="Top sling length [ft]")
    padeye_spacing_ft: Optional[float] = Field(None, gt=0, description="Spacing of top padeyes on the beam [ft]")
    wll_lbs: Optional[float] = Field(None, gt=0, description="Rated WLL of one top sling [lb]")
    type: Literal["wire_rope", "chain", "synthetic"] = "wire_rope"


class BeamIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: Literal["spreader_bar", "lift_beam"]
    wll_lbs: float = Field(..., gt=0)
    weight_lbs: Optional[float] = Field(None, gt=0, description="Actual beam weight [lb], never estimated")
    height_ft: float = Field(0.0, ge=0, description="Bottom padeye to top padeye [ft]")


class HardwareIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    shackles: Optional[List[ShackleIn]] = None
    top_rigging: Optional[TopRiggingIn] = None
    beam: Optional[BeamIn] = None


class HookInterfaceIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    hook_height_limit_ft: float = Field(..., gt=0)
    block_clearance_ft: float = Field(..., gt=0)


class OptionsIn(BaseModel):
    model_config = ConfigDict(extra="forbid")
    auto_sling_length: bool
    round_distances_up: Literal[True]


class SlingCalculationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    units: Literal["imperial"]
    load: LoadIn
    geometry: GeometryIn
    slings: List[SlingIn] = Field(..., min_length=1)
    hardware: HardwareIn = Field(default_factory=HardwareIn)
    hook_interface: HookInterfaceIn
    options: OptionsIn


def _is_length_cap_error(err: Dict[str, Any]) -> bool:
    loc = err.get("loc") or ()
    return bool(loc) and loc[-1] == "length_ft" and err.get("type") == "less_than_equal"


@dataclass(frozen=True)
class IntakeRejection:
    reason: BlockedReason
    details: str


def validate_request(raw: Dict[str, Any]) -> Union[SlingCalculationRequest, IntakeRejection]:
    """The parsed request, or an IntakeRejection naming why it was turned away."""
    try:
        req = SlingCalculationRequest.model_validate(raw)
    except ValidationError as e:
        errors = e.errors()
        if any(_is_length_cap_error(err) for err in errors):
            return IntakeRejection(
                "sling_length_exceeds_maximum", f"Maximum allowed sling length is {MAX_SLING_LENGTH_FT} ft."
            )
        return IntakeRejection("invalid_request_payload", format_validation_error(e))

    n_points = len(req.geometry.pick_points)
    for sling in req.slings:
        if sling.legs != n_points:
            return IntakeRejection(
                "legs_pick_points_mismatch",
                f'Sling "{sling.id}" has {sling.legs} legs but {n_points} pick points were provided',
            )
    return req


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------

class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


class SummaryOut(_Strict):
    governing_condition: str
    governing_element_id: str
    why: Literal["This is what limits the lift."]


class AngleOut(_Strict):
    sling_id: str
    leg: int = Field(..., gt=0)
    angle_deg_from_horizontal: float


class TensionOut(_Strict):
    sling_id: str
    leg: int = Field(..., gt=0)
    tension_lbs: float
    required_wll_lbs: float
    recommended_wll_lbs: float


class WeightsOut(_Strict):
    load_lbs: float
    rigging_lbs: float
    total_lift_lbs: float
    total_lift_metric_tons: float


class HookHeightOut(_Strict):
    required_ft: float
    limit_ft: float
    within_limit: bool


class HardwareOut(_Strict):
    leg_id: str
    position: Literal["bottom", "top"]
    sling_material: str
    sling_size: str
    sling_wll_lbs: float
    recommended_sling_size: str
    recommended_sling_wll_lbs: float
    shackle_size: str
    shackle_wll_lbs: float
    shackle_required_lbs: float
    shackle_factor: float


class LateralOut(_Strict):
    status: Literal["ideal", "acceptable-with-warning", "mitigated-with-longer-slings", "exceeds-limit"]
    lateral_percent: float
    lateral_force_lbs: float
    recommended_sling_length_ft: Optional[float] = None
    beam_required: bool


class ResultsOut(_Strict):
    angles: List[AngleOut]
    tensions: List[TensionOut]
    weights: WeightsOut
    hook_height: HookHeightOut
    hardware: List[HardwareOut] = Field(default_factory=list)
    lateral_pressure: Optional[LateralOut] = None


class ValidLiftResult(_Strict):
    status: Literal["valid"]
    blocked: Literal[False]
    summary: SummaryOut
    results: ResultsOut
    warnings: List[str]
    disclaimer: Literal["Load acceptability and lug integrity are the user’s responsibility."]


class BlockedLiftResult(_Strict):
    status: Literal["invalid"]
    blocked: Literal[True]
    reason: BlockedReason
    details: str
    disclaimer: Literal["Load acceptability and lug integrity are the user’s responsibility."]


SlingCalculationResponse = Union[ValidLiftResult, BlockedLiftResult]

_RESPONSE_ADAPTER: TypeAdapter[SlingCalculationResponse] = TypeAdapter(SlingCalculationResponse)


def validate_response(resp: Dict[str, Any]) -> Dict[str, Any]:
    """Safety gate on the way out: raises ValidationError on any shape drift."""
    _RESPONSE_ADAPTER.validate_python(resp)
    return resp
