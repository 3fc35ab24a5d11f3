"""
Sling App API v1: calculation path.

BELOW-THE-HOOK ONLY. Hook height is informational inside the engine; this
layer checks it against the supplied limit.

Order, first failure wins:
  1. request schema
  2. supported configuration (one sling assembly, two or more pick points)
  3. pick point geometry (sling must reach every pick point)
  4. engine verdict
  5. supplied sling WLL vs calculated leg tension
  6. supplied shackle WLL vs governing shackle requirement
  7. required hook height vs limit
"""
from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from sling_app.blocks.rigging_tables import DEFAULT_TABLES, CapacityTables

from .constants import DISCLAIMER, LBS_PER_METRIC_TON, LIMIT_STATEMENT, MAX_LATERAL_PERCENT, RECOMMENDED_WLL_FACTOR
from .engine import run_rigging_engine
from .errors import BlockedReason, InvalidGeometry, RiggingContractError
from .geometry import resolve_pick_point_legs
from .models import (
    BeamInput,
    CraneLimits,
    EngineInput,
    EngineOutput,
    EngineResult,
    EngineSuccess,
    LegInput,
    LegResult,
    PickPoint,
    RiggingResult,
)
from .schema import IntakeRejection, SlingCalculationRequest, TopRiggingIn, validate_request, validate_response

TOP_RIGGING_ID = "top_rigging"


def lbs_to_metric_tons(lbs: float) -> float:
    return round(lbs / LBS_PER_METRIC_TON, 2)


def _ceil(x: float) -> int:
    return int(math.ceil(x))


def blocked(reason: BlockedReason, details: str) -> Dict[str, Any]:
    return {
        "status": "invalid",
        "blocked": True,
        "reason": reason,
        "details": details,
        "disclaimer": DISCLAIMER,
    }


# ---------------------------------------------------------------------------
# Request -> engine input
# ---------------------------------------------------------------------------

def _top_legs(top: TopRiggingIn, load_share_total_lbs: float) -> Optional[Tuple[LegInput, ...]]:
    """
    Top slings hang from two padeyes on the beam to the hook, centred over
    the padeye spacing. Without length and spacing there is nothing to check.
    """
    if top.length_ft is None or top.padeye_spacing_ft is None:
        return None
    offset = top.padeye_spacing_ft / 2.0
    if top.length_ft <= offset:
        raise InvalidGeometry(
            f"Top sling length {top.length_ft} ft does not reach the padeyes "
            f"({offset:.2f} ft horizontal offset from the hook)."
        )
    rise = math.sqrt(top.length_ft**2 - offset**2)
    share = load_share_total_lbs / top.slings
    return tuple(
        LegInput(
            id=f"{TOP_RIGGING_ID}-leg-{i + 1}",
            load_share_lbs=share,
            vertical_rise_ft=rise,
            horizontal_offset_ft=offset,
            sling_length_ft=top.length_ft,
        )
        for i in range(top.slings)
    )


def build_engine_input(req: SlingCalculationRequest) -> EngineInput:
    """Raises InvalidGeometry when a sling cannot reach its pick points."""
    sling = req.slings[0]
    points = [PickPoint(id=p.id, x=p.x_ft, y=p.y_ft, z=p.z_ft) for p in req.geometry.pick_points]
    bottom = resolve_pick_point_legs(points, sling.length_ft, req.load.weight_lbs, sling.id)

    beam = None
    if req.hardware.beam is not None:
        b = req.hardware.beam
        beam = BeamInput(type=b.type, wll_lbs=b.wll_lbs, height_ft=b.height_ft, weight_lbs=b.weight_lbs)

    top = None
    if req.hardware.top_rigging is not None:
        carried = req.load.weight_lbs + (beam.weight_lbs if beam is not None and beam.weight_lbs else 0.0)
        top = _top_legs(req.hardware.top_rigging, carried)

    return EngineInput(
        load_weight_lbs=req.load.weight_lbs,
        bottom_legs=tuple(bottom),
        sharp_edges_present=req.load.sharp_edges_present,
        top_legs=top,
        beam=beam,
        crane=CraneLimits(
            max_hook_height_ft=req.hook_interface.hook_height_limit_ft,
            block_clearance_ft=req.hook_interface.block_clearance_ft,
        ),
    )


def _unsupported(req: SlingCalculationRequest) -> Optional[str]:
    if len(req.slings) > 1:
        return "Only one sling assembly per lift is supported."
    if len(req.geometry.pick_points) < 2:
        return "A single pick point hangs vertically from the hook; at least two pick points are required."
    top = req.hardware.top_rigging
    if top is not None and top.length_ft is not None and top.padeye_spacing_ft is not None and top.slings != 2:
        return "Top rigging geometry is supported for two top slings only."
    return None


# ---------------------------------------------------------------------------
# Post-engine checks against supplied hardware
# ---------------------------------------------------------------------------

def _all_legs(out: EngineOutput) -> List[LegResult]:
    legs = list(out.bottom_rigging.legs)
    if out.top_rigging is not None:
        legs.extend(out.top_rigging.legs)
    return legs


def _check_supplied_wll(req: SlingCalculationRequest, out: EngineOutput) -> Optional[Dict[str, Any]]:
    sling = req.slings[0]
    for leg in out.bottom_rigging.legs:
        if sling.wll_lbs < leg.tension_lbs:
            return blocked(
                "wll_exceeded",
                f"Sling {sling.id} WLL {sling.wll_lbs:g} lb is below leg {leg.leg_id} tension "
                f"{_ceil(leg.tension_lbs)} lb.",
            )
    top = req.hardware.top_rigging
    if top is not None and top.wll_lbs is not None and out.top_rigging is not None:
        for leg in out.top_rigging.legs:
            if top.wll_lbs < leg.tension_lbs:
                return blocked(
                    "top_rigging_wll_exceeded",
                    f"Top sling WLL {top.wll_lbs:g} lb is below leg {leg.leg_id} tension {_ceil(leg.tension_lbs)} lb.",
                )
    return None


def _check_supplied_shackles(req: SlingCalculationRequest, out: EngineOutput) -> Optional[Dict[str, Any]]:
    shackles = req.hardware.shackles
    if not shackles:
        return None
    required = max(leg.shackle.required_capacity_lbs for leg in _all_legs(out))
    weakest = min(shackles, key=lambda s: s.wll_lbs)
    if weakest.wll_lbs < required:
        return blocked(
            "shackle_wll_exceeded",
            f"Shackle {weakest.id} WLL {weakest.wll_lbs:g} lb is below the required {_ceil(required)} lb.",
        )
    return None


def required_hook_height_ft(req: SlingCalculationRequest, out: EngineOutput) -> int:
    max_z = max(p.z_ft for p in req.geometry.pick_points)
    return _ceil(max_z + out.hook_height.hook_height_ft + req.hook_interface.block_clearance_ft)


# ---------------------------------------------------------------------------
# Response shaping
# ---------------------------------------------------------------------------

def rigging_weight_lbs(req: SlingCalculationRequest, out: EngineOutput, tables: CapacityTables) -> float:
    """Sling self weight + selected shackles + beam + top slings. No allowances."""
    weight = 0.0
    for sling in req.slings:
        weight += sling.length_ft * sling.legs * tables.sling_weight_per_ft(sling.type)
    weight += sum(leg.shackle.weight_lbs for leg in _all_legs(out))
    if out.beam_evaluation.added_to_rigging_weight:
        weight += out.beam_evaluation.beam_weight_lbs
    elif req.hardware.beam is not None and req.hardware.beam.weight_lbs:
        weight += req.hardware.beam.weight_lbs
    top = req.hardware.top_rigging
    if top is not None and top.length_ft is not None:
        weight += top.length_ft * top.slings * tables.sling_weight_per_ft(top.type)
    return weight


def _leg_number(leg_id: str) -> int:
    return int(leg_id.rsplit("-", 1)[-1])


def _sling_id(rigging: RiggingResult, req: SlingCalculationRequest) -> str:
    return TOP_RIGGING_ID if rigging.position == "top" else req.slings[0].id


def _riggings(out: EngineOutput) -> List[RiggingResult]:
    return [out.bottom_rigging] + ([out.top_rigging] if out.top_rigging is not None else [])


def build_warnings(out: EngineOutput) -> List[str]:
    warnings: List[str] = []
    lat = out.lateral_pressure
    if lat.status == "acceptable-with-warning":
        warnings.append(
            f"Lateral pressure is {lat.lateral_percent:.1f}% of total load "
            f"(limit {MAX_LATERAL_PERCENT:g}%). Confirm the load tolerates side loading."
        )
    elif lat.status == "mitigated-with-longer-slings" and lat.selected_alternative is not None:
        alt = lat.selected_alternative
        warnings.append(
            f"Lateral pressure is {lat.lateral_percent:.1f}% of total load. Use {alt.sling_length_ft:g} ft slings "
            f"to reduce it to {alt.lateral_percent:.1f}%."
        )
    if lat.caution:
        warnings.append(lat.caution)
    if out.beam_evaluation.beam_required and out.beam_evaluation.governing_reason:
        warnings.append(out.beam_evaluation.governing_reason)
    warnings.extend(out.hook_height.warnings)
    return warnings


def build_valid_response(
    req: SlingCalculationRequest,
    out: EngineOutput,
    tables: CapacityTables,
    required_hook_ft: int,
) -> Dict[str, Any]:
    angles: List[Dict[str, Any]] = []
    tensions: List[Dict[str, Any]] = []
    hardware: List[Dict[str, Any]] = []
    for rigging in _riggings(out):
        sling_id = _sling_id(rigging, req)
        for leg in rigging.legs:
            n = _leg_number(leg.leg_id)
            angles.append({
                "sling_id": sling_id,
                "leg": n,
                "angle_deg_from_horizontal": round(leg.angle_deg, 1),
            })
            tensions.append({
                "sling_id": sling_id,
                "leg": n,
                "tension_lbs": _ceil(leg.tension_lbs),
                "required_wll_lbs": _ceil(leg.tension_lbs),
                "recommended_wll_lbs": _ceil(leg.tension_lbs * RECOMMENDED_WLL_FACTOR),
            })
            hardware.append({
                "leg_id": leg.leg_id,
                "position": rigging.position,
                "sling_material": leg.sling.material,
                "sling_size": leg.sling.selected_size,
                "sling_wll_lbs": leg.sling.minimum_wll_lbs,
                "recommended_sling_size": leg.sling.recommended_size,
                "recommended_sling_wll_lbs": leg.sling.recommended_wll_lbs,
                "shackle_size": leg.shackle.size,
                "shackle_wll_lbs": leg.shackle.wll_lbs,
                "shackle_required_lbs": _ceil(leg.shackle.required_capacity_lbs),
                "shackle_factor": leg.shackle.applied_factor,
            })

    rigging_lbs = _ceil(rigging_weight_lbs(req, out, tables))
    total = req.load.weight_lbs + rigging_lbs
    lat = out.lateral_pressure
    summary = out.governing_summary

    return {
        "status": "valid",
        "blocked": False,
        "summary": {
            "governing_condition": summary.condition_code,
            "governing_element_id": summary.governing_element_id or "",
            "why": LIMIT_STATEMENT,
        },
        "results": {
            "angles": angles,
            "tensions": tensions,
            "weights": {
                "load_lbs": req.load.weight_lbs,
                "rigging_lbs": rigging_lbs,
                "total_lift_lbs": total,
                "total_lift_metric_tons": lbs_to_metric_tons(total),
            },
            "hook_height": {
                "required_ft": required_hook_ft,
                "limit_ft": req.hook_interface.hook_height_limit_ft,
                "within_limit": required_hook_ft <= req.hook_interface.hook_height_limit_ft,
            },
            "hardware": hardware,
            "lateral_pressure": {
                "status": lat.status,
                "lateral_percent": round(lat.lateral_percent, 2),
                "lateral_force_lbs": _ceil(lat.lateral_force_lbs),
                "recommended_sling_length_ft": (
                    lat.selected_alternative.sling_length_ft if lat.selected_alternative is not None else None
                ),
                "beam_required": lat.beam_required,
            },
        },
        "warnings": build_warnings(out),
        "disclaimer": DISCLAIMER,
    }


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def evaluate_request(
    raw: Dict[str, Any],
    tables: CapacityTables = DEFAULT_TABLES,
) -> Tuple[Dict[str, Any], Optional[EngineResult]]:
    """
    Returns (response, engine_result). engine_result is None when the request
    was turned away before the engine ran.

    Contract violations (RiggingContractError) are logged and re-raised.
    """
    req = validate_request(raw)
    if isinstance(req, IntakeRejection):
        logger.info("Sling request rejected at intake: {}", req.reason)
        return validate_response(blocked(req.reason, req.details)), None

    unsupported = _unsupported(req)
    if unsupported:
        logger.info("Sling request rejected: unsupported_configuration")
        return validate_response(blocked("unsupported_configuration", unsupported)), None

    try:
        engine_input = build_engine_input(req)
    except InvalidGeometry as e:
        logger.info("Sling request rejected: invalid_pick_point_geometry ({})", e)
        return validate_response(blocked("invalid_pick_point_geometry", str(e))), None

    try:
        result = run_rigging_engine(engine_input, tables)
    except RiggingContractError:
        logger.exception("Rigging engine contract violation")
        raise

    if not isinstance(result, EngineSuccess):
        logger.info("Sling lift blocked by engine: {}", result.reason)
        return validate_response(blocked(result.reason, result.details)), result

    out = result.output
    resp = _check_supplied_wll(req, out) or _check_supplied_shackles(req, out)
    if resp is not None:
        logger.info("Sling lift blocked by supplied hardware: {}", resp["reason"])
        return validate_response(resp), result

    required_ft = required_hook_height_ft(req, out)
    if required_ft > req.hook_interface.hook_height_limit_ft:
        logger.info("Sling lift blocked: hook height {} ft > {} ft", required_ft, req.hook_interface.hook_height_limit_ft)
        return validate_response(
            blocked(
                "hook_height_exceeded",
                f"Required hook height {required_ft} ft exceeds the limit of "
                f"{req.hook_interface.hook_height_limit_ft:g} ft.",
            )
        ), result

    resp = build_valid_response(req, out, tables, required_ft)
    logger.info(
        "Sling lift valid: governing {} ({})",
        out.governing_summary.condition_code,
        out.governing_summary.governing_element_id,
    )
    return validate_response(resp), result


def engine_input_for(raw: Dict[str, Any]) -> Optional[EngineInput]:
    """Engine input the request resolves to, or None when it is turned away before the engine."""
    req = validate_request(raw)
    if isinstance(req, IntakeRejection) or _unsupported(req):
        return None
    try:
        return build_engine_input(req)
    except InvalidGeometry:
        return None


def calculate_sling(raw: Dict[str, Any], tables: CapacityTables = DEFAULT_TABLES) -> Dict[str, Any]:
    """Validated request dict in, validated response dict out."""
    resp, _ = evaluate_request(raw, tables)
    return resp
