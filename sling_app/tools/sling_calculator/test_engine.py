from __future__ import annotations

import math
from typing import Tuple

import pytest

from .constants import DISCLAIMER, LIMIT_STATEMENT
from .engine import run_rigging_engine
from .errors import AngleBelowMinimum, BeamWeightMissing, GoverningLegNotFound, InvalidGeometry, NoCompliantSling
from .evaluation import (
    LONGER_SLING_CAUTION,
    angle_meets_minimum,
    classify_lateral_percent,
    evaluate_beam_requirement,
    evaluate_hook_height,
    evaluate_lateral_pressure,
    evaluate_leg,
    evaluate_rigging,
    mitigation_lengths,
)
from .governing import finalize_governing_summary
from .models import (
    BeamEvaluationResult,
    BeamInput,
    BeamRequirementUnmet,
    CraneLimits,
    EngineInput,
    EngineRejection,
    EngineSuccess,
    LegInput,
)


def _leg(id: str, share: float, offset: float, length: float) -> LegInput:
    return LegInput(
        id=id,
        load_share_lbs=share,
        vertical_rise_ft=math.sqrt(length**2 - offset**2),
        horizontal_offset_ft=offset,
        sling_length_ft=length,
    )


def _pair(share: float, offset: float, length: float, prefix: str = "S1") -> Tuple[LegInput, LegInput]:
    return (_leg(f"{prefix}-leg-1", share, offset, length), _leg(f"{prefix}-leg-2", share, offset, length))


# ---------------------------------------------------------------------------
# Threshold rules
# ---------------------------------------------------------------------------

def test_bottom_threshold_exclusive() -> None:
    assert angle_meets_minimum(45.0, "bottom") is False
    assert angle_meets_minimum(45.0001, "bottom") is True


def test_top_threshold_inclusive() -> None:
    assert angle_meets_minimum(60.0, "top") is True
    assert angle_meets_minimum(59.9999, "top") is False


def test_bottom_leg_at_45_rejected() -> None:
    leg = LegInput(id="L1", load_share_lbs=1000.0, vertical_rise_ft=5.0, horizontal_offset_ft=5.0, sling_length_ft=8.0)
    with pytest.raises(AngleBelowMinimum) as e:
        evaluate_leg(leg, "bottom", False)
    assert e.value.reason == "sling_angle_below_minimum"
    assert "L1" in str(e.value)


def test_top_leg_48_deg_rejected_but_fine_for_bottom() -> None:
    leg = _leg("T1", 5000.0, 6.0, 9.0)  # ~48.2 deg
    assert evaluate_leg(leg, "bottom", False).angle_deg == pytest.approx(48.19, abs=0.01)
    with pytest.raises(AngleBelowMinimum):
        evaluate_leg(leg, "top", False)


def test_top_rigging_catalog_failure_has_top_reason() -> None:
    leg = _leg("T1", 200000.0, 1.0, 12.0)
    with pytest.raises(NoCompliantSling) as e:
        evaluate_leg(leg, "top", True)
    assert e.value.reason == "top_rigging_wll_exceeded"


# ---------------------------------------------------------------------------
# Rigging evaluation
# ---------------------------------------------------------------------------

def test_rigging_scenario_a() -> None:
    r = evaluate_rigging(_pair(10000.0, 5.0, 20.0), "bottom")
    assert r.position == "bottom"
    assert len(r.legs) == 2
    assert r.governing_leg_id == "S1-leg-1"  # tie -> first leg
    leg = r.legs[0]
    assert leg.angle_deg == pytest.approx(75.52, abs=0.01)
    assert leg.tension_lbs == pytest.approx(10327.96, abs=0.01)
    assert leg.sling.minimum_wll_lbs == 12000
    assert leg.shackle.size == "7/8 in"


def test_rigging_highest_tension_governs() -> None:
    legs = (_leg("A", 5000.0, 5.0, 20.0), _leg("B", 5000.0, 8.0, 20.0))
    r = evaluate_rigging(legs, "bottom")
    assert r.governing_leg_id == "B"
    assert r.governing_leg().leg_id == "B"


def test_rigging_without_legs() -> None:
    with pytest.raises(GoverningLegNotFound):
        evaluate_rigging((), "bottom")


def test_invalid_leg_geometry_propagates() -> None:
    leg = LegInput(id="X", load_share_lbs=1000.0, vertical_rise_ft=0.0, horizontal_offset_ft=5.0, sling_length_ft=5.0)
    with pytest.raises(InvalidGeometry):
        run_rigging_engine(EngineInput(load_weight_lbs=2000.0, bottom_legs=(leg, leg)))


# ---------------------------------------------------------------------------
# Lateral pressure
# ---------------------------------------------------------------------------

def test_classify_lateral_percent() -> None:
    assert classify_lateral_percent(0.0) == "ideal"
    assert classify_lateral_percent(0.01) == "acceptable-with-warning"
    assert classify_lateral_percent(10.0) == "acceptable-with-warning"
    assert classify_lateral_percent(10.01) == "exceeds-limit"


def test_mitigation_lengths() -> None:
    assert mitigation_lengths(8.0) == list(range(9, 41))
    assert mitigation_lengths(8.5) == list(range(9, 41))
    assert mitigation_lengths(40.0) == []


def test_lateral_acceptable_with_warning() -> None:
    # offset 2 ft at 20 ft: ~5% lateral
    bottom = evaluate_rigging(_pair(10000.0, 2.0, 20.0), "bottom")
    lat = evaluate_lateral_pressure(20000.0, bottom)
    assert lat.status == "acceptable-with-warning"
    assert lat.mitigation_required is False
    assert lat.evaluated_alternatives == ()


def test_lateral_mitigated_scenario_a() -> None:
    bottom = evaluate_rigging(_pair(10000.0, 5.0, 20.0), "bottom")
    lat = evaluate_lateral_pressure(20000.0, bottom)
    assert lat.lateral_percent == pytest.approx(12.91, abs=0.01)
    assert lat.status == "mitigated-with-longer-slings"
    assert lat.selected_alternative is not None
    assert lat.selected_alternative.sling_length_ft == 26.0
    assert lat.selected_alternative.lateral_percent == pytest.approx(9.798, abs=0.001)
    assert [a.sling_length_ft for a in lat.evaluated_alternatives] == [21.0, 22.0, 23.0, 24.0, 25.0, 26.0]
    assert lat.caution == LONGER_SLING_CAUTION


def test_lateral_narrow_slings_16_ft_load() -> None:
    # 15000 lb load, 8 ft slings to lugs 5 ft either side of the hook on a 16 ft long load
    bottom = evaluate_rigging(_pair(7500.0, 5.0, 8.0), "bottom")
    lat = evaluate_lateral_pressure(15000.0, bottom)
    assert lat.lateral_percent == pytest.approx(40.03, abs=0.01)
    assert lat.status == "mitigated-with-longer-slings"
    alt = lat.selected_alternative
    assert alt is not None
    assert alt.sling_length_ft > 8.0
    assert alt.lateral_percent <= 10.0
    assert alt.sling_length_ft == 26.0
    assert len(lat.evaluated_alternatives) == 18


def test_mitigation_percent_non_increasing() -> None:
    bottom = evaluate_rigging(_pair(10000.0, 10.0, 15.0), "bottom")
    lat = evaluate_lateral_pressure(20000.0, bottom)
    pct = [a.lateral_percent for a in lat.evaluated_alternatives]
    assert len(pct) == 25
    assert all(b <= a for a, b in zip(pct, pct[1:]))


def test_lateral_unmitigable_requires_beam() -> None:
    bottom = evaluate_rigging(_pair(10000.0, 10.0, 15.0), "bottom")
    lat = evaluate_lateral_pressure(20000.0, bottom)
    assert lat.lateral_percent == pytest.approx(44.72, abs=0.01)
    assert lat.status == "exceeds-limit"
    assert lat.beam_required is True
    assert lat.selected_alternative is None
    assert lat.evaluated_alternatives[-1].sling_length_ft == 40.0
    assert lat.evaluated_alternatives[-1].lateral_percent == pytest.approx(12.91, abs=0.01)
    assert lat.failure_reason


# ---------------------------------------------------------------------------
# Beam requirement
# ---------------------------------------------------------------------------

def test_beam_not_required() -> None:
    bottom = evaluate_rigging(_pair(10000.0, 5.0, 20.0), "bottom")
    beam = evaluate_beam_requirement(evaluate_lateral_pressure(20000.0, bottom), None)
    assert beam.beam_required is False
    assert beam.added_to_rigging_weight is False


def test_beam_required_without_weight() -> None:
    bottom = evaluate_rigging(_pair(10000.0, 10.0, 15.0), "bottom")
    lat = evaluate_lateral_pressure(20000.0, bottom)
    with pytest.raises(BeamWeightMissing):
        evaluate_beam_requirement(lat, None)
    with pytest.raises(BeamWeightMissing):
        evaluate_beam_requirement(lat, BeamInput(type="spreader_bar", wll_lbs=30000.0))


def test_beam_result_enforces_weight() -> None:
    with pytest.raises(BeamWeightMissing):
        BeamEvaluationResult(beam_required=True, beam_weight_lbs=0.0, added_to_rigging_weight=True)


def test_engine_beam_missing_is_rejection_with_block_summary() -> None:
    res = run_rigging_engine(EngineInput(load_weight_lbs=20000.0, bottom_legs=_pair(10000.0, 10.0, 15.0)))
    assert isinstance(res, EngineRejection)
    assert res.ok is False
    assert res.reason == "lateral_pressure_exceeded"
    assert res.summary is not None
    assert res.summary.severity == "block"
    assert res.summary.condition_code == "beam_weight_missing"
    assert res.disclaimer == DISCLAIMER


def test_engine_beam_supplied() -> None:
    beam = BeamInput(type="spreader_bar", wll_lbs=30000.0, height_ft=2.0, weight_lbs=1200.0)
    res = run_rigging_engine(EngineInput(load_weight_lbs=20000.0, bottom_legs=_pair(10000.0, 10.0, 15.0), beam=beam))
    assert isinstance(res, EngineSuccess)
    out = res.output
    assert out.beam_evaluation.beam_required is True
    assert out.beam_evaluation.beam_weight_lbs == 1200.0
    assert out.beam_evaluation.added_to_rigging_weight is True
    assert out.hook_height.hook_height_ft == pytest.approx(math.sqrt(125.0) + 2.0)


# ---------------------------------------------------------------------------
# Top rigging, hook height, governing summary
# ---------------------------------------------------------------------------

def test_top_rigging_governs_when_tension_higher() -> None:
    res = run_rigging_engine(
        EngineInput(
            load_weight_lbs=20000.0,
            bottom_legs=_pair(10000.0, 5.0, 20.0),
            top_legs=_pair(15000.0, 3.0, 12.0, prefix="top"),
        )
    )
    assert isinstance(res, EngineSuccess)
    out = res.output
    assert out.top_rigging is not None
    assert out.top_rigging.governing_tension_lbs == pytest.approx(15491.9, abs=0.1)
    s = out.governing_summary
    assert s.condition_code == "top_rigging_sling_tension"
    assert s.governing_element_id == "top-leg-1"
    assert "Top rigging governing leg" in s.reason


def test_bottom_governs_with_lighter_top() -> None:
    res = run_rigging_engine(
        EngineInput(
            load_weight_lbs=20000.0,
            bottom_legs=_pair(10000.0, 5.0, 20.0),
            top_legs=_pair(10600.0, 3.0, 12.0, prefix="top"),
        )
    )
    assert isinstance(res, EngineSuccess)
    assert res.output.top_rigging is not None
    assert res.output.top_rigging.governing_tension_lbs == pytest.approx(10947.63, abs=0.01)
    assert res.output.governing_summary.condition_code == "bottom_rigging_sling_tension"


def test_top_rigging_low_angle_rejected() -> None:
    res = run_rigging_engine(
        EngineInput(
            load_weight_lbs=20000.0,
            bottom_legs=_pair(10000.0, 5.0, 20.0),
            top_legs=_pair(10000.0, 8.0, 12.0, prefix="top"),
        )
    )
    assert isinstance(res, EngineRejection)
    assert res.reason == "sling_angle_below_minimum"
    assert "top rigging" in res.details


def test_hook_height_warnings_are_informational() -> None:
    bottom = evaluate_rigging(_pair(10000.0, 5.0, 20.0), "bottom")
    hook = evaluate_hook_height(bottom, crane=CraneLimits(max_hook_height_ft=10.0, block_clearance_ft=25.0))
    assert hook.hook_height_ft == pytest.approx(19.365, abs=0.001)
    assert hook.informational_only is True
    assert len(hook.warnings) == 2
    assert "exceeds crane maximum hook height" in hook.warnings[0]
    assert "Insufficient block or headroom clearance" in hook.warnings[1]


def test_hook_height_without_crane() -> None:
    bottom = evaluate_rigging(_pair(10000.0, 5.0, 20.0), "bottom")
    assert evaluate_hook_height(bottom).warnings == ()


def test_engine_with_crane_limits_still_succeeds() -> None:
    res = run_rigging_engine(
        EngineInput(
            load_weight_lbs=20000.0,
            bottom_legs=_pair(10000.0, 5.0, 20.0),
            crane=CraneLimits(max_hook_height_ft=10.0),
        )
    )
    assert isinstance(res, EngineSuccess)
    assert res.output.hook_height.warnings
    assert "Hook height evaluated for feasibility and clearance only." in res.output.governing_summary.reason


def test_governing_summary_text_ends_with_statement() -> None:
    res = run_rigging_engine(EngineInput(load_weight_lbs=20000.0, bottom_legs=_pair(10000.0, 5.0, 20.0)))
    assert isinstance(res, EngineSuccess)
    s = res.output.governing_summary
    assert s.severity == "governing"
    assert s.text.endswith(LIMIT_STATEMENT)
    assert s.reason.startswith("Bottom rigging governing leg: S1-leg-1")
    assert "Lateral pressure: 12.9% of total load." in s.reason


def test_governing_block_for_unmet_beam() -> None:
    bottom = evaluate_rigging(_pair(10000.0, 10.0, 15.0), "bottom")
    lat = evaluate_lateral_pressure(20000.0, bottom)
    s = finalize_governing_summary(bottom, None, lat, BeamRequirementUnmet(reason="no beam"), evaluate_hook_height(bottom))
    assert s.severity == "block"
    assert s.governing_element_id is None
    assert s.text.endswith(LIMIT_STATEMENT)


def test_engine_output_carries_disclaimer() -> None:
    res = run_rigging_engine(EngineInput(load_weight_lbs=20000.0, bottom_legs=_pair(10000.0, 5.0, 20.0)))
    assert isinstance(res, EngineSuccess)
    assert res.ok is True
    assert res.output.disclaimer == DISCLAIMER


def test_engine_deterministic() -> None:
    inp = EngineInput(
        load_weight_lbs=15000.0,
        bottom_legs=_pair(7500.0, 5.0, 8.0),
        top_legs=_pair(7500.0, 2.0, 10.0, prefix="top"),
    )
    a = run_rigging_engine(inp)
    b = run_rigging_engine(inp)
    assert isinstance(a, EngineSuccess) and isinstance(b, EngineSuccess)
    assert a.output.to_dict() == b.output.to_dict()
