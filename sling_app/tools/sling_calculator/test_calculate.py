from __future__ import annotations

import copy
import json
from typing import Any, Dict

import pytest
from pydantic import ValidationError

from .calculate import blocked, calculate_sling, engine_input_for, evaluate_request, lbs_to_metric_tons
from .constants import DISCLAIMER, LIMIT_STATEMENT
from .models import EngineSuccess
from .schema import IntakeRejection, SlingCalculationRequest, validate_request, validate_response
from .tool import scenario_a_inputs


def _req(**changes: Any) -> Dict[str, Any]:
    r = scenario_a_inputs()
    for path, value in changes.items():
        node = r
        keys = path.split("__")
        for k in keys[:-1]:
            node = node[int(k)] if isinstance(node, list) else node[k]
        last = keys[-1]
        if isinstance(node, list):
            node[int(last)] = value
        else:
            node[last] = value
    return r


def _beam_case(**hardware: Any) -> Dict[str, Any]:
    r = scenario_a_inputs()
    r["geometry"]["pick_points"] = [
        {"id": "P1", "x_ft": 0.0, "y_ft": 0.0, "z_ft": 1.0},
        {"id": "P2", "x_ft": 20.0, "y_ft": 0.0, "z_ft": 1.0},
    ]
    r["slings"][0]["length_ft"] = 15.0
    r["hardware"] = hardware
    return r


def _blocked(resp: Dict[str, Any], reason: str) -> None:
    assert resp["status"] == "invalid"
    assert resp["blocked"] is True
    assert resp["reason"] == reason
    assert resp["details"]
    assert resp["disclaimer"] == DISCLAIMER


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

def test_scenario_a_valid() -> None:
    resp = calculate_sling(scenario_a_inputs())
    assert resp["status"] == "valid"
    assert resp["blocked"] is False
    assert resp["disclaimer"] == DISCLAIMER
    assert resp["summary"] == {
        "governing_condition": "bottom_rigging_sling_tension",
        "governing_element_id": "S1-leg-1",
        "why": LIMIT_STATEMENT,
    }

    res = resp["results"]
    assert [a["angle_deg_from_horizontal"] for a in res["angles"]] == [75.5, 75.5]
    assert all(a["angle_deg_from_horizontal"] >= 60 for a in res["angles"])
    assert [(t["sling_id"], t["leg"]) for t in res["tensions"]] == [("S1", 1), ("S1", 2)]
    for t in res["tensions"]:
        assert t["tension_lbs"] == 10328
        assert t["required_wll_lbs"] == 10328
        assert t["recommended_wll_lbs"] == 15492

    assert res["weights"] == {
        "load_lbs": 20000.0,
        "rigging_lbs": 68,
        "total_lift_lbs": 20068.0,
        "total_lift_metric_tons": 9.1,
    }
    assert res["hook_height"] == {"required_ft": 32, "limit_ft": 50.0, "within_limit": True}

    hw = res["hardware"][0]
    assert hw["position"] == "bottom"
    assert hw["sling_material"] == "synthetic"
    assert hw["sling_wll_lbs"] == 12000
    assert hw["recommended_sling_wll_lbs"] == 20000
    assert hw["shackle_size"] == "7/8 in"
    assert hw["shackle_required_lbs"] == 12910
    assert hw["shackle_factor"] == 1.25

    lat = res["lateral_pressure"]
    assert lat["status"] == "mitigated-with-longer-slings"
    assert lat["lateral_percent"] == 12.91
    assert lat["recommended_sling_length_ft"] == 26.0
    assert lat["beam_required"] is False
    assert any("Use 26 ft slings" in w for w in resp["warnings"])
    assert any("block clearance" in w for w in resp["warnings"])


def test_scenario_b_low_angle() -> None:
    r = scenario_a_inputs()
    r["geometry"]["pick_points"] = [
        {"id": "P1", "x_ft": 0.0, "y_ft": 0.0, "z_ft": 1.0},
        {"id": "P2", "x_ft": 30.0, "y_ft": 0.0, "z_ft": 1.0},
    ]
    resp = calculate_sling(r)
    _blocked(resp, "sling_angle_below_minimum")
    assert "41.4" in resp["details"]


def test_scenario_c_supplied_wll_too_low() -> None:
    _blocked(calculate_sling(_req(slings__0__wll_lbs=5000.0)), "wll_exceeded")


def test_scenario_d_hook_height_limit() -> None:
    _blocked(calculate_sling(_req(hook_interface__hook_height_limit_ft=30.0)), "hook_height_exceeded")


def test_hook_height_counts_pick_point_elevation() -> None:
    r = scenario_a_inputs()
    for p in r["geometry"]["pick_points"]:
        p["z_ft"] = 40.0
    _blocked(calculate_sling(r), "hook_height_exceeded")


def test_hook_height_exactly_at_limit_is_valid() -> None:
    resp = calculate_sling(_req(hook_interface__hook_height_limit_ft=32.0))
    assert resp["status"] == "valid"
    assert resp["results"]["hook_height"]["within_limit"] is True


def test_block_clearance_warning_reaches_response() -> None:
    # engine hook height is ~19.4 ft, under the 100 ft clearance asked for
    resp = calculate_sling(_req(hook_interface={"hook_height_limit_ft": 500.0, "block_clearance_ft": 100.0}))
    assert resp["status"] == "valid"
    assert resp["results"]["hook_height"] == {"required_ft": 126, "limit_ft": 500.0, "within_limit": True}
    assert any(
        "Insufficient block or headroom clearance. Required clearance: 100 ft." == w for w in resp["warnings"]
    )


def test_default_clearance_adds_no_hook_warning() -> None:
    resp = calculate_sling(scenario_a_inputs())
    assert not any("headroom" in w or "maximum hook height" in w for w in resp["warnings"])


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------

def test_legs_pick_points_mismatch() -> None:
    _blocked(calculate_sling(_req(slings__0__legs=3)), "legs_pick_points_mismatch")


def test_validate_request_returns_tagged_rejection() -> None:
    rejected = validate_request(_req(slings__0__legs=3))
    assert isinstance(rejected, IntakeRejection)
    assert rejected.reason == "legs_pick_points_mismatch"
    assert "3 legs" in rejected.details

    assert isinstance(validate_request(scenario_a_inputs()), SlingCalculationRequest)


def test_sling_longer_than_40_ft() -> None:
    resp = calculate_sling(_req(slings__0__length_ft=45.0))
    _blocked(resp, "sling_length_exceeds_maximum")
    assert "40" in resp["details"]


@pytest.mark.parametrize(
    "change",
    [
        {"units": "metric"},
        {"load__weight_lbs": 0.0},
        {"slings__0__wll_lbs": -1.0},
        {"geometry__distances_authoritative": False},
        {"options__round_distances_up": False},
        {"slings__0__type": "rope"},
    ],
)
def test_invalid_payload(change: Dict[str, Any]) -> None:
    _blocked(calculate_sling(_req(**change)), "invalid_request_payload")


def test_unknown_field_rejected() -> None:
    r = scenario_a_inputs()
    r["load"]["color"] = "red"
    _blocked(calculate_sling(r), "invalid_request_payload")


def test_missing_section_rejected() -> None:
    r = scenario_a_inputs()
    del r["hook_interface"]
    _blocked(calculate_sling(r), "invalid_request_payload")


def test_sling_cannot_reach_pick_points() -> None:
    _blocked(calculate_sling(_req(slings__0__length_ft=4.0)), "invalid_pick_point_geometry")


def test_pick_point_under_hook_is_invalid_geometry() -> None:
    r = scenario_a_inputs()
    r["geometry"]["pick_points"] = [
        {"id": "P1", "x_ft": 0.0, "y_ft": 0.0, "z_ft": 6.0},
        {"id": "P2", "x_ft": 5.0, "y_ft": 0.0, "z_ft": 6.0},
        {"id": "P3", "x_ft": 10.0, "y_ft": 0.0, "z_ft": 6.0},
    ]
    r["slings"][0]["legs"] = 3
    resp, result = evaluate_request(r)
    _blocked(resp, "invalid_pick_point_geometry")
    assert "P2" in resp["details"]
    assert result is None
    assert engine_input_for(r) is None


def test_single_pick_point_unsupported() -> None:
    r = scenario_a_inputs()
    r["geometry"]["pick_points"] = r["geometry"]["pick_points"][:1]
    r["slings"][0]["legs"] = 1
    _blocked(calculate_sling(r), "unsupported_configuration")


def test_two_sling_assemblies_unsupported() -> None:
    r = scenario_a_inputs()
    second = copy.deepcopy(r["slings"][0])
    second["id"] = "S2"
    r["slings"].append(second)
    _blocked(calculate_sling(r), "unsupported_configuration")


def test_response_gate_rejects_unknown_reason() -> None:
    with pytest.raises(ValidationError):
        validate_response(blocked("block_clearance_insufficient", "Clearance is reported as a warning."))  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Hardware, lateral pressure, beam, top rigging
# ---------------------------------------------------------------------------

def test_supplied_shackle_too_small() -> None:
    resp = calculate_sling(_req(hardware={"shackles": [{"id": "SH1", "wll_lbs": 17000.0}, {"id": "SH2", "wll_lbs": 10000.0}]}))
    _blocked(resp, "shackle_wll_exceeded")
    assert "SH2" in resp["details"]


def test_sharp_edges_select_wire_rope() -> None:
    resp = calculate_sling(_req(load__sharp_edges_present=True))
    assert resp["status"] == "valid"
    assert {h["sling_material"] for h in resp["results"]["hardware"]} == {"wire_rope"}


def test_beam_required_but_not_supplied() -> None:
    resp = calculate_sling(_beam_case())
    _blocked(resp, "lateral_pressure_exceeded")


def test_beam_required_without_weight() -> None:
    resp = calculate_sling(_beam_case(beam={"type": "spreader_bar", "wll_lbs": 30000.0, "height_ft": 2.0}))
    _blocked(resp, "lateral_pressure_exceeded")
    assert "weight" in resp["details"].lower()


def test_beam_supplied() -> None:
    resp = calculate_sling(
        _beam_case(beam={"type": "spreader_bar", "wll_lbs": 30000.0, "weight_lbs": 1200.0, "height_ft": 2.0})
    )
    assert resp["status"] == "valid"
    res = resp["results"]
    assert res["lateral_pressure"]["status"] == "exceeds-limit"
    assert res["lateral_pressure"]["beam_required"] is True
    # 45 lb sling + 2 x 5.03 lb shackles + 1200 lb beam
    assert res["weights"]["rigging_lbs"] == 1256
    assert res["weights"]["total_lift_lbs"] == 21256.0
    assert res["hook_height"]["required_ft"] == 21
    assert any("Beam required" in w for w in resp["warnings"])


def test_top_rigging_evaluated() -> None:
    resp = calculate_sling(
        _beam_case(
            beam={"type": "lift_beam", "wll_lbs": 30000.0, "weight_lbs": 1200.0, "height_ft": 2.0},
            top_rigging={"slings": 2, "sharing_allowed": True, "length_ft": 12.0, "padeye_spacing_ft": 6.0, "wll_lbs": 20000.0},
        )
    )
    assert resp["status"] == "valid"
    res = resp["results"]
    assert [a["sling_id"] for a in res["angles"]] == ["S1", "S1", "top_rigging", "top_rigging"]
    top_t = [t for t in res["tensions"] if t["sling_id"] == "top_rigging"]
    assert [t["tension_lbs"] for t in top_t] == [10948, 10948]
    assert [h["position"] for h in res["hardware"]].count("top") == 2
    assert res["hook_height"]["required_ft"] == 32
    assert res["weights"]["rigging_lbs"] == 1299
    assert resp["summary"]["governing_condition"] == "bottom_rigging_sling_tension"


def test_top_rigging_supplied_wll_too_low() -> None:
    resp = calculate_sling(
        _beam_case(
            beam={"type": "lift_beam", "wll_lbs": 30000.0, "weight_lbs": 1200.0, "height_ft": 2.0},
            top_rigging={"slings": 2, "sharing_allowed": True, "length_ft": 12.0, "padeye_spacing_ft": 6.0, "wll_lbs": 10000.0},
        )
    )
    _blocked(resp, "top_rigging_wll_exceeded")


def test_top_rigging_low_angle() -> None:
    resp = calculate_sling(
        _req(hardware={"top_rigging": {"slings": 2, "sharing_allowed": True, "length_ft": 12.0, "padeye_spacing_ft": 16.0}})
    )
    _blocked(resp, "sling_angle_below_minimum")


def test_top_rigging_three_slings_unsupported() -> None:
    resp = calculate_sling(
        _req(hardware={"top_rigging": {"slings": 3, "sharing_allowed": True, "length_ft": 12.0, "padeye_spacing_ft": 6.0}})
    )
    _blocked(resp, "unsupported_configuration")


def test_top_rigging_without_geometry_only_adds_nothing() -> None:
    resp = calculate_sling(_req(hardware={"top_rigging": {"slings": 2, "sharing_allowed": True}}))
    assert resp["status"] == "valid"
    assert all(a["sling_id"] == "S1" for a in resp["results"]["angles"])


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------

def test_evaluate_request_returns_engine_result() -> None:
    resp, result = evaluate_request(scenario_a_inputs())
    assert resp["status"] == "valid"
    assert isinstance(result, EngineSuccess)

    resp, result = evaluate_request(_req(slings__0__legs=3))
    assert resp["blocked"] is True
    assert result is None


def test_response_deterministic() -> None:
    a = json.dumps(calculate_sling(scenario_a_inputs()), sort_keys=True)
    b = json.dumps(calculate_sling(scenario_a_inputs()), sort_keys=True)
    assert a == b


def test_metric_tons() -> None:
    assert lbs_to_metric_tons(2204.62) == 1.0
    assert lbs_to_metric_tons(20068) == 9.1
