from __future__ import annotations

import traceback
from typing import Any, Dict, Optional

from sling_app.blocks.rigging_tables import DEFAULT_TABLES, CapacityTables
from sling_app.core.schema_utils import validate_inputs
from sling_app.core.tool_base import ToolMeta

from .calc_trace import Assumption, CalcTrace, trace_engine_output, trace_leg_geometry
from .calculate import engine_input_for, evaluate_request
from .constants import CODE_BASIS, REPORT_VERSION, TOOL_ID, TOOL_VERSION
from .exports import export_all
from .logging_utils import run_logger
from .models import EngineResult, EngineSuccess
from .paths import create_run_dir, input_hash
from .schema import SlingCalculationRequest

_CONTROL_KEYS = ("__batch__", "headless")

ASSUMPTIONS = (
    Assumption(id="A1", text="Hook is located over the plan centroid of the pick points; load is shared equally by all legs."),
    Assumption(id="A2", text="All bottom legs use the same sling length; angles are measured from horizontal."),
    Assumption(id="A3", text="Bottom rigging angle must exceed 45°; top rigging angle must be at least 60°."),
    Assumption(id="A4", text="Shackles are carbon steel, sized for max(1.25 × tension, sling WLL), 1/2 ton minimum."),
    Assumption(id="A5", text="Beam weight is never estimated; when a beam is required its actual weight must be supplied."),
    Assumption(id="A6", text="Hook height is informational to the sizing; it is checked against the supplied limit only."),
)


def scenario_a_inputs() -> Dict[str, Any]:
    """Two-point pick, 20,000 lb load, 20 ft wire rope slings."""
    return {
        "units": "imperial",
        "load": {"weight_lbs": 20000.0, "cg_known": True, "sharp_edges_present": False},
        "geometry": {
            "pick_points": [
                {"id": "P1", "x_ft": 0.0, "y_ft": 0.0, "z_ft": 6.0},
                {"id": "P2", "x_ft": 10.0, "y_ft": 0.0, "z_ft": 6.0},
            ],
            "distances_authoritative": True,
        },
        "slings": [
            {"id": "S1", "type": "wire_rope", "legs": 2, "length_ft": 20.0, "wll_lbs": 30000.0, "sharing_allowed": True}
        ],
        "hardware": {"shackles": [{"id": "SH1", "wll_lbs": 17000.0}]},
        "hook_interface": {"hook_height_limit_ft": 50.0, "block_clearance_ft": 6.0},
        "options": {"auto_sling_length": False, "round_distances_up": True},
    }


def _run_summary(resp: Dict[str, Any], engine_result: Optional[EngineResult]) -> Dict[str, Any]:
    summary: Dict[str, Any] = {"status": resp["status"], "blocked": resp["blocked"]}
    if isinstance(engine_result, EngineSuccess):
        out = engine_result.output
        summary["governing_condition"] = out.governing_summary.governing_condition
        summary["governing_leg"] = out.governing_summary.governing_element_id
        summary["lateral_pressure_status"] = out.lateral_pressure.status
    if resp["blocked"]:
        summary["reason"] = resp["reason"]
        summary["details"] = resp["details"]
    else:
        summary["total_lift_lbs"] = resp["results"]["weights"]["total_lift_lbs"]
        summary["required_hook_height_ft"] = resp["results"]["hook_height"]["required_ft"]
    return summary


class SlingCalculatorTool:
    """Below-the-hook sling calculator.

    run_batch() validates, evaluates and writes the calc package; run() is the
    host entry point and always runs headless.
    """

    meta = ToolMeta(
        id=TOOL_ID,
        name="Sling Calculator",
        category="Rigging",
        version=TOOL_VERSION,
        description="Sling angle, tension, sling/shackle selection, lateral pressure and hook height for below-the-hook lifts.",
    )

    InputModel = SlingCalculationRequest

    def __init__(self, tables: CapacityTables = DEFAULT_TABLES) -> None:
        self.tables = tables

    def default_inputs(self) -> Dict[str, Any]:
        return scenario_a_inputs()

    def _trace(
        self, raw: Dict[str, Any], norm: Dict[str, Any], ih: str, engine_result: Optional[EngineResult]
    ) -> CalcTrace:
        trace = CalcTrace.new(
            tool_id=self.meta.id,
            tool_version=self.meta.version,
            report_version=REPORT_VERSION,
            code_basis=CODE_BASIS,
            inputs=norm,
            input_hash=ih,
        )
        trace.assumptions.extend(ASSUMPTIONS)
        trace.tables["capacity_tables"] = self.tables.as_dict()
        if isinstance(engine_result, EngineSuccess):
            trace_engine_output(trace, engine_result.output)
        elif engine_result is not None:
            # engine stopped early; show the leg geometry it got through
            engine_input = engine_input_for(raw)
            if engine_input is not None:
                trace_leg_geometry(trace, engine_input)
        return trace

    def run_batch(self, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """Evaluate one request and export the calc package into a new run dir.

        Blocked lifts are a normal outcome (ok=True, response.blocked=True).
        ok=False means the run itself failed; the traceback is in run.log.
        """
        raw = {k: v for k, v in inputs.items() if k not in _CONTROL_KEYS}
        norm, _err = validate_inputs(self.InputModel, raw)
        norm = norm or raw
        ih = input_hash(norm)
        run_dir = create_run_dir(self.meta.id, ih)
        result: Dict[str, Any] = {"ok": True, "run_dir": str(run_dir), "input_hash": ih}

        with run_logger(run_dir, self.meta.id, ih) as log:
            try:
                log.info("Starting sling calculation run")
                log.debug(f"Inputs: {raw}")

                resp, engine_result = evaluate_request(raw, self.tables)
                trace = self._trace(raw, norm, ih, engine_result)
                trace.summary = _run_summary(resp, engine_result)

                result["response"] = resp
                paths = export_all(trace, run_dir, result)
                result["outputs"] = {k: str(v) for k, v in paths.items()}

                log.info(f"Run complete: {resp['status']}" + (f" ({resp['reason']})" if resp["blocked"] else ""))
                return result

            except Exception as e:
                log.exception("Sling calculation run failed")
                return {**result, "ok": False, "error": str(e), "traceback": traceback.format_exc()}

    def run(self, inputs: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Host entry point. No interactive UI ships with this tool, so this is a batch run."""
        return self.run_batch(inputs if inputs is not None else self.default_inputs())


TOOL = SlingCalculatorTool()
