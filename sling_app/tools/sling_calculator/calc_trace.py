"""
Calculation record for one sling calculator run.

Each leg contributes angle, tension and shackle steps; the lift as a whole
contributes lateral pressure, the longer-sling mitigation (if any) and the
rigging height. Every step stores the formula, the values substituted into
it, the full-precision result, the reported (rounded) result and the
pass/fail checks made against it. The HTML, PDF, Excel and JSON exports are
all rendered from this record.
"""
from __future__ import annotations

import json
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .constants import (
    BOTTOM_MIN_ANGLE_DEG,
    MAX_LATERAL_PERCENT,
    RECOMMENDED_WLL_FACTOR,
    SHACKLE_CONNECTION_FACTOR,
    TOP_MIN_ANGLE_DEG,
)
from .forces import lateral_force_lbs, lateral_percent, sling_tension_lbs
from .geometry import sling_angle_deg
from .models import EngineInput, EngineOutput, LegResult, RiggingResult
from .paths import input_hash as compute_input_hash

_UNIT_SUFFIXES = (("_lbs", "lb"), ("_ft", "ft"), ("_deg", "deg"))


@dataclass(frozen=True)
class TraceMeta:
    tool_id: str
    tool_version: str
    report_version: str
    timestamp: str
    input_hash: str
    units_system: str = "imperial"
    code_basis: Optional[str] = None


@dataclass(frozen=True)
class TraceInput:
    path: str  # "geometry.pick_points[0].x_ft"
    value: Any
    units: str

    @property
    def label(self) -> str:
        return self.path.rsplit(".", 1)[-1].replace("_", " ")


@dataclass(frozen=True)
class Assumption:
    id: str
    text: str


@dataclass(frozen=True)
class Term:
    """A named quantity substituted into a step's formula."""

    symbol: str
    description: str
    value: float
    units: str
    source: str = "derived"  # derived | table | user


@dataclass(frozen=True)
class Check:
    label: str
    value: float
    comparison: str  # "<=", ">=" or ">"
    limit: float

    @property
    def passed(self) -> bool:
        if self.comparison == "<=":
            return self.value <= self.limit
        if self.comparison == ">=":
            return self.value >= self.limit
        if self.comparison == ">":
            return self.value > self.limit
        raise ValueError(f"Unsupported comparison {self.comparison!r}")

    @property
    def status(self) -> str:
        return "PASS" if self.passed else "FAIL"

    def to_dict(self) -> Dict[str, Any]:
        return {**asdict(self), "status": self.status}


@dataclass(frozen=True)
class CalcStep:
    id: str
    section: str
    title: str
    symbol: str
    formula: str
    substituted: str
    terms: List[Term]
    value: float
    reported: float
    units: str
    rounding: str  # "0.1", "0.01" or "ceil"
    basis: str
    checks: List[Check] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["checks"] = [c.to_dict() for c in self.checks]
        return d


@dataclass
class CalcTrace:
    meta: TraceMeta
    inputs: List[TraceInput] = field(default_factory=list)
    assumptions: List[Assumption] = field(default_factory=list)
    steps: List[CalcStep] = field(default_factory=list)
    tables: Dict[str, Any] = field(default_factory=dict)
    summary: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def new(
        cls,
        *,
        tool_id: str,
        tool_version: str,
        inputs: Dict[str, Any],
        report_version: str = "1.0",
        input_hash: Optional[str] = None,
        code_basis: Optional[str] = None,
    ) -> "CalcTrace":
        meta = TraceMeta(
            tool_id=tool_id,
            tool_version=tool_version,
            report_version=report_version,
            timestamp=datetime.now().isoformat(timespec="seconds"),
            input_hash=input_hash or compute_input_hash(inputs),
            code_basis=code_basis,
        )
        rows = [TraceInput(path=k, value=v, units=_units_for(k)) for k, v in flatten_inputs(inputs).items()]
        return cls(meta=meta, inputs=rows)

    def failed_checks(self) -> List[Check]:
        return [c for s in self.steps for c in s.checks if not c.passed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "meta": asdict(self.meta),
            "inputs": [{"path": i.path, "label": i.label, "value": i.value, "units": i.units} for i in self.inputs],
            "assumptions": [asdict(a) for a in self.assumptions],
            "steps": [s.to_dict() for s in self.steps],
            "tables": self.tables,
            "summary": self.summary,
        }


def dump_trace_json(trace: CalcTrace, path: Path) -> None:
    path.write_text(json.dumps(trace.to_dict(), indent=2, sort_keys=True, default=str), encoding="utf-8")


def flatten_inputs(inputs: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Nested request -> {"load.weight_lbs": ..., "geometry.pick_points[0].x_ft": ...}."""
    out: Dict[str, Any] = {}
    for k in sorted(inputs):
        v = inputs[k]
        key = f"{prefix}{k}"
        if isinstance(v, dict):
            out.update(flatten_inputs(v, key + "."))
        elif isinstance(v, list) and v and all(isinstance(x, dict) for x in v):
            for i, item in enumerate(v):
                out.update(flatten_inputs(item, f"{key}[{i}]."))
        else:
            out[key] = v
    return out


def _units_for(key: str) -> str:
    for suffix, units in _UNIT_SUFFIXES:
        if key.endswith(suffix):
            return units
    return "-"


def _fmt(value: float, units: str) -> str:
    text = f"{value:,.2f}".rstrip("0").rstrip(".") if abs(value) >= 1 else f"{value:.4g}"
    return f"{text} {units}" if units not in ("", "-") else text


def report_value(value: float, rounding: str) -> float:
    if rounding == "ceil":
        return float(math.ceil(value))
    try:
        step = float(rounding)
    except ValueError:
        raise ValueError(f"Unsupported rounding {rounding!r}") from None
    return round(value, max(0, -int(math.floor(math.log10(step)))))


def compute_step(
    trace: CalcTrace,
    *,
    id: str,
    section: str,
    title: str,
    symbol: str,
    formula: str,
    terms: Sequence[Term],
    value: float,
    units: str,
    rounding: str,
    basis: str,
    checks: Sequence[Check] = (),
) -> CalcStep:
    """Record one step. Terms are substituted into the formula's right-hand side by symbol."""
    if not id or not section:
        raise ValueError("compute_step requires an id and a section.")

    lhs, _, rhs = formula.partition("=")
    # longest symbol first so "W_tot" is not clobbered by "W"
    for t in sorted(terms, key=lambda t: len(t.symbol), reverse=True):
        rhs = rhs.replace(t.symbol, _fmt(t.value, t.units))

    step = CalcStep(
        id=id,
        section=section,
        title=title,
        symbol=symbol,
        formula=formula,
        substituted=f"{lhs}={rhs}",
        terms=list(terms),
        value=float(value),
        reported=report_value(float(value), rounding),
        units=units,
        rounding=rounding,
        basis=basis,
        checks=list(checks),
    )
    trace.steps.append(step)
    return step


# ---------------------------------------------------------------------------
# Engine output -> steps
# ---------------------------------------------------------------------------

def _trace_angle(
    trace: CalcTrace,
    section: str,
    leg_id: str,
    rise_ft: float,
    offset_ft: float,
    min_angle: float,
    inclusive: bool,
) -> float:
    theta = sling_angle_deg(rise_ft, offset_ft)
    compute_step(
        trace,
        id=f"{leg_id}.angle",
        section=section,
        title=f"Sling angle, {leg_id}",
        symbol="θ",
        formula="θ = atan(r_v / h_o)",
        terms=[
            Term("r_v", "Vertical rise", rise_ft, "ft"),
            Term("h_o", "Horizontal offset", offset_ft, "ft"),
        ],
        value=theta,
        units="deg",
        rounding="0.1",
        basis=f"Minimum sling angle {'>=' if inclusive else '>'} {min_angle:g}°",
        checks=[Check("Sling angle vs minimum", theta, ">=" if inclusive else ">", min_angle)],
    )
    return theta


def _trace_leg(trace: CalcTrace, section: str, leg: LegResult, min_angle: float, inclusive: bool) -> None:
    lid = leg.leg_id
    _trace_angle(trace, section, lid, leg.vertical_rise_ft, leg.horizontal_offset_ft, min_angle, inclusive)

    t = sling_tension_lbs(leg.load_share_lbs, leg.angle_deg)
    sl = leg.sling
    compute_step(
        trace,
        id=f"{lid}.tension",
        section=section,
        title=f"Sling tension, {lid}",
        symbol="T",
        formula="T = W / sin(θ)",
        terms=[
            Term("W", "Load share", leg.load_share_lbs, "lb"),
            Term("θ", "Sling angle", leg.angle_deg, "deg"),
        ],
        value=t,
        units="lb",
        rounding="ceil",
        basis="Statics, symmetric leg",
        checks=[
            Check(f"{sl.material} {sl.selected_size} WLL", t, "<=", sl.minimum_wll_lbs),
            Check(f"{sl.material} {sl.recommended_size} WLL (recommended)", t * RECOMMENDED_WLL_FACTOR, "<=", sl.recommended_wll_lbs),
        ],
    )

    sh = leg.shackle
    compute_step(
        trace,
        id=f"{lid}.shackle",
        section=section,
        title=f"Shackle requirement, {lid}",
        symbol="S_req",
        formula="S_req = max(1.25·T, WLL_s)",
        terms=[
            Term("T", "Leg tension", leg.tension_lbs, "lb"),
            Term("WLL_s", "Selected sling WLL", sl.minimum_wll_lbs, "lb", "table"),
        ],
        value=max(leg.tension_lbs * SHACKLE_CONNECTION_FACTOR, sl.minimum_wll_lbs),
        units="lb",
        rounding="ceil",
        basis=f"Carbon steel shackle {sh.size} ({sh.tonnage:g} t), sized from {sh.sized_from}",
        checks=[Check(f"Shackle {sh.size} WLL", sh.required_capacity_lbs, "<=", sh.wll_lbs)],
    )


def _trace_rigging(trace: CalcTrace, rigging: RiggingResult) -> None:
    top = rigging.position == "top"
    section = "Top rigging" if top else "Bottom rigging"
    min_angle = TOP_MIN_ANGLE_DEG if top else BOTTOM_MIN_ANGLE_DEG
    for leg in rigging.legs:
        _trace_leg(trace, section, leg, min_angle, inclusive=top)


def trace_engine_output(trace: CalcTrace, out: EngineOutput) -> None:
    """Append the audit steps for a successful engine evaluation."""
    _trace_rigging(trace, out.bottom_rigging)

    leg = out.bottom_rigging.governing_leg()
    total = out.input.load_weight_lbs
    force = lateral_force_lbs(leg.tension_lbs, leg.angle_deg)
    compute_step(
        trace,
        id="lateral.force",
        section="Lateral pressure",
        title="Lateral force, governing bottom leg",
        symbol="F_h",
        formula="F_h = T · cos(θ)",
        terms=[Term("T", "Leg tension", leg.tension_lbs, "lb"), Term("θ", "Sling angle", leg.angle_deg, "deg")],
        value=force,
        units="lb",
        rounding="ceil",
        basis="Statics",
    )
    pct = lateral_percent(force, total)
    compute_step(
        trace,
        id="lateral.percent",
        section="Lateral pressure",
        title="Lateral pressure as percent of total load",
        symbol="p",
        formula="p = F_h / W_tot · 100",
        terms=[Term("F_h", "Lateral force", force, "lb"), Term("W_tot", "Total load", total, "lb", "user")],
        value=pct,
        units="%",
        rounding="0.01",
        basis=f"Lateral pressure <= {MAX_LATERAL_PERCENT:g}%",
        checks=[Check("Lateral pressure", pct, "<=", MAX_LATERAL_PERCENT)],
    )

    lat = out.lateral_pressure
    trace.tables["mitigation_alternatives"] = [asdict(a) for a in lat.evaluated_alternatives]
    alt = lat.selected_alternative
    if alt is not None:
        compute_step(
            trace,
            id="lateral.mitigated",
            section="Lateral pressure",
            title=f"Longer slings, L = {alt.sling_length_ft:g} ft",
            symbol="p_L",
            formula="p_L = W·cot(θ_L) / W_tot · 100",
            terms=[
                Term("W_tot", "Total load", total, "lb", "user"),
                Term("W", "Load share", leg.load_share_lbs, "lb"),
                Term("θ_L", "Sling angle at L", alt.angle_deg, "deg"),
            ],
            value=alt.lateral_percent,
            units="%",
            rounding="0.01",
            basis="Whole-foot sling lengths up to 40 ft",
            checks=[Check("Lateral pressure", alt.lateral_percent, "<=", MAX_LATERAL_PERCENT)],
        )

    if out.top_rigging is not None:
        _trace_rigging(trace, out.top_rigging)

    beam_h = out.input.beam.height_ft if out.input.beam is not None else 0.0
    top_r = out.top_rigging.governing_leg().vertical_rise_ft if out.top_rigging is not None else 0.0
    compute_step(
        trace,
        id="hook.height",
        section="Hook height",
        title="Rigging height above pick points (informational)",
        symbol="H",
        formula="H = r_b + h_beam + r_t",
        terms=[
            Term("r_b", "Bottom rise", leg.vertical_rise_ft, "ft"),
            Term("h_beam", "Beam height", beam_h, "ft", "user"),
            Term("r_t", "Top rise", top_r, "ft"),
        ],
        value=out.hook_height.hook_height_ft,
        units="ft",
        rounding="ceil",
        basis="Informational only",
    )


def trace_leg_geometry(trace: CalcTrace, engine_input: EngineInput) -> None:
    """
    Steps for a lift the engine turned away: every leg angle against its
    minimum, plus the statics tension of legs whose angle passes. No sizing.
    """
    groups = [("Bottom rigging", engine_input.bottom_legs, BOTTOM_MIN_ANGLE_DEG, False)]
    if engine_input.top_legs:
        groups.append(("Top rigging", engine_input.top_legs, TOP_MIN_ANGLE_DEG, True))
    for section, legs, min_angle, inclusive in groups:
        for leg in legs:
            theta = _trace_angle(
                trace, section, leg.id, leg.vertical_rise_ft, leg.horizontal_offset_ft, min_angle, inclusive
            )
            if not (theta >= min_angle if inclusive else theta > min_angle):
                continue
            compute_step(
                trace,
                id=f"{leg.id}.tension",
                section=section,
                title=f"Sling tension, {leg.id}",
                symbol="T",
                formula="T = W / sin(θ)",
                terms=[
                    Term("W", "Load share", leg.load_share_lbs, "lb"),
                    Term("θ", "Sling angle", theta, "deg"),
                ],
                value=sling_tension_lbs(leg.load_share_lbs, theta),
                units="lb",
                rounding="ceil",
                basis="Statics, symmetric leg",
            )
