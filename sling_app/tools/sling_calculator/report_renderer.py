from __future__ import annotations

import html
from typing import Any, List

from .calc_trace import CalcStep, CalcTrace
from .constants import DISCLAIMER

CSS = """
@page { size: letter; margin: 0.6in; }
body { font-family: Arial, Helvetica, sans-serif; font-size: 10.5pt; color: #111; }
h1 { font-size: 16pt; margin: 0 0 6px 0; }
h2 { font-size: 12.5pt; margin: 16px 0 6px 0; border-bottom: 1px solid #ccc; padding-bottom: 2px; }
h3 { font-size: 11pt; margin: 12px 0 4px 0; }
.meta { font-size: 9pt; color: #333; }
.box { border: 1px solid #999; padding: 8px; margin: 6px 0; }
.eq { font-family: "Courier New", monospace; background: #f7f7f7; padding: 6px; white-space: pre-wrap; }
table { border-collapse: collapse; width: 100%; margin: 6px 0 10px 0; }
th, td { border: 1px solid #bbb; padding: 4px 6px; vertical-align: top; }
th { background: #f1f1f1; text-align: left; }
.pass { color: #0a6; font-weight: bold; }
.fail { color: #b00; font-weight: bold; }
.blocked { border: 2px solid #b00; }
"""


def _h(s: Any) -> str:
    return html.escape(str(s))


def _num(v: Any) -> str:
    return f"{v:,.4g}" if isinstance(v, float) else str(v)


def _step_html(s: CalcStep) -> List[str]:
    verdict = "" if not s.checks else (" <span class='pass'>PASS</span>" if s.passed else " <span class='fail'>FAIL</span>")
    parts = [f"<h3>{_h(s.title)}{verdict}</h3>", "<div class='box'>"]
    parts.append(f"<div class='eq'>{_h(s.formula)}\n{_h(s.substituted)}\n{_h(s.symbol)} = {_h(_num(s.reported))} {_h(s.units)}</div>")

    parts.append("<table><tr><th>Symbol</th><th>Description</th><th>Value</th><th>Units</th><th>Source</th></tr>")
    for t in s.terms:
        parts.append(
            f"<tr><td>{_h(t.symbol)}</td><td>{_h(t.description)}</td><td>{_h(_num(t.value))}</td>"
            f"<td>{_h(t.units)}</td><td>{_h(t.source)}</td></tr>"
        )
    parts.append("</table>")
    parts.append(
        f"<div class='meta'>Step {_h(s.id)}. Full precision {_h(s.value)}; reported to {_h(s.rounding)}. "
        f"Basis: {_h(s.basis)}.</div>"
    )

    if s.checks:
        parts.append("<table><tr><th>Check</th><th>Value</th><th></th><th>Limit</th><th>Status</th></tr>")
        for c in s.checks:
            cls = "pass" if c.passed else "fail"
            parts.append(
                f"<tr><td>{_h(c.label)}</td><td>{c.value:.2f}</td><td>{_h(c.comparison)}</td>"
                f"<td>{c.limit:.2f}</td><td class='{cls}'>{c.status}</td></tr>"
            )
        parts.append("</table>")
    parts.append("</div>")
    return parts


def render_report_html(trace: CalcTrace) -> str:
    meta = trace.meta
    summary = trace.summary or {}
    is_blocked = bool(summary.get("blocked"))

    parts: List[str] = ["<!doctype html><html><head><meta charset='utf-8'>"]
    parts.append(f"<title>Sling Calculator - {_h(meta.input_hash)}</title>")
    parts.append(f"<style>{CSS}</style></head><body>")
    parts.append("<h1>Sling Calculator - Calculation Package</h1>")
    parts.append(
        "<div class='meta'>"
        f"<div><b>Tool:</b> {_h(meta.tool_id)} v{_h(meta.tool_version)} (report {_h(meta.report_version)})</div>"
        f"<div><b>Timestamp:</b> {_h(meta.timestamp)}</div>"
        f"<div><b>Units:</b> {_h(meta.units_system)}</div>"
        f"<div><b>Basis:</b> {_h(meta.code_basis or '-')}</div>"
        f"<div><b>Input hash:</b> {_h(meta.input_hash)}</div>"
        "</div>"
    )

    headline = f"BLOCKED: {summary.get('reason', '')}" if is_blocked else "LIFT VALID"
    parts.append("<h2>Verdict</h2>")
    parts.append(f"<div class='box{' blocked' if is_blocked else ''}'>")
    parts.append(f"<div class='{'fail' if is_blocked else 'pass'}'>{_h(headline)}</div>")
    for k, v in summary.items():
        parts.append(f"<div><b>{_h(k)}:</b> {_h(v)}</div>")
    parts.append("</div>")

    parts.append("<h2>Inputs</h2>")
    parts.append("<table><tr><th>Field</th><th>Value</th><th>Units</th></tr>")
    for i in trace.inputs:
        parts.append(f"<tr><td>{_h(i.path)}</td><td>{_h(i.value)}</td><td>{_h(i.units)}</td></tr>")
    parts.append("</table>")

    parts.append("<h2>Assumptions &amp; Limitations</h2>")
    if trace.assumptions:
        parts.append("<ul>")
        for a in trace.assumptions:
            parts.append(f"<li><b>{_h(a.id)}</b>: {_h(a.text)}</li>")
        parts.append("</ul>")
    else:
        parts.append("<div class='box'>None.</div>")

    parts.append("<h2>Calculations</h2>")
    if not trace.steps:
        parts.append("<div class='box'>No calculation steps: the request was rejected before sizing.</div>")
    section = None
    for s in trace.steps:
        if s.section != section:
            section = s.section
            parts.append(f"<h2>{_h(section)}</h2>")
        parts.extend(_step_html(s))

    alts = trace.tables.get("mitigation_alternatives") or []
    if alts:
        parts.append("<h2>Longer Sling Alternatives</h2>")
        parts.append("<table><tr><th>L [ft]</th><th>Rise [ft]</th><th>Angle [deg]</th><th>T [lb]</th><th>Lateral [%]</th></tr>")
        for a in alts:
            parts.append(
                f"<tr><td>{a['sling_length_ft']:g}</td><td>{a['vertical_rise_ft']:.2f}</td><td>{a['angle_deg']:.1f}</td>"
                f"<td>{a['tension_lbs']:.0f}</td><td>{a['lateral_percent']:.2f}</td></tr>"
            )
        parts.append("</table>")

    parts.append(f"<div class='box'><b>{_h(DISCLAIMER)}</b></div>")
    parts.append("</body></html>")
    return "".join(parts)
