from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .calc_trace import CalcTrace, dump_trace_json
from .constants import DISCLAIMER
from .report_renderer import render_report_html

_GRID = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
    ]
)


def _xl(v: Any) -> Any:
    if isinstance(v, (dict, list, tuple)):
        return json.dumps(v, ensure_ascii=False)
    return v


def _sheet(wb: Workbook, title: str, header: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
    ws = wb.create_sheet(title)
    ws.append(list(header))
    for c in ws[1]:
        c.font = Font(bold=True)
    for r in rows:
        ws.append([_xl(v) for v in r])
    for i, col in enumerate(ws.columns, start=1):
        width = max(len(str(c.value)) if c.value is not None else 0 for c in col)
        ws.column_dimensions[get_column_letter(i)].width = min(80, max(10, width + 2))
    ws.freeze_panes = "A2"


def export_html(trace: CalcTrace, out_dir: Path) -> Path:
    p = out_dir / "report.html"
    p.write_text(render_report_html(trace), encoding="utf-8")
    return p


def export_pdf(trace: CalcTrace, out_dir: Path) -> Path:
    """One-page style summary: verdict, leg results and every check. report.html has the full working."""
    p = out_dir / "report.pdf"
    doc = SimpleDocTemplate(
        str(p),
        pagesize=letter,
        leftMargin=0.7 * inch,
        rightMargin=0.7 * inch,
        topMargin=0.7 * inch,
        bottomMargin=0.7 * inch,
        title=f"Sling Calculator {trace.meta.input_hash}",
    )
    styles = getSampleStyleSheet()
    meta = trace.meta
    story: List[Any] = [
        Paragraph("Sling Calculator - Calculation Summary", styles["Title"]),
        Paragraph(
            f"{meta.tool_id} v{meta.tool_version} | input hash {meta.input_hash} | {meta.timestamp}",
            styles["Normal"],
        ),
        Spacer(1, 0.15 * inch),
        Paragraph("Verdict", styles["Heading2"]),
    ]

    summary_rows: List[List[str]] = [["Item", "Value"]]
    summary_rows += [[str(k), str(v)] for k, v in trace.summary.items()]
    t = Table(summary_rows, colWidths=[2.2 * inch, 4.6 * inch])
    t.setStyle(_GRID)
    story += [t, Spacer(1, 0.2 * inch)]

    story.append(Paragraph("Steps and checks", styles["Heading2"]))
    if trace.steps:
        rows: List[List[str]] = [["Step", "Result", "Check", "Status"]]
        for s in trace.steps:
            result = f"{s.symbol} = {s.reported:g} {s.units}"
            if not s.checks:
                rows.append([s.id, result, "-", "-"])
            for c in s.checks:
                rows.append([s.id, result, f"{c.label}: {c.value:.1f} {c.comparison} {c.limit:.1f}", c.status])
        t2 = Table(rows, colWidths=[1.5 * inch, 1.4 * inch, 3.2 * inch, 0.7 * inch], repeatRows=1)
        t2.setStyle(_GRID)
        story.append(t2)
    else:
        story.append(Paragraph("Request rejected before sizing; no calculation steps.", styles["Normal"]))

    story += [Spacer(1, 0.2 * inch), Paragraph(DISCLAIMER, styles["Italic"])]
    doc.build(story)
    return p


def export_excel(trace: CalcTrace, out_dir: Path, results: Dict[str, Any]) -> Path:
    wb = Workbook()
    wb.remove(wb.active)

    _sheet(wb, "Inputs", ["field", "value", "units"], ((i.path, i.value, i.units) for i in trace.inputs))
    _sheet(wb, "Assumptions", ["id", "text"], ((a.id, a.text) for a in trace.assumptions))
    _sheet(
        wb,
        "Calcs",
        ["id", "section", "title", "formula", "substituted", "value", "reported", "units", "rounding", "basis", "status"],
        (
            (s.id, s.section, s.title, s.formula, s.substituted, s.value, s.reported, s.units, s.rounding, s.basis,
             ("PASS" if s.passed else "FAIL") if s.checks else "")
            for s in trace.steps
        ),
    )
    _sheet(
        wb,
        "Checks",
        ["step", "check", "value", "comparison", "limit", "status"],
        ((s.id, c.label, c.value, c.comparison, c.limit, c.status) for s in trace.steps for c in s.checks),
    )
    alts = trace.tables.get("mitigation_alternatives") or []
    _sheet(
        wb,
        "Alternatives",
        ["sling_length_ft", "vertical_rise_ft", "angle_deg", "tension_lbs", "lateral_percent"],
        ((a["sling_length_ft"], a["vertical_rise_ft"], a["angle_deg"], a["tension_lbs"], a["lateral_percent"]) for a in alts),
    )
    _sheet(wb, "Results", ["key", "value"], results.items())

    p = out_dir / "results.xlsx"
    wb.save(p)
    return p


def export_json(trace: CalcTrace, out_dir: Path, results: Dict[str, Any]) -> Dict[str, Path]:
    trace_path = out_dir / "calc_trace.json"
    dump_trace_json(trace, trace_path)

    results_path = out_dir / "results.json"
    results_path.write_text(json.dumps(results, indent=2, ensure_ascii=False), encoding="utf-8")
    return {"calc_trace": trace_path, "results": results_path}


def export_all(trace: CalcTrace, out_dir: Path, results: Dict[str, Any]) -> Dict[str, Path]:
    """Write the calc package into out_dir and return the written paths by kind."""
    outputs: Dict[str, Path] = {"html": export_html(trace, out_dir), "pdf": export_pdf(trace, out_dir)}
    outputs.update(export_json(trace, out_dir, results))
    outputs["excel"] = export_excel(trace, out_dir, results)
    return outputs
