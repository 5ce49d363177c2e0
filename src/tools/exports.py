"""
src/tools/exports.py - export an accepted answer in JSON, CSV, and PDF formats.

Provides:
- export_json(output, path): write the CopilotOutput as JSON
- export_metrics_csv(output, path): write the metric cards to CSV
- export_insight_pdf(question, output, path): render question + answer to PDF (ReportLab)

Notes:
- Exports only ever take a validated CopilotOutput, so every field is already trimmed and bounded.
- The PDF is a plain one-pager: answer, metrics table, actions, sources, warnings.
"""


import csv
import json
from typing import List
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet
from xml.sax.saxutils import escape

from orchestrator.output_schema import CopilotOutput


METRIC_COLUMNS = ["label", "value", "unit", "trend", "delta", "note"]


# --- JSON ----------------------------------------------------------------------
def export_json(output: CopilotOutput, path: str) -> str:
    """
    Export the answer exactly as the API would return it.

    Args:
        output: Validated CopilotOutput
        path: file path for saving

    Returns: path
    """

    with open(path, "w", encoding="utf-8") as f:
        json.dump(output.model_dump(mode="json"), f, indent=2, ensure_ascii=False)

    return path


# --- CSV -----------------------------------------------------------------------
def export_metrics_csv(output: CopilotOutput, path: str) -> str:
    """
    Export the metric cards to CSV, one row per card. Missing optional fields are blank.

    Raises:
        ValueError if the answer has no metrics.
    """

    if not output.metrics:
        raise ValueError("No metrics to export.")

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=METRIC_COLUMNS)
        writer.writeheader()
        for m in output.metrics:
            row = m.model_dump(mode="json")
            writer.writerow({k: row.get(k) or "" for k in METRIC_COLUMNS})

    return path


# --- PDF -----------------------------------------------------------------------
def _bullets(items: List[str], style) -> List[Paragraph]:

    return [Paragraph(f"&bull; {escape(i)}", style) for i in items]

def export_insight_pdf(question: str, output: CopilotOutput, path: str) -> str:
    """
    Export a single insight to PDF (minimal layout).

    Args:
        question: The seller question the answer belongs to
        output: Validated CopilotOutput
        path: file path for saving

    Returns: path
    """

    doc = SimpleDocTemplate(path, pagesize=A4)
    styles = getSampleStyleSheet()
    elements = []

    elements.append(Paragraph("<b>Seller Ops Insight</b>", styles["Title"]))
    elements.append(Paragraph(f"Question: {escape(question)}", styles["Normal"]))
    elements.append(Spacer(1, 12))

    # Markdown is rendered as plain paragraphs, one per line
    for line in output.answer_markdown.splitlines():
        if line.strip():
            elements.append(Paragraph(escape(line), styles["Normal"]))
    elements.append(Spacer(1, 12))

    if output.metrics:
        data = [["Metric", "Value", "Trend", "Delta"]]
        for m in output.metrics:
            value = f"{m.value} {m.unit}" if m.unit else m.value
            data.append([m.label, value, m.trend or "", m.delta or ""])
        table = Table(data, colWidths=[180, 120, 60, 120])
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
        ]))
        elements.append(table)
        elements.append(Spacer(1, 12))

    if output.actions:
        elements.append(Paragraph("Recommended actions", styles["Heading2"]))
        for a in output.actions:
            elements.append(Paragraph(f"<b>{escape(a.title)}</b> (confidence: {a.confidence})", styles["Normal"]))
            elements.append(Paragraph(escape(a.rationale), styles["Normal"]))
            elements.append(Paragraph(f"Expected impact: {escape(a.expected_impact)}", styles["Normal"]))
            elements.extend(_bullets(a.assumptions, styles["Normal"]))
            elements.append(Spacer(1, 6))

    elements.append(Paragraph("Sources", styles["Heading2"]))
    elements.extend(_bullets([f"[{s.type}] {s.detail}" for s in output.sources], styles["Normal"]))

    if output.warnings:
        elements.append(Paragraph("Warnings", styles["Heading2"]))
        elements.extend(_bullets(output.warnings, styles["Normal"]))

    doc.build(elements)

    return path
