"""
src/copilot_app.py

Local demo UI: ask a question, toggle Neighborhood Context, read the answer.
"""


import json
import tempfile
import gradio as gr
from pathlib import Path
from typing import Optional, Tuple

from copilot_config import configure_logging, load_settings
from context.loader import load_business_data
from orchestrator import router
from orchestrator.errors import AgentError
from orchestrator.llm_openai import OpenAIProvider
from orchestrator.output_schema import CopilotOutput
from orchestrator.registry import ToolRegistry
from tools.exports import export_insight_pdf


APP_TITLE = "Seller Ops Copilot (Local Demo)"
APP_DESC = (
    "Ask about your café in plain English, e.g. "
    "'How were sales this week?' or 'Which items are running low?'. "
    "Turn on Neighborhood Context to let the assistant look at weather, events and reviews."
)
TREND_ARROWS = {"up": "▲", "down": "▼", "flat": "▬"}


def render_markdown(output: CopilotOutput) -> str:
    """Lay the structured answer out as one markdown document."""

    parts = [output.answer_markdown]

    if output.metrics:
        rows = ["| Metric | Value | Trend | Delta |", "|---|---|---|---|"]
        for m in output.metrics:
            value = f"{m.value} {m.unit}" if m.unit else m.value
            rows.append(f"| {m.label} | {value} | {TREND_ARROWS.get(m.trend, '')} | {m.delta or ''} |")
        parts.append("\n".join(rows))

    if output.actions:
        lines = ["### Actions"]
        for a in output.actions:
            lines.append(f"- **{a.title}** ({a.confidence} confidence): {a.rationale} _Impact: {a.expected_impact}_")
            lines.extend(f"  - assumes {x}" for x in a.assumptions)
        parts.append("\n".join(lines))

    if output.warnings:
        parts.append("\n".join(["### Warnings"] + [f"- ⚠️ {w}" for w in output.warnings]))

    parts.append("\n".join(["### Sources"] + [f"- `{s.type}` {s.detail}" for s in output.sources]))

    if output.followups:
        parts.append("\n".join(["### You could also ask"] + [f"- {f}" for f in output.followups]))

    return "\n\n".join(parts)


def app():
    settings = load_settings()
    registry = ToolRegistry(load_business_data(settings.data_dir))
    provider = OpenAIProvider(model=settings.model, temperature=settings.temperature)

    async def handle_question(question: str, neighborhood: bool) -> Tuple[str, str, Optional[str]]:
        """
        Run the orchestrator and return (markdown, raw JSON, pdf path).
        Fatal agent errors are shown inline instead of crashing the app.
        """

        if not (question or "").strip():
            return "Please type a question.", "", None

        try:
            result = await router.run(
                question,
                neighborhood_context_enabled=neighborhood,
                provider=provider,
                registry=registry,
                settings=settings,
            )
        except AgentError as e:
            return f"**Something went wrong:** {e}", json.dumps({"error": str(e)}, indent=2), None

        pdf_path = str(Path(tempfile.mkdtemp()) / "insight.pdf")
        export_insight_pdf(question, result.output, pdf_path)

        raw = json.dumps(result.output.model_dump(mode="json", exclude_none=True), indent=2, ensure_ascii=False)

        return render_markdown(result.output), raw, pdf_path

    with gr.Blocks(title=APP_TITLE) as demo:
        gr.Markdown(f"# {APP_TITLE}")
        gr.Markdown(APP_DESC)

        with gr.Row():
            question = gr.Textbox(
                label="Question",
                placeholder="e.g., How were sales this week?",
                lines=2,
                scale=4
            )
            neighborhood = gr.Checkbox(
                label="Neighborhood Context",
                value=False,
                info="Weather, nearby events and reviews."
            )
        ask = gr.Button("Ask", variant="primary")

        answer = gr.Markdown()
        with gr.Accordion("Raw JSON", open=False):
            raw = gr.Code(label="CopilotOutput", language="json")
        pdf = gr.File(label="Export (PDF)")

        ask.click(fn=handle_question, inputs=[question, neighborhood], outputs=[answer, raw, pdf])
        question.submit(fn=handle_question, inputs=[question, neighborhood], outputs=[answer, raw, pdf])

    return demo


if __name__ == "__main__":

    configure_logging()
    app().launch()

# EOF
