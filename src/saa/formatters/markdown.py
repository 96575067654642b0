"""Markdown report for an assessment plan."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from ..models.catalogue import WebGuidance
from ..models.recommendation import AssessmentPlan


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def _render_guidance(guidance: WebGuidance) -> list[str]:
    lines = [f"## {guidance.title}", "", guidance.description, ""]
    lines.append(
        f"**{guidance.total_required} required** and "
        f"**{guidance.total_recommended} recommended** items."
    )
    lines.append("")
    for category in guidance.categories:
        lines.append(f"### {category.title}")
        lines.append("")
        if category.description:
            lines.append(category.description)
            lines.append("")
        for item in category.items:
            marker = "Required" if item.required else "Recommended"
            lines.append(f"- [ ] {item.text} _({marker})_")
        lines.append("")
    if guidance.footer:
        lines.append(f"_{guidance.footer}_")
        lines.append("")
    return lines


def render_plan_markdown(
    plan: AssessmentPlan,
    project_name: str = "Project",
    include_evidence_guidance: bool = False,
    show_tailoring_notes: bool = True,
) -> str:
    """Render a plan as a Markdown report."""
    determination = plan.determination
    ctx = plan.categorization
    lines = [
        f"# Security Assessment Intake: {project_name}",
        "",
        f"_Generated {datetime.now().strftime('%Y-%m-%d %H:%M')} "
        f"from control catalogue {plan.catalogue_version}_",
        "",
        "| | |",
        "|---|---|",
        f"| Categorization | {plan.categorization_label} |",
        f"| Personal information | {'Yes' if ctx.has_pii else 'No'} |",
        f"| High value asset | {'Yes' if ctx.is_high_value_asset else 'No'} |",
        f"| Technologies | {_escape_cell(', '.join(plan.technologies)) or 'None declared'} |",
        f"| Formal SA&A | {'Required' if plan.gate.required else 'Not required'} ({_escape_cell(plan.gate.reason)}) |",
        f"| Profile | {_escape_cell(determination.profile.name)} (`{determination.profile.id}`) |",
        "",
        f"**Rationale:** {determination.reason}",
        "",
    ]

    if show_tailoring_notes and determination.tailoring_notes:
        lines.append("### Tailoring notes")
        lines.append("")
        lines.extend(f"- {note}" for note in determination.tailoring_notes)
        lines.append("")

    if plan.guidance is not None:
        lines.extend(_render_guidance(plan.guidance))
        return "\n".join(lines)

    summary = plan.summary
    lines.append("## Recommended controls")
    lines.append("")
    lines.append(
        f"{summary.total} controls across {summary.families} families "
        f"(P1: {summary.p1}, P2: {summary.p2}, P3: {summary.p3}); "
        f"{summary.inherited} partially inherited from declared technologies."
    )
    lines.append("")

    for group in plan.groups:
        lines.append(f"### {group.code}: {group.name}")
        lines.append("")
        header = "| Control | Title | Priority | Inherited from |"
        divider = "|---|---|---|---|"
        if include_evidence_guidance:
            header += " Evidence guidance |"
            divider += "---|"
        lines.append(header)
        lines.append(divider)
        for rc in group.controls:
            row = (
                f"| {rc.control.id} | {_escape_cell(rc.control.title)} | {rc.control.priority.value} "
                f"| {_escape_cell(', '.join(rc.inherited_from)) or '-'} |"
            )
            if include_evidence_guidance:
                row += f" {_escape_cell(rc.control.evidence_guidance)} |"
            lines.append(row)
        lines.append("")

    return "\n".join(lines)


def export_plan_markdown(plan: AssessmentPlan, output_path: Path, **options) -> dict:
    """Write the Markdown report to output_path."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_plan_markdown(plan, **options), encoding="utf-8")
    return {"path": str(output_path), "controls": plan.summary.total}
