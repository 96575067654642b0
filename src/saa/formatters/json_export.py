"""JSON export of an assessment plan for the persistence layer."""

from __future__ import annotations

import json
from pathlib import Path

from ..models.recommendation import AssessmentPlan


def plan_to_dict(plan: AssessmentPlan) -> dict:
    """Plain, JSON-serialisable view of a plan with stable ordering."""
    ctx = plan.categorization
    return {
        "catalogue_version": plan.catalogue_version,
        "categorization": {
            "confidentiality": ctx.confidentiality,
            "integrity": ctx.integrity,
            "availability": ctx.availability,
            "label": plan.categorization_label,
            "has_pii": ctx.has_pii,
            "is_high_value_asset": ctx.is_high_value_asset,
            "has_application_complexity": ctx.application_complexity,
            "technologies": list(ctx.technologies),
            "app_type": ctx.app_type,
        },
        "context_tags": list(plan.context_tags),
        "gate": plan.gate.to_record(),
        "determination": plan.determination.to_record(),
        "summary": plan.summary.model_dump(),
        "families": [
            {
                "code": group.code,
                "name": group.name,
                "controls": [rc.to_record() for rc in group.controls],
            }
            for group in plan.groups
        ],
        "baseline": [entry.model_dump() for entry in plan.baseline],
        "guidance": plan.guidance.model_dump(mode="json") if plan.guidance else None,
    }


def plan_to_json(plan: AssessmentPlan) -> str:
    return json.dumps(plan_to_dict(plan), indent=2, ensure_ascii=False)


def export_plan_json(plan: AssessmentPlan, output_path: Path) -> dict:
    """Write the plan as JSON.

    Returns:
        Dict with: path, controls, requires_assessment.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(plan_to_json(plan), encoding="utf-8")
    return {
        "path": str(output_path),
        "controls": plan.summary.total,
        "requires_assessment": plan.gate.required,
    }
