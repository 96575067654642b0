"""Intake questionnaire -> ProjectCategorization.

The questionnaire captures interconnections, mobile access and external
users as separate answers; they are folded into the engine description so
the keyword heuristics can see them.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..models.categorization import ProjectCategorization

_TRUTHY = {"yes", "y", "true", "1", "on"}


def _flag(value: Any) -> bool:
    """Questionnaire answers arrive as bools, 1/0 or "yes"/"no"."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def _as_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v) for v in value]


def build_engine_description(intake: Mapping[str, Any]) -> str:
    """Project description enriched with the structured intake answers."""
    parts = [str(intake.get("project_description") or "")]
    if intake.get("interconnections"):
        parts.append(f"Interconnections: {intake['interconnections']}")
    if _flag(intake.get("mobile_access")):
        parts.append("Mobile/BYOD access required.")
    if _flag(intake.get("external_users")):
        parts.append("External users will access the system.")
    if intake.get("assessor_description"):
        parts.append(str(intake["assessor_description"]))
    return "\n".join(p for p in parts if p)


def categorization_from_intake(intake: Mapping[str, Any]) -> ProjectCategorization:
    """Build the engine input from an intake submission record.

    Assessor overrides (``override_classification``, ``override_app_type``)
    win over the submitted values; ``additional_technologies`` added during
    review are merged with the submitted list.
    """
    technologies = _as_list(intake.get("technologies")) + _as_list(intake.get("additional_technologies"))
    complexity = intake.get("has_application_complexity")

    return ProjectCategorization(
        confidentiality=intake.get("override_classification") or intake.get("data_classification") or "unclassified",
        integrity=intake.get("integrity") or "medium",
        availability=intake.get("availability") or "medium",
        has_pii=_flag(intake.get("has_pii")),
        is_high_value_asset=_flag(intake.get("is_hva") or intake.get("is_high_value_asset")),
        has_application_complexity=None if complexity is None else _flag(complexity),
        technologies=technologies,
        description=build_engine_description(intake),
        app_type=intake.get("override_app_type") or intake.get("app_type") or "",
    )
