"""Assessment planning: gate -> profile -> recommended baseline.

This is the intake-review flow. Projects the gate clears get the web
guidance checklist and no control baseline; everything else gets a
profile, the grouped recommendations and the baseline rows the
persistence layer stores against a new assessment.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..catalogue.loader import get_default_catalogue
from ..models.catalogue import Catalogue
from ..models.categorization import ProjectCategorization
from ..models.recommendation import AssessmentPlan, BaselineEntry, ProfileDetermination, RecommendedControl
from .gate import requires_formal_assessment
from .grouping import group_by_family
from .profiles import categorization_label, determine_profile
from .recommender import derive_context_tags, recommend_controls, summarize

logger = logging.getLogger(__name__)


def build_baseline(controls: Iterable[RecommendedControl]) -> list[BaselineEntry]:
    """Rows for an assessment's control baseline, evidence pending."""
    return [
        BaselineEntry(
            control_id=rc.control.id,
            family=rc.control.family,
            family_name=rc.family_name,
            title=rc.control.title,
            description=rc.control.description,
            tailored_description=rc.control.description,
            evidence_guidance=rc.control.evidence_guidance,
            is_inherited=rc.is_inherited,
            inherited_from=", ".join(rc.inherited_from),
            priority=rc.control.priority.value,
        )
        for rc in controls
    ]


def plan_assessment(
    ctx: ProjectCategorization,
    catalogue: Optional[Catalogue] = None,
    force: bool = False,
) -> AssessmentPlan:
    """Run the full intake decision flow for one project.

    Args:
        ctx: The project's categorization.
        catalogue: Catalogue to use; the packaged one by default.
        force: Build a control baseline even when the gate says no formal
            SA&A is required (assessor override).
    """
    catalogue = catalogue or get_default_catalogue()
    gate = requires_formal_assessment(ctx, catalogue)
    label = categorization_label(ctx.confidentiality, ctx.integrity, ctx.availability, catalogue)
    technologies = tuple(catalogue.technology_name(t) for t in ctx.technologies)
    tags = derive_context_tags(ctx)

    determination = determine_profile(ctx, catalogue)

    if not gate.required and not determination.profile.requires_assessment and not force:
        determination = ProfileDetermination(
            profile=determination.profile,
            reason=gate.reason,
            tailoring_notes=determination.tailoring_notes,
        )
        logger.info("No formal SA&A required (%s); issuing web guidance", gate.reason)
        return AssessmentPlan(
            catalogue_version=catalogue.version,
            categorization=ctx,
            categorization_label=label,
            gate=gate,
            determination=determination,
            context_tags=tags,
            technologies=technologies,
            guidance=catalogue.web_guidance,
        )

    if not gate.required and determination.profile.requires_assessment:
        logger.warning(
            "Gate cleared the project but profile %s applies; building a control baseline",
            determination.profile.id,
        )
    controls = recommend_controls(ctx, catalogue, profile=determination.profile.id)
    logger.info(
        "Profile %s selected; %d controls recommended",
        determination.profile.id, len(controls),
    )
    return AssessmentPlan(
        catalogue_version=catalogue.version,
        categorization=ctx,
        categorization_label=label,
        gate=gate,
        determination=determination,
        context_tags=tags,
        technologies=technologies,
        groups=tuple(group_by_family(controls)),
        summary=summarize(controls),
        baseline=tuple(build_baseline(controls)),
    )
