"""Control recommendation engine.

For a project context, every catalogue control is scored for relevance
(declared technologies that inherit it, context tags derived from the
description, priority) and included when one of its profiles is in the
resolved profile's inclusion set. When no formal profile applies, the
minimal web baseline plus any technology/tag match is used instead.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..catalogue.loader import get_default_catalogue
from ..models.catalogue import Catalogue, ControlDefinition, Priority
from ..models.categorization import ProjectCategorization
from ..models.recommendation import RecommendationSummary, RecommendedControl
from ..utils.keywords import CONTEXT_TAG_RULES, EXTERNAL_TAG_RULE, PII_TAG_RULE, contains_any
from .profiles import determine_profile

logger = logging.getLogger(__name__)

TECHNOLOGY_WEIGHT = 1
TAG_WEIGHT = 2
PRIORITY_BONUS = {
    Priority.P1: 3,
    Priority.P2: 2,
    Priority.P3: 1,
}


def derive_context_tags(ctx: ProjectCategorization) -> tuple[str, ...]:
    """Context tags implied by the description, app type and PII flag."""
    tags: list[str] = []
    for rule in CONTEXT_TAG_RULES:
        triggers, rule_tags = rule
        matched = contains_any(ctx.description, triggers)
        if rule is EXTERNAL_TAG_RULE and ctx.app_type == "external":
            matched = True
        if rule is PII_TAG_RULE and ctx.has_pii:
            matched = True
        if matched:
            tags.extend(t for t in rule_tags if t not in tags)
    return tuple(tags)


def resolve_inclusion_set(profile_id: Optional[str], catalogue: Optional[Catalogue] = None) -> frozenset[str]:
    """Profile tags a resolved profile subsumes; empty for NONE or unknown ids."""
    catalogue = catalogue or get_default_catalogue()
    profile = catalogue.get_profile(profile_id) if profile_id else None
    return profile.includes if profile else frozenset()


def _resolve_profile_id(
    ctx: ProjectCategorization,
    catalogue: Catalogue,
    profile: Optional[str],
) -> str:
    if profile is not None:
        if profile in catalogue.profiles:
            return profile
        logger.warning("Unknown profile %r; deriving profile from categorization", profile)
    return determine_profile(ctx, catalogue).profile.id


def _score_control(
    control: ControlDefinition,
    ctx: ProjectCategorization,
    tags: tuple[str, ...],
    inclusion: frozenset[str],
    catalogue: Catalogue,
) -> RecommendedControl:
    score = 0
    matches = 0
    inherited_from: list[str] = []

    for tech in ctx.technologies:
        if tech in control.inheritance:
            inherited_from.append(catalogue.technology_name(tech))
            score += TECHNOLOGY_WEIGHT
            matches += 1

    for tag in tags:
        if tag in control.tags:
            score += TAG_WEIGHT
            matches += 1

    score += PRIORITY_BONUS[control.priority]

    if inclusion:
        included = not control.profiles.isdisjoint(inclusion)
    else:
        included = control.id in catalogue.minimal_web_baseline or matches > 0

    return RecommendedControl(
        control=control,
        family_name=catalogue.family_name(control.family),
        relevance_score=score,
        inherited_from=tuple(inherited_from),
        included=included,
    )


def evaluate_controls(
    ctx: ProjectCategorization,
    catalogue: Optional[Catalogue] = None,
    profile: Optional[str] = None,
) -> list[RecommendedControl]:
    """Score every catalogue control, included or not, sorted by family then id."""
    catalogue = catalogue or get_default_catalogue()
    profile_id = _resolve_profile_id(ctx, catalogue, profile)
    inclusion = resolve_inclusion_set(profile_id, catalogue)
    tags = derive_context_tags(ctx)

    unknown = [t for t in ctx.technologies if t not in catalogue.technologies]
    if unknown:
        logger.debug("Ignoring unknown technologies for inheritance: %s", ", ".join(unknown))

    evaluated = [_score_control(c, ctx, tags, inclusion, catalogue) for c in catalogue.controls]
    evaluated.sort(key=lambda rc: (rc.control.family, rc.control.id))
    return evaluated


def recommend_controls(
    ctx: ProjectCategorization,
    catalogue: Optional[Catalogue] = None,
    profile: Optional[str] = None,
) -> list[RecommendedControl]:
    """Recommended control baseline for a project.

    Args:
        ctx: The project's categorization, technologies and description.
        catalogue: Catalogue to draw from; the packaged one by default.
        profile: A pre-resolved profile id. When omitted (or unknown) the
            profile is determined from ``ctx``.
    """
    return [rc for rc in evaluate_controls(ctx, catalogue, profile) if rc.included]


def summarize(controls: list[RecommendedControl]) -> RecommendationSummary:
    return RecommendationSummary(
        total=len(controls),
        p1=sum(1 for c in controls if c.priority is Priority.P1),
        p2=sum(1 for c in controls if c.priority is Priority.P2),
        p3=sum(1 for c in controls if c.priority is Priority.P3),
        inherited=sum(1 for c in controls if c.is_inherited),
        families=len({c.family for c in controls}),
    )
