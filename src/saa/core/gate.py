"""SA&A requirement gate: formal assessment or web guidance checklist."""

from __future__ import annotations

from typing import Optional

from ..catalogue.loader import get_default_catalogue
from ..models.catalogue import Catalogue
from ..models.categorization import ProjectCategorization
from ..models.recommendation import GateResult

UNCLASSIFIED = "unclassified"


def requires_formal_assessment(
    ctx: ProjectCategorization,
    catalogue: Optional[Catalogue] = None,
) -> GateResult:
    """Decide whether a project needs a full SA&A.

    Rules are evaluated in order and the first match wins:
    classified (national interest), Protected A/B/C, PII, then unclassified
    with or without application complexity. An unrecognised classification,
    integrity or availability value is treated as requiring an assessment,
    matching the determiner's PBMM fallback for the same input.
    """
    catalogue = catalogue or get_default_catalogue()
    level = catalogue.confidentiality_levels.get(ctx.confidentiality)

    if level is not None and level.is_national_interest:
        return GateResult(required=True, reason=f"Data classification is {level.label} (national interest)")

    if level is not None and level.key != UNCLASSIFIED:
        return GateResult(required=True, reason=f"Data classification is {level.label}")

    if ctx.has_pii:
        return GateResult(required=True, reason="Project handles personal information (PII)")

    if level is None:
        return GateResult(
            required=True,
            reason=f"Unrecognized data classification {ctx.confidentiality!r}; a formal SA&A is assumed",
        )

    invalid = [
        f"{name} {value!r}"
        for name, value, levels in (
            ("integrity", ctx.integrity, catalogue.integrity_levels),
            ("availability", ctx.availability, catalogue.availability_levels),
        )
        if value not in levels
    ]
    if invalid:
        return GateResult(
            required=True,
            reason=f"Unrecognized {', '.join(invalid)}; a formal SA&A is assumed",
        )

    if not ctx.application_complexity:
        return GateResult(
            required=False,
            reason="Unclassified static/informational web content with no PII, authentication, or system integrations",
        )

    return GateResult(required=True, reason="Unclassified with application complexity")
