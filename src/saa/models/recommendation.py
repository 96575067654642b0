"""Decision and recommendation result models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, computed_field

from .catalogue import ControlDefinition, Priority, SecurityProfile, WebGuidance
from .categorization import ProjectCategorization


class GateResult(BaseModel):
    """Whether a project needs a formal SA&A."""

    model_config = ConfigDict(frozen=True)

    required: bool
    reason: str

    def to_record(self) -> dict:
        return {"required": self.required, "reason": self.reason}


class ProfileDetermination(BaseModel):
    """The profile selected for a categorization and why."""

    model_config = ConfigDict(frozen=True)

    profile: SecurityProfile
    reason: str
    tailoring_notes: tuple[str, ...] = ()

    @property
    def profile_id(self) -> str:
        return self.profile.id

    def to_record(self) -> dict:
        return {
            "profile_id": self.profile.id,
            "profile_name": self.profile.name,
            "requires_assessment": self.profile.requires_assessment,
            "reason": self.reason,
            "tailoring_notes": list(self.tailoring_notes),
        }


class RecommendedControl(BaseModel):
    """A catalogue control annotated for one project."""

    model_config = ConfigDict(frozen=True)

    control: ControlDefinition
    family_name: str
    relevance_score: int = 0
    inherited_from: tuple[str, ...] = ()
    included: bool = True

    @computed_field
    @property
    def is_inherited(self) -> bool:
        return bool(self.inherited_from)

    @property
    def id(self) -> str:
        return self.control.id

    @property
    def family(self) -> str:
        return self.control.family

    @property
    def priority(self) -> Priority:
        return self.control.priority

    def to_record(self) -> dict:
        return {
            "control_id": self.control.id,
            "family": self.control.family,
            "family_name": self.family_name,
            "title": self.control.title,
            "description": self.control.description,
            "priority": self.control.priority.value,
            "is_inherited": self.is_inherited,
            "inherited_from": list(self.inherited_from),
            "relevance_score": self.relevance_score,
        }


class FamilyGroup(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    controls: tuple[RecommendedControl, ...] = ()


class RecommendationSummary(BaseModel):
    """Counts shown to the assessor on intake review."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    p1: int = 0
    p2: int = 0
    p3: int = 0
    inherited: int = 0
    families: int = 0


class BaselineEntry(BaseModel):
    """One row of an assessment's control baseline, ready to persist."""

    model_config = ConfigDict(frozen=True)

    control_id: str
    family: str
    family_name: str
    title: str
    description: str
    tailored_description: str
    evidence_guidance: str
    is_inherited: bool
    inherited_from: str = ""
    is_applicable: bool = True
    priority: str
    evidence_status: str = "pending"


class AssessmentPlan(BaseModel):
    """Everything the intake review needs for one project."""

    model_config = ConfigDict(frozen=True)

    catalogue_version: str
    categorization: ProjectCategorization
    categorization_label: str
    gate: GateResult
    determination: ProfileDetermination
    context_tags: tuple[str, ...] = ()
    technologies: tuple[str, ...] = ()
    groups: tuple[FamilyGroup, ...] = ()
    summary: RecommendationSummary = RecommendationSummary()
    baseline: tuple[BaselineEntry, ...] = ()
    guidance: Optional[WebGuidance] = None

    @property
    def uses_web_guidance(self) -> bool:
        return self.guidance is not None

    @property
    def controls(self) -> list[RecommendedControl]:
        return [c for group in self.groups for c in group.controls]
