"""Control catalogue data models.

Every model here is frozen: the catalogue is loaded once per process and
shared by all decision functions without locking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

CONTROL_ID_PATTERN = r"^[A-Z]{2}-\d+(\(\d+\))?$"


class Priority(str, Enum):
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class ControlDefinition(BaseModel):
    """A single ITSG-33 control or control enhancement."""

    model_config = ConfigDict(frozen=True)

    id: str
    family: str
    title: str
    description: str = ""
    priority: Priority
    profiles: frozenset[str]
    inheritance: frozenset[str] = frozenset()
    tags: frozenset[str] = frozenset()
    evidence_guidance: str = ""

    @property
    def is_enhancement(self) -> bool:
        return "(" in self.id


class Technology(BaseModel):
    """A technology a project can declare, e.g. Entra ID or a WAF."""

    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    vendor: str = ""
    category: str = ""


class SecurityProfile(BaseModel):
    """A named control baseline.

    ``extends`` holds the profiles this baseline directly builds on;
    ``includes`` is the transitive closure resolved by the loader (empty for
    profiles that do not require a formal assessment).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    short_name: str = ""
    description: str = ""
    baseline_source: str = ""
    approx_controls: str = ""
    requires_assessment: bool = True
    extends: tuple[str, ...] = ()
    includes: frozenset[str] = frozenset()


class ConfidentialityLevel(BaseModel):
    """A confidentiality classification (Unclassified through Top Secret)."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    short_label: str
    track: str
    injury_level: str = ""
    order: int
    description: str = ""
    examples: str = ""

    @property
    def is_national_interest(self) -> bool:
        return self.track == "national"


class ImpactLevel(BaseModel):
    """An integrity or availability level (Low, Medium, High)."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    short_label: str
    order: int
    description: str = ""


class GuidanceItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    required: bool = False


class GuidanceCategory(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    items: tuple[GuidanceItem, ...] = ()


class WebGuidance(BaseModel):
    """Checklist issued instead of a formal SA&A for simple web content."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    footer: str = ""
    categories: tuple[GuidanceCategory, ...] = ()

    @property
    def total_required(self) -> int:
        return sum(1 for cat in self.categories for item in cat.items if item.required)

    @property
    def total_recommended(self) -> int:
        return sum(1 for cat in self.categories for item in cat.items if not item.required)


@dataclass(frozen=True, eq=False)
class Catalogue:
    """The read-only control catalogue and its lookup tables."""

    version: str
    controls: tuple[ControlDefinition, ...]
    families: Mapping[str, str]
    technologies: Mapping[str, Technology]
    profiles: Mapping[str, SecurityProfile]
    confidentiality_levels: Mapping[str, ConfidentialityLevel]
    integrity_levels: Mapping[str, ImpactLevel]
    availability_levels: Mapping[str, ImpactLevel]
    minimal_web_baseline: frozenset[str]
    web_guidance: WebGuidance
    _by_id: Mapping[str, ControlDefinition] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "controls", tuple(self.controls))
        for name in (
            "families",
            "technologies",
            "profiles",
            "confidentiality_levels",
            "integrity_levels",
            "availability_levels",
        ):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        object.__setattr__(self, "minimal_web_baseline", frozenset(self.minimal_web_baseline))
        object.__setattr__(self, "_by_id", MappingProxyType({c.id: c for c in self.controls}))

    def __len__(self) -> int:
        return len(self.controls)

    def get_control(self, control_id: str) -> Optional[ControlDefinition]:
        return self._by_id.get(control_id)

    def get_profile(self, profile_id: str) -> Optional[SecurityProfile]:
        return self.profiles.get(profile_id)

    def family_name(self, code: str) -> str:
        return self.families.get(code, code)

    def technology_name(self, key: str) -> str:
        """Display name for a technology key; unknown keys are returned verbatim."""
        tech = self.technologies.get(key)
        return tech.name if tech else key
