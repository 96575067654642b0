"""Project categorization input model."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ..utils.keywords import detect_complexity


class ProjectCategorization(BaseModel):
    """Security categorization and context of a single project.

    Level values are normalised (stripped, lower-cased) but never rejected:
    an unrecognised key is the decision functions' problem to degrade on,
    not a validation error.
    """

    model_config = ConfigDict(frozen=True)

    confidentiality: str = "unclassified"
    integrity: str = "medium"
    availability: str = "medium"
    has_pii: bool = False
    is_high_value_asset: bool = False
    # None means "derive from description"
    has_application_complexity: Optional[bool] = None
    technologies: tuple[str, ...] = ()
    description: str = ""
    app_type: str = ""

    @field_validator("confidentiality", "integrity", "availability", "app_type", mode="before")
    @classmethod
    def _normalise_key(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip().lower()

    @field_validator("description", mode="before")
    @classmethod
    def _normalise_description(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("technologies", mode="before")
    @classmethod
    def _normalise_technologies(cls, value: Any) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        seen: set[str] = set()
        result: list[str] = []
        for item in value:
            key = str(item).strip()
            if key and key not in seen:
                seen.add(key)
                result.append(key)
        return tuple(result)

    @property
    def application_complexity(self) -> bool:
        if self.has_application_complexity is not None:
            return self.has_application_complexity
        return detect_complexity(self.description)
