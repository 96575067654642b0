"""Catalogue YAML loading and validation.

The catalogue is validated eagerly: any integrity problem (duplicate id,
unknown family, control without a profile, dangling reference) is a
deployment error, so every problem found is reported in a single
CatalogueError and nothing is half-loaded.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from ..models.catalogue import (
    CONTROL_ID_PATTERN,
    Catalogue,
    ConfidentialityLevel,
    ControlDefinition,
    GuidanceCategory,
    ImpactLevel,
    SecurityProfile,
    Technology,
    WebGuidance,
)

logger = logging.getLogger(__name__)

DEFAULT_CATALOGUE_DIR = Path(__file__).resolve().parent.parent / "data" / "catalogue"

CATALOGUE_FILES = (
    "families.yaml",
    "technologies.yaml",
    "profiles.yaml",
    "levels.yaml",
    "controls.yaml",
    "web_guidance.yaml",
)

# Profiles the determiner can return; a catalogue missing any is unusable.
REQUIRED_PROFILES = (
    "NONE",
    "CCCS_LOW",
    "PBMM",
    "PBMM_HVA",
    "PB_HIGH",
    "PC_BASELINE",
    "SECRET_MM",
    "CLASSIFIED_HIGH",
)

REQUIRED_CONFIDENTIALITY = (
    "unclassified",
    "protected-a",
    "protected-b",
    "protected-c",
    "confidential",
    "secret",
    "top-secret",
)

REQUIRED_IMPACT = ("low", "medium", "high")

_M = TypeVar("_M", bound=BaseModel)


class CatalogueError(ValueError):
    """The control catalogue is missing, unreadable, or inconsistent."""

    def __init__(self, problems: list[str], source: Optional[Path] = None) -> None:
        self.problems = list(problems)
        self.source = source
        where = f" ({source})" if source else ""
        detail = "\n".join(f"  - {p}" for p in self.problems)
        super().__init__(f"Invalid control catalogue{where}:\n{detail}")


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        raise CatalogueError([f"missing catalogue file {path.name}"], path.parent)
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise CatalogueError([f"{path.name}: {exc}"], path.parent) from exc
    if content is None:
        return {}
    if not isinstance(content, dict):
        raise CatalogueError([f"{path.name}: expected a mapping at top level"], path.parent)
    return content


def _format_validation_error(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'value'}: {err['msg']}"
        for err in exc.errors()
    )


def _build(model: Callable[..., _M], label: str, data: Any, problems: list[str]) -> Optional[_M]:
    if not isinstance(data, dict):
        problems.append(f"{label}: expected a mapping")
        return None
    try:
        return model(**data)
    except ValidationError as exc:
        problems.append(f"{label}: {_format_validation_error(exc)}")
        return None
    except TypeError:
        # non-string keys cannot be passed as keyword arguments
        bad_keys = ", ".join(repr(k) for k in data if not isinstance(k, str))
        problems.append(f"{label}: field names must be strings (got {bad_keys})")
        return None


def _keyed(field: str, key: Any, data: Any) -> Any:
    """Fold a mapping key into its value, e.g. ``{PBMM: {...}}`` -> ``{id: PBMM, ...}``."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return data
    return {field: str(key), **data}


def _resolve_includes(
    profiles: dict[str, SecurityProfile],
    problems: list[str],
) -> dict[str, SecurityProfile]:
    """Expand each profile's ``extends`` into its transitive ``includes`` set."""
    resolved: dict[str, frozenset[str]] = {}

    def visit(profile_id: str, stack: tuple[str, ...]) -> frozenset[str]:
        if profile_id in resolved:
            return resolved[profile_id]
        if profile_id in stack:
            problems.append(f"profile {profile_id}: cyclic extends via {' -> '.join(stack + (profile_id,))}")
            return frozenset()
        includes = {profile_id}
        for parent in profiles[profile_id].extends:
            if parent not in profiles:
                problems.append(f"profile {profile_id}: extends unknown profile {parent}")
                continue
            includes |= visit(parent, stack + (profile_id,))
        resolved[profile_id] = frozenset(includes)
        return resolved[profile_id]

    result: dict[str, SecurityProfile] = {}
    for profile_id, profile in profiles.items():
        includes = visit(profile_id, ())
        if not profile.requires_assessment:
            includes = frozenset()
        result[profile_id] = profile.model_copy(update={"includes": includes})
    return result


def _load_levels(data: dict, problems: list[str]) -> tuple[dict, dict, dict]:
    confidentiality: dict[str, ConfidentialityLevel] = {}
    for key, raw in (data.get("confidentiality") or {}).items():
        level = _build(ConfidentialityLevel, f"confidentiality level {key}", _keyed("key", key, raw), problems)
        if level:
            if level.track not in ("national", "non-national"):
                problems.append(f"confidentiality level {key}: unknown track {level.track!r}")
            confidentiality[key] = level

    impact: list[dict[str, ImpactLevel]] = []
    for dimension in ("integrity", "availability"):
        levels: dict[str, ImpactLevel] = {}
        for key, raw in (data.get(dimension) or {}).items():
            level = _build(ImpactLevel, f"{dimension} level {key}", _keyed("key", key, raw), problems)
            if level:
                levels[key] = level
        missing = [k for k in REQUIRED_IMPACT if k not in levels]
        if missing:
            problems.append(f"{dimension} levels missing: {', '.join(missing)}")
        impact.append(levels)

    missing = [k for k in REQUIRED_CONFIDENTIALITY if k not in confidentiality]
    if missing:
        problems.append(f"confidentiality levels missing: {', '.join(missing)}")

    return confidentiality, impact[0], impact[1]


def _check_control(
    control: ControlDefinition,
    families: dict[str, str],
    profiles: dict[str, SecurityProfile],
    technologies: dict[str, Technology],
    problems: list[str],
) -> None:
    if not re.match(CONTROL_ID_PATTERN, control.id):
        problems.append(f"control {control.id}: id must look like AC-2 or AC-2(1)")
    if control.family not in families:
        problems.append(f"control {control.id}: unknown family {control.family}")
    elif not control.id.startswith(f"{control.family}-"):
        problems.append(f"control {control.id}: id does not belong to family {control.family}")
    if not control.profiles:
        problems.append(f"control {control.id}: belongs to no profile")
    for profile_id in sorted(control.profiles):
        profile = profiles.get(profile_id)
        if profile is None:
            problems.append(f"control {control.id}: unknown profile {profile_id}")
        elif not profile.requires_assessment:
            problems.append(f"control {control.id}: profile {profile_id} carries no controls")
    for tech in sorted(control.inheritance):
        if tech not in technologies:
            problems.append(f"control {control.id}: unknown technology {tech}")


def load_catalogue(catalogue_dir: Optional[Path] = None) -> Catalogue:
    """Load and validate the control catalogue from a directory of YAML files.

    Raises:
        CatalogueError: with every problem found, if the catalogue is invalid.
    """
    catalogue_dir = Path(catalogue_dir) if catalogue_dir else DEFAULT_CATALOGUE_DIR
    raw = {name: _read_yaml(catalogue_dir / name) for name in CATALOGUE_FILES}
    problems: list[str] = []

    families: dict[str, str] = {}
    for code, name in (raw["families.yaml"].get("families") or {}).items():
        if not re.match(r"^[A-Z]{2}$", str(code)):
            problems.append(f"family {code}: code must be two capital letters")
        families[str(code)] = str(name)

    technologies: dict[str, Technology] = {}
    for key, data in (raw["technologies.yaml"].get("technologies") or {}).items():
        tech = _build(Technology, f"technology {key}", _keyed("key", key, data), problems)
        if tech:
            technologies[key] = tech

    profiles: dict[str, SecurityProfile] = {}
    for profile_id, data in (raw["profiles.yaml"].get("profiles") or {}).items():
        profile = _build(SecurityProfile, f"profile {profile_id}", _keyed("id", profile_id, data), problems)
        if profile:
            profiles[profile_id] = profile
    missing = [p for p in REQUIRED_PROFILES if p not in profiles]
    if missing:
        problems.append(f"profiles missing: {', '.join(missing)}")
    profiles = _resolve_includes(profiles, problems)

    confidentiality, integrity, availability = _load_levels(raw["levels.yaml"], problems)

    controls: list[ControlDefinition] = []
    seen: set[str] = set()
    for index, data in enumerate(raw["controls.yaml"].get("controls") or []):
        label = f"control #{index + 1} ({data.get('id', '?') if isinstance(data, dict) else '?'})"
        control = _build(ControlDefinition, label, data, problems)
        if control is None:
            continue
        if control.id in seen:
            problems.append(f"control {control.id}: duplicate id")
            continue
        seen.add(control.id)
        _check_control(control, families, profiles, technologies, problems)
        controls.append(control)
    if not controls:
        problems.append("catalogue defines no controls")

    baseline = [str(c) for c in (raw["profiles.yaml"].get("minimal_web_baseline") or [])]
    for control_id in baseline:
        if control_id not in seen:
            problems.append(f"minimal web baseline: unknown control {control_id}")

    guidance_raw = raw["web_guidance.yaml"]
    summary = guidance_raw.get("summary") or {}
    categories: list[GuidanceCategory] = []
    for index, data in enumerate(guidance_raw.get("categories") or []):
        category = _build(GuidanceCategory, f"web guidance category #{index + 1}", data, problems)
        if category:
            categories.append(category)
    guidance = WebGuidance(
        title=str(summary.get("title", "")),
        description=str(summary.get("description", "")),
        footer=str(summary.get("footer", "")),
        categories=tuple(categories),
    )

    if problems:
        for problem in problems:
            logger.error("Catalogue problem: %s", problem)
        raise CatalogueError(problems, catalogue_dir)

    version = str(raw["controls.yaml"].get("version", "unversioned"))
    catalogue = Catalogue(
        version=version,
        controls=tuple(controls),
        families=families,
        technologies=technologies,
        profiles=profiles,
        confidentiality_levels=confidentiality,
        integrity_levels=integrity,
        availability_levels=availability,
        minimal_web_baseline=frozenset(baseline),
        web_guidance=guidance,
    )
    logger.info(
        "Loaded control catalogue %s: %d controls, %d families, %d profiles",
        version, len(controls), len(families), len(profiles),
    )
    return catalogue


@lru_cache(maxsize=None)
def get_default_catalogue() -> Catalogue:
    """The packaged catalogue, loaded and validated once per process."""
    return load_catalogue(DEFAULT_CATALOGUE_DIR)
