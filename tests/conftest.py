"""Shared fixtures for SA&A baseline tests."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest
import yaml

from saa.catalogue.loader import DEFAULT_CATALOGUE_DIR, get_default_catalogue
from saa.models.catalogue import Catalogue
from saa.models.categorization import ProjectCategorization


@pytest.fixture
def catalogue() -> Catalogue:
    """The packaged catalogue."""
    return get_default_catalogue()


@pytest.fixture
def catalogue_dir(tmp_path: Path) -> Path:
    """A writable copy of the packaged catalogue for loader tests."""
    target = tmp_path / "catalogue"
    shutil.copytree(DEFAULT_CATALOGUE_DIR, target)
    return target


@pytest.fixture
def edit_catalogue(catalogue_dir: Path):
    """Load one catalogue file, let the test mutate it, and write it back."""

    def _edit(filename: str, mutate) -> Path:
        path = catalogue_dir / filename
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        mutate(data)
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return catalogue_dir

    return _edit


@pytest.fixture
def pbmm_context() -> ProjectCategorization:
    """Protected B / Medium / Medium project using Entra ID and MFA."""
    return ProjectCategorization(
        confidentiality="protected-b",
        integrity="medium",
        availability="medium",
        technologies=["entra-id", "mfa"],
        description="Case management application with a database backend.",
    )


@pytest.fixture
def static_context() -> ProjectCategorization:
    """Unclassified informational web content."""
    return ProjectCategorization(
        confidentiality="unclassified",
        integrity="low",
        availability="low",
        description="Static informational web page about a grant program.",
    )


@pytest.fixture
def sample_intake() -> dict:
    """An intake submission record as stored by the intake form."""
    return {
        "project_name": "Benefits Portal",
        "project_description": "Citizen-facing benefits portal with user login.",
        "data_classification": "protected-b",
        "integrity": "medium",
        "availability": "medium",
        "has_pii": "yes",
        "is_hva": False,
        "technologies": ["entra-id", "mfa", "azure"],
        "interconnections": "CRA income verification API",
        "mobile_access": "no",
        "external_users": "yes",
        "app_type": "external",
    }


@pytest.fixture
def intake_file(tmp_path: Path, sample_intake: dict) -> Path:
    path = tmp_path / "intake.yaml"
    path.write_text(yaml.safe_dump(sample_intake, sort_keys=False), encoding="utf-8")
    return path


@pytest.fixture
def static_intake_file(tmp_path: Path) -> Path:
    path = tmp_path / "static.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "project_name": "Grant Program Page",
                "project_description": "Static informational web page about a grant program.",
                "data_classification": "unclassified",
                "integrity": "low",
                "availability": "low",
                "has_pii": False,
            }
        ),
        encoding="utf-8",
    )
    return path
