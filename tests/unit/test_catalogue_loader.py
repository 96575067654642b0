"""Tests for catalogue/loader.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from saa.catalogue.loader import CatalogueError, get_default_catalogue, load_catalogue
from saa.models.catalogue import Priority


class TestPackagedCatalogue:
    def test_loads(self, catalogue):
        assert catalogue.version == "2024.1"
        assert len(catalogue) > 100
        assert len(catalogue.families) == 18
        assert set(catalogue.profiles) >= {"NONE", "CCCS_LOW", "PBMM", "PBMM_HVA", "CLASSIFIED_HIGH"}

    def test_cached(self):
        assert get_default_catalogue() is get_default_catalogue()

    def test_lookups(self, catalogue):
        control = catalogue.get_control("AC-2")
        assert control.family == "AC"
        assert control.priority is Priority.P1
        assert "entra-id" in control.inheritance
        assert catalogue.get_control("ZZ-1") is None
        assert catalogue.family_name("SC") == "System and Communications Protection"
        assert catalogue.family_name("ZZ") == "ZZ"
        assert catalogue.technology_name("mfa") == "Multi-Factor Authentication"
        assert catalogue.technology_name("not-a-tech") == "not-a-tech"

    def test_enhancement_flag(self, catalogue):
        assert catalogue.get_control("IA-2(1)").is_enhancement is True
        assert catalogue.get_control("IA-2").is_enhancement is False

    def test_none_profile_includes_nothing(self, catalogue):
        assert catalogue.profiles["NONE"].includes == frozenset()
        assert catalogue.profiles["PBMM_HVA"].includes == frozenset({"PBMM_HVA", "PBMM", "CCCS_LOW"})

    def test_levels(self, catalogue):
        assert catalogue.confidentiality_levels["secret"].is_national_interest is True
        assert catalogue.confidentiality_levels["protected-b"].is_national_interest is False
        assert catalogue.integrity_levels["high"].order == 2

    def test_web_guidance(self, catalogue):
        guidance = catalogue.web_guidance
        assert guidance.title == "No Formal SA&A Required"
        assert guidance.categories
        assert guidance.total_required > 0
        assert guidance.total_recommended > 0

    def test_minimal_baseline_resolves(self, catalogue):
        assert all(catalogue.get_control(cid) for cid in catalogue.minimal_web_baseline)


class TestValidation:
    def test_copy_loads(self, catalogue_dir: Path, catalogue):
        assert len(load_catalogue(catalogue_dir)) == len(catalogue)

    def test_missing_file(self, catalogue_dir: Path):
        (catalogue_dir / "families.yaml").unlink()
        with pytest.raises(CatalogueError, match="missing catalogue file families.yaml"):
            load_catalogue(catalogue_dir)

    def test_yaml_syntax_error(self, catalogue_dir: Path):
        (catalogue_dir / "controls.yaml").write_text("controls: [unclosed\n", encoding="utf-8")
        with pytest.raises(CatalogueError):
            load_catalogue(catalogue_dir)

    def test_duplicate_id(self, edit_catalogue):
        def mutate(data):
            data["controls"].append(dict(data["controls"][0]))

        with pytest.raises(CatalogueError) as exc:
            load_catalogue(edit_catalogue("controls.yaml", mutate))
        assert "control AC-1: duplicate id" in exc.value.problems

    def test_unknown_family(self, edit_catalogue):
        def mutate(data):
            data["controls"].append({
                "id": "ZZ-1", "family": "ZZ", "title": "Mystery", "priority": "P1", "profiles": ["PBMM"],
            })

        with pytest.raises(CatalogueError) as exc:
            load_catalogue(edit_catalogue("controls.yaml", mutate))
        assert "control ZZ-1: unknown family ZZ" in exc.value.problems

    def test_family_mismatch(self, edit_catalogue):
        def mutate(data):
            data["controls"][0]["family"] = "AU"

        with pytest.raises(CatalogueError) as exc:
            load_catalogue(edit_catalogue("controls.yaml", mutate))
        assert "control AC-1: id does not belong to family AU" in exc.value.problems

    def test_control_without_profile(self, edit_catalogue):
        def mutate(data):
            data["controls"][0]["profiles"] = []

        with pytest.raises(CatalogueError) as exc:
            load_catalogue(edit_catalogue("controls.yaml", mutate))
        assert "control AC-1: belongs to no profile" in exc.value.problems

    def test_unknown_profile_and_technology(self, edit_catalogue):
        def mutate(data):
            data["controls"][0]["profiles"] = ["PBMM", "GOLD"]
            data["controls"][0]["inheritance"] = ["abacus"]

        with pytest.raises(CatalogueError) as exc:
            load_catalogue(edit_catalogue("controls.yaml", mutate))
        assert "control AC-1: unknown profile GOLD" in exc.value.problems
        assert "control AC-1: unknown technology abacus" in exc.value.problems

    def test_control_tagged_with_none_profile(self, edit_catalogue):
        def mutate(data):
            data["controls"][0]["profiles"] = ["NONE"]

        with pytest.raises(CatalogueError, match="carries no controls"):
            load_catalogue(edit_catalogue("controls.yaml", mutate))

    def test_schema_violation(self, edit_catalogue):
        def mutate(data):
            data["controls"][0]["priority"] = "P9"

        with pytest.raises(CatalogueError, match="priority"):
            load_catalogue(edit_catalogue("controls.yaml", mutate))

    def test_non_string_field_name(self, edit_catalogue):
        def mutate(data):
            data["controls"][0][7] = "stray"

        with pytest.raises(CatalogueError) as exc:
            load_catalogue(edit_catalogue("controls.yaml", mutate))
        assert "control #1 (AC-1): field names must be strings (got 7)" in exc.value.problems

    def test_non_string_field_name_in_profile(self, edit_catalogue):
        def mutate(data):
            data["profiles"]["PB_HIGH"][3] = "stray"

        with pytest.raises(CatalogueError) as exc:
            load_catalogue(edit_catalogue("profiles.yaml", mutate))
        assert "profile PB_HIGH: field names must be strings (got 3)" in exc.value.problems

    def test_cyclic_extends(self, edit_catalogue):
        def mutate(data):
            data["profiles"]["CCCS_LOW"]["extends"] = ["PBMM"]

        with pytest.raises(CatalogueError, match="cyclic extends"):
            load_catalogue(edit_catalogue("profiles.yaml", mutate))

    def test_unknown_extends(self, edit_catalogue):
        def mutate(data):
            data["profiles"]["PB_HIGH"]["extends"] = ["PBMM", "PLATINUM"]

        with pytest.raises(CatalogueError) as exc:
            load_catalogue(edit_catalogue("profiles.yaml", mutate))
        assert "profile PB_HIGH: extends unknown profile PLATINUM" in exc.value.problems

    def test_missing_required_profile(self, edit_catalogue):
        def mutate(data):
            del data["profiles"]["SECRET_MM"]
            data["profiles"]["CLASSIFIED_HIGH"]["extends"] = ["PB_HIGH", "PC_BASELINE"]

        with pytest.raises(CatalogueError) as exc:
            load_catalogue(edit_catalogue("profiles.yaml", mutate))
        assert "profiles missing: SECRET_MM" in exc.value.problems

    def test_unknown_baseline_id(self, edit_catalogue):
        def mutate(data):
            data["minimal_web_baseline"].append("SC-99")

        with pytest.raises(CatalogueError) as exc:
            load_catalogue(edit_catalogue("profiles.yaml", mutate))
        assert exc.value.problems == ["minimal web baseline: unknown control SC-99"]

    def test_missing_impact_level(self, edit_catalogue):
        def mutate(data):
            del data["availability"]["high"]

        with pytest.raises(CatalogueError, match="availability levels missing: high"):
            load_catalogue(edit_catalogue("levels.yaml", mutate))

    def test_all_problems_reported(self, edit_catalogue):
        def mutate(data):
            data["controls"][0]["family"] = "ZZ"
            data["controls"][1]["profiles"] = []

        with pytest.raises(CatalogueError) as exc:
            load_catalogue(edit_catalogue("controls.yaml", mutate))
        assert len(exc.value.problems) >= 2
        assert isinstance(exc.value, ValueError)
