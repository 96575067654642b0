"""Security profile determination.

Maps a confidentiality x integrity x availability categorization, plus the
PII, high-value-asset and complexity flags, to the nearest applicable
control profile (TBS Standard on Security Categorization, ITSG-33 Annex 4A,
CCCS cloud profiles). The confidentiality track is switched on first, so
the branches below are mutually exclusive.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..catalogue.loader import get_default_catalogue
from ..models.catalogue import Catalogue
from ..models.categorization import ProjectCategorization
from ..models.recommendation import ProfileDetermination

logger = logging.getLogger(__name__)

LOW, MEDIUM, HIGH = 0, 1, 2


def categorization_label(
    confidentiality: str,
    integrity: str,
    availability: str,
    catalogue: Optional[Catalogue] = None,
) -> str:
    """Short label such as ``PB/M/M``; ``Unknown`` if any key is unrecognised."""
    catalogue = catalogue or get_default_catalogue()
    conf = catalogue.confidentiality_levels.get(confidentiality)
    integ = catalogue.integrity_levels.get(integrity)
    avail = catalogue.availability_levels.get(availability)
    if not conf or not integ or not avail:
        return "Unknown"
    return f"{conf.short_label}/{integ.short_label}/{avail.short_label}"


def categorization_full_label(
    confidentiality: str,
    integrity: str,
    availability: str,
    catalogue: Optional[Catalogue] = None,
) -> str:
    """Long label such as ``Protected B / Medium Integrity / Medium Availability``."""
    catalogue = catalogue or get_default_catalogue()
    conf = catalogue.confidentiality_levels.get(confidentiality)
    integ = catalogue.integrity_levels.get(integrity)
    avail = catalogue.availability_levels.get(availability)
    if not conf or not integ or not avail:
        return "Unknown"
    return f"{conf.label} / {integ.label} Integrity / {avail.label} Availability"


def determine_profile(
    ctx: ProjectCategorization,
    catalogue: Optional[Catalogue] = None,
) -> ProfileDetermination:
    """Select the security profile for a categorization.

    Total and deterministic: unrecognised level keys fall back to PBMM with
    a tailoring note naming the bad input instead of raising.
    """
    catalogue = catalogue or get_default_catalogue()
    profiles = catalogue.profiles

    def result(profile_id: str, reason: str, notes: list[str]) -> ProfileDetermination:
        return ProfileDetermination(profile=profiles[profile_id], reason=reason, tailoring_notes=tuple(notes))

    conf = catalogue.confidentiality_levels.get(ctx.confidentiality)
    integ = catalogue.integrity_levels.get(ctx.integrity)
    avail = catalogue.availability_levels.get(ctx.availability)
    notes: list[str] = []

    if not conf or not integ or not avail:
        invalid = [
            f"{name} {value!r}"
            for name, value, level in (
                ("confidentiality", ctx.confidentiality, conf),
                ("integrity", ctx.integrity, integ),
                ("availability", ctx.availability, avail),
            )
            if level is None
        ]
        logger.warning("Unrecognized categorization (%s); defaulting to PBMM", ", ".join(invalid))
        return result(
            "PBMM",
            "Invalid categorization: defaulting to PBMM",
            [f"Review categorization inputs: unrecognized {', '.join(invalid)}."],
        )

    # National interest (classified)
    if conf.is_national_interest:
        if conf.key == "secret" and integ.key == "medium" and avail.key == "medium":
            return result("SECRET_MM", "Secret / Medium / Medium maps to ITSG-33 Profile 3", notes)
        notes.append("No published CSE profile for this classified combination. Contact CSE/CCCS for guidance.")
        notes.append("Department must develop a custom security control profile with CSE involvement.")
        if conf.key == "top-secret":
            notes.append(
                "Top Secret systems require dedicated infrastructure with enhanced physical, "
                "personnel, and TEMPEST controls."
            )
        return result("CLASSIFIED_HIGH", f"{conf.label} classification requires CSE engagement", notes)

    if conf.key == "protected-c":
        notes.append("Start from PBMM baseline and tailor upward for enhanced confidentiality.")
        notes.append(
            "Add enhanced access controls (AC-3 enhancements), audit (AU-2 enhancements), "
            "and encryption (SC-12, SC-13 enhancements)."
        )
        notes.append("Consider enhanced personnel security screening (PS-3 enhancements).")
        if integ.order >= HIGH or avail.order >= HIGH:
            notes.append("High integrity/availability combined with Protected C: significant additional controls required.")
        return result("PC_BASELINE", "Protected C requires tailored profile above PBMM", notes)

    if conf.key == "protected-b":
        if integ.key == "medium" and avail.key == "medium":
            if ctx.is_high_value_asset:
                notes.append(
                    "High Value Asset overlay adds 69 controls on top of PBMM for enhanced integrity and availability."
                )
                return result("PBMM_HVA", "Protected B / Medium / Medium + High Value Asset designation", notes)
            return result("PBMM", "Protected B / Medium / Medium: standard PBMM profile", notes)

        if integ.order >= HIGH or avail.order >= HIGH:
            notes.append("Start from PBMM baseline and tailor upward for high integrity/availability.")
            if integ.order >= HIGH:
                notes.append(
                    "High integrity: add enhanced input validation (SI-10 enhancements), data integrity "
                    "checks (SI-7 enhancements), dual authorization (AC-3(2))."
                )
            if avail.order >= HIGH:
                notes.append(
                    "High availability: add redundancy controls (CP-6, CP-7 enhancements), load balancing, "
                    "automated failover (CP-10 enhancements), shorter RPO/RTO targets."
                )
            return result(
                "PB_HIGH",
                f"Protected B with {integ.label} integrity / {avail.label} availability requires tailored PBMM",
                notes,
            )

        if integ.order <= LOW or avail.order <= LOW:
            notes.append(
                "Low integrity/availability with Protected B: PBMM is still the baseline, "
                "but some controls may be scoped down through tailoring."
            )
            notes.append("Document justification for any controls removed or reduced from the PBMM baseline.")
            low_dimension = "integrity" if integ.order <= LOW else "availability"
            return result(
                "PBMM",
                f"Protected B defaults to PBMM; low {low_dimension} allows limited tailoring down",
                notes,
            )

        return result("PBMM", "Protected B defaults to PBMM profile", notes)

    if conf.key == "protected-a":
        if integ.key == "low" and avail.key == "low":
            return result("CCCS_LOW", "Protected A / Low / Low: CCCS Low profile", notes)
        if integ.order >= MEDIUM or avail.order >= MEDIUM:
            notes.append(
                "Protected A with medium+ integrity/availability: use PBMM as baseline with "
                "potential confidentiality tailoring down."
            )
            notes.append("The higher of the three dimensions drives profile selection.")
            return result(
                "PBMM",
                f"Protected A but {integ.label} integrity / {avail.label} availability elevates to PBMM baseline",
                notes,
            )
        return result("CCCS_LOW", "Protected A with low impact: CCCS Low profile", notes)

    if conf.key == "unclassified":
        if ctx.has_pii:
            notes.append("PII present in unclassified system: automatically elevated to Protected A minimum treatment.")
            if integ.order >= MEDIUM or avail.order >= MEDIUM:
                return result("PBMM", "Unclassified with PII and medium+ I/A: PBMM baseline", notes)
            return result("CCCS_LOW", "Unclassified with PII: minimum CCCS Low profile", notes)

        if ctx.application_complexity:
            if integ.order >= MEDIUM or avail.order >= MEDIUM:
                notes.append("Unclassified but with application complexity and medium+ I/A: SA&A with reduced control set.")
                return result("CCCS_LOW", "Unclassified with application complexity and medium I/A", notes)
            notes.append("Unclassified with some complexity: basic security controls apply.")
            return result("CCCS_LOW", "Unclassified with application complexity", notes)

        return result("NONE", "Unclassified with no PII, low impact, and no application complexity", notes)

    # A catalogue level outside the known tracks
    logger.warning("No profile rule for confidentiality %r; defaulting to PBMM", conf.key)
    return result(
        "PBMM",
        "Defaulting to PBMM: review categorization",
        ["Unable to determine profile: defaulting to PBMM"],
    )
