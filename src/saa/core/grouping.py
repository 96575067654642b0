"""Group recommended controls by family for display."""

from __future__ import annotations

from typing import Iterable

from ..models.recommendation import FamilyGroup, RecommendedControl


def group_by_family(controls: Iterable[RecommendedControl]) -> list[FamilyGroup]:
    """Group controls by family code.

    Families appear in the order they are first seen in ``controls``; with
    the recommender's (family, id) ordering that is alphabetical by code.
    Every control lands in exactly one group.
    """
    grouped: dict[str, list[RecommendedControl]] = {}
    names: dict[str, str] = {}
    for control in controls:
        grouped.setdefault(control.family, []).append(control)
        names.setdefault(control.family, control.family_name)

    return [
        FamilyGroup(code=code, name=names[code], controls=tuple(members))
        for code, members in grouped.items()
    ]
