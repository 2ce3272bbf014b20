"""Shared fixtures: member factory and a three-generation family."""
from __future__ import annotations

import pytest

from legacylink.family.members import FamilyMember, Relationships


def _member(
    member_id: str,
    gender: str = "other",
    *,
    name: str | None = None,
    parents: tuple[str, ...] = (),
    children: tuple[str, ...] = (),
    siblings: tuple[str, ...] = (),
    spouses: tuple[str, ...] = (),
    **fields,
) -> FamilyMember:
    return FamilyMember(
        id=member_id,
        name=name or member_id.replace("_", " ").title(),
        gender=gender,
        relationships=Relationships(
            parents=list(parents),
            children=list(children),
            siblings=list(siblings),
            spouses=list(spouses),
        ),
        **fields,
    )


@pytest.fixture
def make_member():
    return _member


@pytest.fixture
def family() -> list[FamilyMember]:
    """Symmetric three-generation family seen from ``me``.

    grandpa + grandma -> dad, aunt
    dad + mom -> me, sis          aunt + uncle -> cousin
    me + partner -> kid           sis + sis_husband -> niece
    partner_mom -> partner        partner_bro is partner's sibling
    """
    return [
        _member("grandpa", "male", spouses=("grandma",), children=("dad", "aunt")),
        _member("grandma", "female", spouses=("grandpa",), children=("dad", "aunt")),
        _member(
            "dad", "male",
            parents=("grandpa", "grandma"), siblings=("aunt",),
            spouses=("mom",), children=("me", "sis"),
        ),
        _member(
            "aunt", "female",
            parents=("grandpa", "grandma"), siblings=("dad",),
            spouses=("uncle",), children=("cousin",),
        ),
        _member("uncle", "male", spouses=("aunt",), children=("cousin",)),
        _member("mom", "female", spouses=("dad",), children=("me", "sis")),
        _member("cousin", "male", parents=("aunt", "uncle")),
        _member(
            "me", "other",
            parents=("dad", "mom"), siblings=("sis",),
            spouses=("partner",), children=("kid",),
        ),
        _member(
            "sis", "female",
            parents=("dad", "mom"), siblings=("me",),
            spouses=("sis_husband",), children=("niece",),
        ),
        _member("sis_husband", "male", spouses=("sis",), children=("niece",)),
        _member("niece", "female", parents=("sis", "sis_husband")),
        _member(
            "partner", "male",
            parents=("partner_mom",), siblings=("partner_bro",),
            spouses=("me",), children=("kid",),
        ),
        _member("partner_mom", "female", children=("partner",)),
        _member("partner_bro", "male", siblings=("partner",)),
        _member("kid", "female", parents=("me", "partner")),
    ]


@pytest.fixture
def by_id(family) -> dict[str, FamilyMember]:
    return {m.id: m for m in family}
