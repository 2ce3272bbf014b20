"""Kinship resolver — relationship labels from explicit edges.

Given a person, a reference member and the roster, walks the parents,
children, siblings and spouses lists outward from the reference member and
returns the first matching label from an ordered rule table. Anything
further than a first cousin or a direct in-law falls through to
"Family Member".

Pure functions on in-memory data, no DB access.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from legacylink.family.members import FamilyMember, index_roster, year_of

Index = dict[str, FamilyMember]


@dataclass(frozen=True)
class RelationshipLabel:
    relationship: str  # e.g. "Mother", "Cousin", "Brother-in-law"
    description: str  # e.g. "Parent", "Spouse's sibling"


FALLBACK = RelationshipLabel("Family Member", "Related")


def _gendered(gender: str, male: str, female: str, neutral: str) -> str:
    if gender == "male":
        return male
    if gender == "female":
        return female
    return neutral


def _via(index: Index, ids: list[str], edge: str, person_id: str) -> bool:
    """Is person_id in the ``edge`` list of any member in ``ids``?"""
    for mid in ids:
        m = index.get(mid)
        if m is not None and person_id in getattr(m.relationships, edge):
            return True
    return False


# ---------------------------------------------------------------------------
# Rule predicates: (person_id, relative_to, index) -> bool
# ---------------------------------------------------------------------------

def _is_parent(pid: str, rel: FamilyMember, index: Index) -> bool:
    return pid in rel.relationships.parents


def _is_child(pid: str, rel: FamilyMember, index: Index) -> bool:
    return pid in rel.relationships.children


def _is_spouse(pid: str, rel: FamilyMember, index: Index) -> bool:
    return pid in rel.relationships.spouses


def _is_sibling(pid: str, rel: FamilyMember, index: Index) -> bool:
    return pid in rel.relationships.siblings


def _is_grandparent(pid: str, rel: FamilyMember, index: Index) -> bool:
    return _via(index, rel.relationships.parents, "parents", pid)


def _is_grandchild(pid: str, rel: FamilyMember, index: Index) -> bool:
    return _via(index, rel.relationships.children, "children", pid)


def _is_aunt_uncle(pid: str, rel: FamilyMember, index: Index) -> bool:
    return _via(index, rel.relationships.parents, "siblings", pid)


def _is_nephew_niece(pid: str, rel: FamilyMember, index: Index) -> bool:
    return _via(index, rel.relationships.siblings, "children", pid)


def _is_cousin(pid: str, rel: FamilyMember, index: Index) -> bool:
    for parent_id in rel.relationships.parents:
        parent = index.get(parent_id)
        if parent and _via(index, parent.relationships.siblings, "children", pid):
            return True
    return False


def _is_parent_in_law(pid: str, rel: FamilyMember, index: Index) -> bool:
    return _via(index, rel.relationships.spouses, "parents", pid)


def _is_spouses_sibling(pid: str, rel: FamilyMember, index: Index) -> bool:
    return _via(index, rel.relationships.spouses, "siblings", pid)


def _is_siblings_spouse(pid: str, rel: FamilyMember, index: Index) -> bool:
    return _via(index, rel.relationships.siblings, "spouses", pid)


@dataclass(frozen=True)
class KinshipRule:
    name: str
    matches: Callable[[str, FamilyMember, Index], bool]
    terms: tuple[str, str, str]  # male, female, neutral
    description: str

    def label_for(self, person: FamilyMember) -> RelationshipLabel:
        return RelationshipLabel(_gendered(person.gender, *self.terms), self.description)


# Checked top to bottom, first match wins.
RULES: tuple[KinshipRule, ...] = (
    KinshipRule("parent", _is_parent, ("Father", "Mother", "Parent"), "Parent"),
    KinshipRule("child", _is_child, ("Son", "Daughter", "Child"), "Child"),
    KinshipRule("spouse", _is_spouse, ("Husband", "Wife", "Spouse"), "Spouse"),
    KinshipRule("sibling", _is_sibling, ("Brother", "Sister", "Sibling"), "Sibling"),
    KinshipRule(
        "grandparent", _is_grandparent,
        ("Grandfather", "Grandmother", "Grandparent"), "Grandparent",
    ),
    KinshipRule(
        "grandchild", _is_grandchild,
        ("Grandson", "Granddaughter", "Grandchild"), "Grandchild",
    ),
    KinshipRule("aunt_uncle", _is_aunt_uncle, ("Uncle", "Aunt", "Aunt/Uncle"), "Parent's sibling"),
    KinshipRule(
        "nephew_niece", _is_nephew_niece,
        ("Nephew", "Niece", "Nephew/Niece"), "Sibling's child",
    ),
    KinshipRule("cousin", _is_cousin, ("Cousin", "Cousin", "Cousin"), "Parent's sibling's child"),
    KinshipRule(
        "parent_in_law", _is_parent_in_law,
        ("Father-in-law", "Mother-in-law", "Parent-in-law"), "Spouse's parent",
    ),
    KinshipRule(
        "spouses_sibling", _is_spouses_sibling,
        ("Brother-in-law", "Sister-in-law", "Sibling-in-law"), "Spouse's sibling",
    ),
    KinshipRule(
        "siblings_spouse", _is_siblings_spouse,
        ("Brother-in-law", "Sister-in-law", "Sibling-in-law"), "Sibling's spouse",
    ),
)


def match_rule(person: FamilyMember, relative_to: FamilyMember, index: Index) -> KinshipRule | None:
    for rule in RULES:
        if rule.matches(person.id, relative_to, index):
            return rule
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def resolve_relationship(
    person: FamilyMember,
    relative_to: FamilyMember,
    all_members: list[FamilyMember],
) -> RelationshipLabel:
    """Label of ``person`` as seen from ``relative_to``.

    Only ``relative_to``'s edge lists, and the lists of members reached from
    them, are consulted. A one-sided edge recorded only on ``person`` is not
    seen.

    In-law rules run across all spouses at once, not spouse by spouse: when
    someone is both a sibling of the first spouse and a parent of the second,
    the parent-in-law label wins.
    """
    rule = match_rule(person, relative_to, index_roster(all_members))
    return rule.label_for(person) if rule else FALLBACK


def all_relationships_of(
    person: FamilyMember,
    all_members: list[FamilyMember],
) -> list[tuple[FamilyMember, RelationshipLabel]]:
    """Label every other roster member relative to ``person``."""
    index = index_roster(all_members)
    results: list[tuple[FamilyMember, RelationshipLabel]] = []
    for member in all_members:
        if member.id == person.id:
            continue
        rule = match_rule(member, person, index)
        results.append((member, rule.label_for(member) if rule else FALLBACK))
    return results


@dataclass
class RelationshipSuggestion:
    member: FamilyMember
    suggested_relationship: str  # parent, child, sibling
    confidence: str  # high, medium, low


def _last_name(name: str) -> str | None:
    parts = name.split()
    return parts[-1].lower() if parts else None


def suggest_relationships(
    new_member: FamilyMember,
    existing_members: list[FamilyMember],
) -> list[RelationshipSuggestion]:
    """Guess how a newly added member might relate to existing ones.

    Shared last name suggests a sibling. A birth-year gap of 20 to 40 years
    suggests parent/child, a gap of at most 10 suggests a sibling.
    """
    suggestions: list[RelationshipSuggestion] = []
    new_last = _last_name(new_member.name)
    new_year = year_of(new_member.date_of_birth)

    for member in existing_members:
        if member.id == new_member.id:
            continue
        if new_last and new_last == _last_name(member.name):
            suggestions.append(RelationshipSuggestion(member, "sibling", "medium"))

        year = year_of(member.date_of_birth)
        if new_year is None or year is None:
            continue
        gap = abs(new_year - year)
        if 20 <= gap <= 40:
            rel = "parent" if new_year < year else "child"
            suggestions.append(RelationshipSuggestion(member, rel, "medium"))
        elif gap <= 10:
            suggestions.append(RelationshipSuggestion(member, "sibling", "low"))

    return suggestions
