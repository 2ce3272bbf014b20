"""Tests for the kinship resolver."""
from __future__ import annotations

import pytest

from legacylink.family.kinship import (
    FALLBACK,
    RULES,
    RelationshipLabel,
    all_relationships_of,
    resolve_relationship,
    suggest_relationships,
)


def label(by_id, family, person, relative_to) -> str:
    return resolve_relationship(by_id[person], by_id[relative_to], family).relationship


class TestDirectRelationships:
    """Parent, child, spouse and sibling edges."""

    @pytest.mark.parametrize(
        ("person", "relative_to", "expected"),
        [
            ("dad", "me", "Father"),
            ("mom", "me", "Mother"),
            ("me", "dad", "Child"),
            ("sis", "dad", "Daughter"),
            ("partner", "me", "Husband"),
            ("me", "partner", "Spouse"),
            ("sis", "me", "Sister"),
            ("aunt", "dad", "Sister"),
        ],
    )
    def test_direct_labels(self, by_id, family, person, relative_to, expected):
        assert label(by_id, family, person, relative_to) == expected

    def test_parent_child_symmetry(self, by_id, family):
        """Every child edge gives Parent one way and Child the other."""
        for parent in family:
            for child_id in parent.relationships.children:
                child = by_id[child_id]
                assert resolve_relationship(parent, child, family).description == "Parent"
                assert resolve_relationship(child, parent, family).description == "Child"

    def test_description_travels_with_label(self, by_id, family):
        result = resolve_relationship(by_id["mom"], by_id["me"], family)
        assert result == RelationshipLabel("Mother", "Parent")


class TestExtendedRelationships:
    """Labels derived one or two hops away."""

    @pytest.mark.parametrize(
        ("person", "relative_to", "expected"),
        [
            ("grandpa", "me", "Grandfather"),
            ("grandma", "sis", "Grandmother"),
            ("me", "grandpa", "Grandchild"),
            ("niece", "dad", "Granddaughter"),
            ("aunt", "me", "Aunt"),
            ("dad", "cousin", "Uncle"),
            ("sis", "aunt", "Niece"),
            ("me", "aunt", "Nephew/Niece"),
            ("niece", "me", "Niece"),
            ("cousin", "me", "Cousin"),
            ("me", "cousin", "Cousin"),
        ],
    )
    def test_extended_labels(self, by_id, family, person, relative_to, expected):
        assert label(by_id, family, person, relative_to) == expected

    def test_cousin_is_not_gendered(self, by_id, family):
        assert by_id["cousin"].gender == "male"
        assert label(by_id, family, "cousin", "sis") == "Cousin"


class TestInLaws:
    """Spouse's family and sibling's spouse."""

    def test_spouses_parent(self, by_id, family):
        result = resolve_relationship(by_id["partner_mom"], by_id["me"], family)
        assert result == RelationshipLabel("Mother-in-law", "Spouse's parent")

    def test_spouses_sibling(self, by_id, family):
        result = resolve_relationship(by_id["partner_bro"], by_id["me"], family)
        assert result == RelationshipLabel("Brother-in-law", "Spouse's sibling")

    def test_siblings_spouse(self, by_id, family):
        result = resolve_relationship(by_id["sis_husband"], by_id["me"], family)
        assert result == RelationshipLabel("Brother-in-law", "Sibling's spouse")

    def test_parent_in_law_from_other_side(self, by_id, family):
        assert label(by_id, family, "dad", "partner") == "Father-in-law"
        assert label(by_id, family, "sis", "partner") == "Sister-in-law"

    def test_sibling_of_spouse_scenario(self, make_member):
        """A and B married, C is A's sibling: C is B's sister-in-law."""
        a = make_member("a", "male", spouses=("b",), siblings=("c",))
        b = make_member("b", "female", spouses=("a",))
        c = make_member("c", "female", siblings=("a",))
        assert resolve_relationship(c, b, [a, b, c]).relationship == "Sister-in-law"

        c.gender = "male"
        assert resolve_relationship(c, b, [a, b, c]).relationship == "Brother-in-law"


class TestFallback:
    """Relationships outside the rule table."""

    def test_spouse_of_aunt_falls_through(self, by_id, family):
        assert resolve_relationship(by_id["uncle"], by_id["me"], family) == FALLBACK

    def test_great_grandchild_falls_through(self, by_id, family):
        assert label(by_id, family, "kid", "grandpa") == "Family Member"

    def test_unconnected_members(self, make_member):
        a = make_member("a")
        b = make_member("b")
        assert resolve_relationship(a, b, [a, b]) == RelationshipLabel("Family Member", "Related")

    def test_dangling_ids_are_skipped(self, make_member):
        a = make_member("a", parents=("ghost",), siblings=("nobody",))
        b = make_member("b")
        assert resolve_relationship(b, a, [a, b]) == FALLBACK

    def test_one_sided_edge_is_directional(self, make_member):
        """Only the reference member's own lists are read for direct edges."""
        alice = make_member("alice", "female")
        bob = make_member("bob", "male", parents=("alice",))
        roster = [alice, bob]
        assert resolve_relationship(alice, bob, roster).relationship == "Mother"
        assert resolve_relationship(bob, alice, roster) == FALLBACK


class TestRuleOrder:
    """First match wins."""

    def test_direct_edge_beats_extended(self, make_member):
        # x is both a parent and (erroneously) a grandparent of me
        x = make_member("x", "male", children=("p", "me"))
        p = make_member("p", parents=("x",), children=("me",))
        me = make_member("me", parents=("p", "x"))
        assert resolve_relationship(x, me, [x, p, me]).relationship == "Father"

    def test_parent_in_law_checked_across_all_spouses(self, make_member):
        """x is a sibling of the first spouse and a parent of the second."""
        me = make_member("me", spouses=("s1", "s2"))
        s1 = make_member("s1", spouses=("me",), siblings=("x",))
        s2 = make_member("s2", spouses=("me",), parents=("x",))
        x = make_member("x", "male", siblings=("s1",), children=("s2",))
        result = resolve_relationship(x, me, [me, s1, s2, x])
        assert result == RelationshipLabel("Father-in-law", "Spouse's parent")

    def test_rule_names_are_unique(self):
        names = [r.name for r in RULES]
        assert len(names) == len(set(names))
        assert names[:4] == ["parent", "child", "spouse", "sibling"]


class TestAllRelationships:
    """Batch labelling."""

    def test_excludes_self(self, by_id, family):
        results = all_relationships_of(by_id["me"], family)
        assert len(results) == len(family) - 1
        assert all(m.id != "me" for m, _ in results)

    def test_labels_are_relative_to_person(self, by_id, family):
        labels = {m.id: lbl.relationship for m, lbl in all_relationships_of(by_id["me"], family)}
        assert labels["dad"] == "Father"
        assert labels["kid"] == "Daughter"
        assert labels["partner_bro"] == "Brother-in-law"
        assert labels["uncle"] == "Family Member"

    def test_deterministic(self, by_id, family):
        first = all_relationships_of(by_id["sis"], family)
        second = all_relationships_of(by_id["sis"], family)
        assert [(m.id, lbl) for m, lbl in first] == [(m.id, lbl) for m, lbl in second]


class TestSuggestions:
    """Heuristic suggestions for new members."""

    def test_shared_last_name(self, make_member):
        new = make_member("n", name="Ada Lovelace")
        other = make_member("o", name="Byron Lovelace")
        stranger = make_member("s", name="Grace Hopper")
        suggestions = suggest_relationships(new, [other, stranger])
        assert [(s.member.id, s.suggested_relationship, s.confidence) for s in suggestions] == [
            ("o", "sibling", "medium"),
        ]

    def test_age_gap_parent(self, make_member):
        new = make_member("n", name="Old One", date_of_birth="1940-05-01")
        younger = make_member("y", name="Young One", date_of_birth="1970-01-01")
        rels = [s.suggested_relationship for s in suggest_relationships(new, [younger])]
        assert "parent" in rels

    def test_age_gap_child_and_sibling(self, make_member):
        new = make_member("n", name="A B", date_of_birth="1990-01-01")
        older = make_member("o", name="C D", date_of_birth="1960-01-01")
        close = make_member("c", name="E F", date_of_birth="1985-06-01")
        result = {s.member.id: (s.suggested_relationship, s.confidence) for s in suggest_relationships(new, [older, close])}
        assert result["o"] == ("child", "medium")
        assert result["c"] == ("sibling", "low")

    def test_unknown_dates_ignored(self, make_member):
        new = make_member("n", name="A B", date_of_birth="not a date")
        other = make_member("o", name="C D", date_of_birth="1960-01-01")
        assert suggest_relationships(new, [other]) == []
