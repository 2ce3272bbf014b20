"""Tests for the family timeline."""
from __future__ import annotations

from datetime import date

from legacylink.family.timeline import build_timeline, group_by_year


class TestBuildTimeline:
    """Birth, death and marriage events."""

    def test_births_and_deaths(self, make_member):
        m = make_member(
            "rose", "female", name="Rose",
            date_of_birth="1920-04-01", date_of_death="2001-08-15", birth_place="Cork",
        )
        events = build_timeline([m])
        assert [(e.type, e.date) for e in events] == [
            ("death", date(2001, 8, 15)),
            ("birth", date(1920, 4, 1)),
        ]
        assert events[1].title == "Rose was born"
        assert events[1].description == "Born in Cork"
        assert events[0].title == "Rose passed away"

    def test_marriage_once_per_pair(self, make_member):
        a = make_member("a", name="Al", date_of_birth="1950-06-10", spouses=("b",))
        b = make_member("b", name="Bea", date_of_birth="1953-02-01", spouses=("a",))
        marriages = [e for e in build_timeline([a, b]) if e.type == "marriage"]
        assert len(marriages) == 1
        assert marriages[0].date == date(1978, 2, 1)
        assert marriages[0].title == "Al married Bea"
        assert [r.id for r in marriages[0].related_members] == ["b"]

    def test_marriage_needs_both_birth_dates(self, make_member):
        a = make_member("a", date_of_birth="1950-06-10", spouses=("b",))
        b = make_member("b", spouses=("a",))
        assert [e.type for e in build_timeline([a, b])] == ["birth"]

    def test_leap_day_marriage(self, make_member):
        a = make_member("a", date_of_birth="1952-02-29", spouses=("b",))
        b = make_member("b", date_of_birth="1940-01-01", spouses=("a",))
        marriage = next(e for e in build_timeline([a, b]) if e.type == "marriage")
        assert marriage.date == date(1977, 2, 28)

    def test_undated_members_skipped(self, make_member):
        assert build_timeline([make_member("a", date_of_birth="someday")]) == []

    def test_newest_first(self, family, by_id):
        by_id["grandpa"].date_of_birth = "1930-01-01"
        by_id["me"].date_of_birth = "1985-01-01"
        events = build_timeline(family)
        assert [e.member.id for e in events] == ["me", "grandpa"]


class TestGroupByYear:
    """Year buckets."""

    def test_groups_newest_year_first(self, make_member):
        a = make_member("a", date_of_birth="1990-01-01")
        b = make_member("b", date_of_birth="1990-09-09")
        c = make_member("c", date_of_birth="1960-05-05")
        groups = group_by_year(build_timeline([a, b, c]))
        assert [(year, [e.member.id for e in events]) for year, events in groups] == [
            (1990, ["b", "a"]),
            (1960, ["c"]),
        ]

    def test_empty(self):
        assert group_by_year([]) == []
