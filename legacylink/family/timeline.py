"""Family timeline — birth, death and estimated marriage events."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date

from legacylink.family.members import FamilyMember, index_roster

# No marriage dates are recorded; assume 25 years after the younger spouse's birth.
MARRIAGE_AGE_ESTIMATE = 25


@dataclass
class TimelineEvent:
    id: str
    date: date
    type: str  # birth, death, marriage
    title: str
    description: str
    member: FamilyMember
    related_members: list[FamilyMember] = field(default_factory=list)


def _parse(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _add_years(d: date, years: int) -> date:
    try:
        return d.replace(year=d.year + years)
    except ValueError:  # Feb 29
        return d.replace(year=d.year + years, day=28)


def build_timeline(members: list[FamilyMember]) -> list[TimelineEvent]:
    """All events, newest first."""
    index = index_roster(members)
    events: list[TimelineEvent] = []
    married: set[frozenset[str]] = set()

    for m in members:
        born = _parse(m.date_of_birth)
        if born:
            events.append(TimelineEvent(
                id=f"birth-{m.id}",
                date=born,
                type="birth",
                title=f"{m.name} was born",
                description=f"Born in {m.birth_place}" if m.birth_place else "Birth",
                member=m,
            ))

        died = _parse(m.date_of_death)
        if died:
            events.append(TimelineEvent(
                id=f"death-{m.id}",
                date=died,
                type="death",
                title=f"{m.name} passed away",
                description="Death",
                member=m,
            ))

        for spouse_id in m.relationships.spouses:
            spouse = index.get(spouse_id)
            pair = frozenset((m.id, spouse_id))
            if spouse is None or pair in married:
                continue
            spouse_born = _parse(spouse.date_of_birth)
            if not born or not spouse_born:
                continue
            married.add(pair)
            events.append(TimelineEvent(
                id=f"marriage-{m.id}-{spouse.id}",
                date=_add_years(max(born, spouse_born), MARRIAGE_AGE_ESTIMATE),
                type="marriage",
                title=f"{m.name} married {spouse.name}",
                description="Marriage",
                member=m,
                related_members=[spouse],
            ))

    return sorted(events, key=lambda e: e.date, reverse=True)


def group_by_year(events: list[TimelineEvent]) -> list[tuple[int, list[TimelineEvent]]]:
    """(year, events) pairs, newest year first."""
    groups: dict[int, list[TimelineEvent]] = defaultdict(list)
    for e in events:
        groups[e.date.year].append(e)
    return [(year, groups[year]) for year in sorted(groups, reverse=True)]
