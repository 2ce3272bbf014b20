"""Discovery insights: incomplete profiles, unconnected members, one-sided edges."""

from __future__ import annotations

from dataclasses import dataclass, field

from legacylink.family.members import FamilyMember, find_asymmetric_edges, index_roster

_PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}

_INVERSE_LABEL = {
    "parents": "child",
    "children": "parent",
    "siblings": "sibling",
    "spouses": "spouse",
}


@dataclass
class FamilyInsight:
    id: str
    type: str  # missing_info, connection_suggestion, story_opportunity, data_quality
    title: str
    description: str
    priority: str  # high, medium, low
    related_members: list[str] = field(default_factory=list)
    suggestion: str | None = None
    actionable: bool = True


def missing_fields(m: FamilyMember) -> list[str]:
    missing = []
    if not m.date_of_birth:
        missing.append("birth date")
    if not m.birth_place:
        missing.append("birth place")
    if not m.occupation:
        missing.append("occupation")
    if not m.has_photo and not m.media_items:
        missing.append("photos")
    if not m.biography:
        missing.append("biography")
    if not m.voice_note_uri:
        missing.append("voice story")
    return missing


def generate_insights(members: list[FamilyMember]) -> list[FamilyInsight]:
    """Insights for the whole roster, highest priority first."""
    insights: list[FamilyInsight] = []

    for m in members:
        missing = missing_fields(m)
        if missing:
            insights.append(FamilyInsight(
                id=f"missing-{m.id}",
                type="missing_info",
                title=f"Complete {m.name}'s Profile",
                description=f"Missing: {', '.join(missing)}",
                priority="high" if len(missing) > 3 else "medium",
                related_members=[m.id],
                suggestion=f"Add {missing[0]} to enrich {m.name}'s story",
            ))

    for m in members:
        if m.relationships.is_empty():
            insights.append(FamilyInsight(
                id=f"connection-{m.id}",
                type="connection_suggestion",
                title=f"Connect {m.name} to Family",
                description=f"{m.name} has no recorded family connections",
                priority="high",
                related_members=[m.id],
                suggestion="Add parents, siblings, or spouse relationships",
            ))

    without_bio = [m.id for m in members if not m.biography]
    if without_bio:
        insights.append(FamilyInsight(
            id="story-opportunity-biographies",
            type="story_opportunity",
            title="Capture Life Stories",
            description=f"{len(without_bio)} members need their stories told",
            priority="medium",
            related_members=without_bio,
            suggestion="Use the biography generator to create life stories",
        ))

    index = index_roster(members)
    for member_id, edge, other_id in find_asymmetric_edges(members):
        member, other = index[member_id], index[other_id]
        insights.append(FamilyInsight(
            id=f"asymmetric-{member_id}-{edge}-{other_id}",
            type="data_quality",
            title=f"Check {member.name} and {other.name}",
            description=(
                f"{member.name} lists {other.name} under {edge}, "
                f"but {other.name} does not list {member.name} as a {_INVERSE_LABEL[edge]}"
            ),
            priority="low",
            related_members=[member_id, other_id],
            suggestion="Re-save the relationship so both members record it",
        ))

    return sorted(insights, key=lambda i: _PRIORITY_ORDER[i.priority], reverse=True)
