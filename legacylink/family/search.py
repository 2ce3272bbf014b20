"""Roster search with relevance scoring and attribute filters."""

from __future__ import annotations

from dataclasses import dataclass, field

from legacylink.family.members import FamilyMember

# (field label, attribute, score) in check order
_TEXT_FIELDS = (
    ("name", "name", 100),
    ("biography", "biography", 30),
    ("occupation", "occupation", 40),
    ("birthPlace", "birth_place", 35),
)
EXACT_NAME_BONUS = 50
FILTER_ONLY_SCORE = 10


@dataclass
class SearchFilters:
    gender: str | None = None
    has_photo: bool | None = None
    has_voice_note: bool | None = None
    has_media: bool | None = None
    living_status: str | None = None  # living | deceased

    def active(self) -> bool:
        return any(
            v is not None
            for v in (self.gender, self.has_photo, self.has_voice_note, self.has_media, self.living_status)
        )

    def accepts(self, m: FamilyMember) -> bool:
        if self.gender and m.gender != self.gender:
            return False
        if self.has_photo is not None and self.has_photo != m.has_photo:
            return False
        if self.has_voice_note is not None and self.has_voice_note != bool(m.voice_note_uri):
            return False
        if self.has_media is not None and self.has_media != bool(m.media_items):
            return False
        if self.living_status:
            status = "deceased" if m.is_deceased else "living"
            if status != self.living_status:
                return False
        return True


@dataclass
class SearchResult:
    member: FamilyMember
    relevance_score: int
    matched_fields: list[str] = field(default_factory=list)


def score_member(m: FamilyMember, query: str) -> tuple[int, list[str]]:
    """Relevance of one member for an already lower-cased query."""
    score = 0
    matched: list[str] = []
    if not query:
        return score, matched
    for label, attr, points in _TEXT_FIELDS:
        value = (getattr(m, attr) or "").lower()
        if query in value:
            score += points
            matched.append(label)
            if attr == "name" and value == query:
                score += EXACT_NAME_BONUS
    return score, matched


def search_members(
    members: list[FamilyMember],
    query: str = "",
    filters: SearchFilters | None = None,
) -> list[SearchResult]:
    """Members matching the query and filters, best match first.

    With neither a query nor an active filter there are no results.
    """
    filters = filters or SearchFilters()
    needle = query.lower().strip()
    filtering = filters.active()
    if not needle and not filtering:
        return []

    results: list[SearchResult] = []
    for m in members:
        if not filters.accepts(m):
            continue
        score, matched = score_member(m, needle)
        if score == 0:
            if not filtering:
                continue
            score = FILTER_ONLY_SCORE
        results.append(SearchResult(member=m, relevance_score=score, matched_fields=matched))

    # sorted() is stable, ties keep roster order
    return sorted(results, key=lambda r: r.relevance_score, reverse=True)
