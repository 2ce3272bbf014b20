"""Family member data model and roster mutation helpers.

The four relationship lists on each member are the only stored edges in the
family graph. Everything else (grandparents, cousins, in-laws) is derived by
the kinship and layout modules.

Pure functions on in-memory data; mutation helpers return a new roster and
leave their input untouched.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date

GENDERS = ("male", "female", "other")
EDGE_LISTS = ("parents", "children", "siblings", "spouses")
LINK_KINDS = ("parent", "child", "spouse", "sibling")


class MemberNotFound(ValueError):
    """Raised when a member id is not in the roster."""


class InvalidRelationship(ValueError):
    """Raised for self links and unknown link kinds."""


@dataclass
class Relationships:
    parents: list[str] = field(default_factory=list)
    children: list[str] = field(default_factory=list)
    siblings: list[str] = field(default_factory=list)
    spouses: list[str] = field(default_factory=list)

    def all_ids(self) -> set[str]:
        return set(self.parents) | set(self.children) | set(self.siblings) | set(self.spouses)

    def is_empty(self) -> bool:
        return not (self.parents or self.children or self.siblings or self.spouses)


@dataclass
class FamilyMember:
    id: str
    name: str
    gender: str = "other"
    date_of_birth: str | None = None
    date_of_death: str | None = None
    birth_place: str | None = None
    occupation: str | None = None
    biography: str | None = None
    photo_uri: str | None = None
    voice_note_uri: str | None = None
    social_media: dict[str, str] = field(default_factory=dict)
    media_items: list[dict] = field(default_factory=list)
    relationships: Relationships = field(default_factory=Relationships)
    created_at: str | None = None
    updated_at: str | None = None

    def __post_init__(self) -> None:
        if self.gender not in GENDERS:
            self.gender = "other"

    @property
    def is_deceased(self) -> bool:
        return bool(self.date_of_death)

    @property
    def birth_year(self) -> int | None:
        return year_of(self.date_of_birth)

    @property
    def death_year(self) -> int | None:
        return year_of(self.date_of_death)

    @property
    def has_photo(self) -> bool:
        if self.photo_uri:
            return True
        return any(item.get("type") == "photo" for item in self.media_items)

    @classmethod
    def from_dict(cls, data: dict) -> FamilyMember:
        """Build a member from the app's camelCase JSON document."""
        rels = data.get("relationships") or {}
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            gender=data.get("gender") or "other",
            date_of_birth=data.get("dateOfBirth"),
            date_of_death=data.get("dateOfDeath"),
            birth_place=data.get("birthPlace"),
            occupation=data.get("occupation"),
            biography=data.get("biography"),
            photo_uri=data.get("photoUri"),
            voice_note_uri=data.get("voiceNoteUri"),
            social_media=dict(data.get("socialMedia") or {}),
            media_items=list(data.get("mediaItems") or []),
            relationships=Relationships(
                parents=[str(i) for i in rels.get("parents") or []],
                children=[str(i) for i in rels.get("children") or []],
                siblings=[str(i) for i in rels.get("siblings") or []],
                spouses=[str(i) for i in rels.get("spouses") or []],
            ),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "gender": self.gender,
            "dateOfBirth": self.date_of_birth,
            "dateOfDeath": self.date_of_death,
            "birthPlace": self.birth_place,
            "occupation": self.occupation,
            "biography": self.biography,
            "photoUri": self.photo_uri,
            "voiceNoteUri": self.voice_note_uri,
            "socialMedia": dict(self.social_media),
            "mediaItems": [dict(item) for item in self.media_items],
            "relationships": {
                "parents": list(self.relationships.parents),
                "children": list(self.relationships.children),
                "siblings": list(self.relationships.siblings),
                "spouses": list(self.relationships.spouses),
            },
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------

def year_of(value: str | None) -> int | None:
    """Year of an ISO date string, or None when absent or unparseable."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10]).year
    except ValueError:
        return None


def index_roster(members: list[FamilyMember]) -> dict[str, FamilyMember]:
    """Map member id to member. Later duplicates do not replace earlier ones."""
    index: dict[str, FamilyMember] = {}
    for m in members:
        index.setdefault(m.id, m)
    return index


# ---------------------------------------------------------------------------
# Mutation boundary
# ---------------------------------------------------------------------------

def _append(ids: list[str], value: str) -> None:
    if value not in ids:
        ids.append(value)


def _require(index: dict[str, FamilyMember], member_id: str) -> FamilyMember:
    member = index.get(member_id)
    if member is None:
        raise MemberNotFound(f"Member not found: {member_id}")
    return member


def link_members(
    members: list[FamilyMember],
    from_id: str,
    to_id: str,
    kind: str,
) -> list[FamilyMember]:
    """Record a relationship on both endpoints and return the new roster.

    kind is read from the point of view of ``from_id``: ``parent`` means
    from is the parent of to, ``child`` means from is the child of to.
    """
    if kind not in LINK_KINDS:
        raise InvalidRelationship(f"Invalid relationship kind: {kind}")
    if from_id == to_id:
        raise InvalidRelationship("A member cannot be related to themselves")

    roster = copy.deepcopy(members)
    index = index_roster(roster)
    src = _require(index, from_id).relationships
    dst = _require(index, to_id).relationships

    if kind == "parent":
        _append(src.children, to_id)
        _append(dst.parents, from_id)
    elif kind == "child":
        _append(src.parents, to_id)
        _append(dst.children, from_id)
    elif kind == "spouse":
        _append(src.spouses, to_id)
        _append(dst.spouses, from_id)
    else:
        _append(src.siblings, to_id)
        _append(dst.siblings, from_id)
    return roster


def _strip(rels: Relationships, member_id: str) -> None:
    for name in EDGE_LISTS:
        ids = getattr(rels, name)
        if member_id in ids:
            setattr(rels, name, [i for i in ids if i != member_id])


def unlink_members(members: list[FamilyMember], a_id: str, b_id: str) -> list[FamilyMember]:
    """Remove every edge between two members, on both sides."""
    roster = copy.deepcopy(members)
    index = index_roster(roster)
    a = _require(index, a_id)
    b = _require(index, b_id)
    _strip(a.relationships, b_id)
    _strip(b.relationships, a_id)
    return roster


def remove_member(members: list[FamilyMember], member_id: str) -> list[FamilyMember]:
    """Delete a member and drop its id from everyone else's edge lists."""
    index = index_roster(members)
    _require(index, member_id)
    roster = [copy.deepcopy(m) for m in members if m.id != member_id]
    for m in roster:
        _strip(m.relationships, member_id)
    return roster


_INVERSE = {
    "parents": "children",
    "children": "parents",
    "siblings": "siblings",
    "spouses": "spouses",
}


def find_asymmetric_edges(members: list[FamilyMember]) -> list[tuple[str, str, str]]:
    """One-sided edges as (member_id, list_name, other_id).

    An edge pointing at an id outside the roster is not reported here.
    """
    index = index_roster(members)
    found: list[tuple[str, str, str]] = []
    for m in members:
        for name in EDGE_LISTS:
            for other_id in getattr(m.relationships, name):
                other = index.get(other_id)
                if other is None:
                    continue
                if m.id not in getattr(other.relationships, _INVERSE[name]):
                    found.append((m.id, name, other_id))
    return found
