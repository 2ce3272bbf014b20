"""Pydantic models for the family tree API."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

Gender = Literal["male", "female", "other"]


# ---------------------------------------------------------------------------
# Tree CRUD
# ---------------------------------------------------------------------------

class CreateTreeIn(BaseModel):
    title: str | None = None


class TreeOut(BaseModel):
    id: UUID
    title: str | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class RelationshipsOut(BaseModel):
    parents: list[str] = []
    children: list[str] = []
    siblings: list[str] = []
    spouses: list[str] = []


class CreateMemberIn(BaseModel):
    name: str = Field(min_length=1)
    gender: Gender = "other"
    date_of_birth: date | None = None
    date_of_death: date | None = None
    birth_place: str | None = None
    occupation: str | None = None
    biography: str | None = None
    photo_uri: str | None = None
    voice_note_uri: str | None = None
    social_media: dict[str, str] = {}
    media_items: list[dict] = []


class UpdateMemberIn(BaseModel):
    name: str | None = None
    gender: Gender | None = None
    date_of_birth: date | None = None
    date_of_death: date | None = None
    birth_place: str | None = None
    occupation: str | None = None
    biography: str | None = None
    photo_uri: str | None = None
    voice_note_uri: str | None = None
    social_media: dict[str, str] | None = None
    media_items: list[dict] | None = None


class MemberOut(BaseModel):
    id: str
    name: str
    gender: str
    date_of_birth: str | None = None
    date_of_death: str | None = None
    birth_place: str | None = None
    occupation: str | None = None
    biography: str | None = None
    photo_uri: str | None = None
    voice_note_uri: str | None = None
    social_media: dict[str, str] = {}
    media_items: list[dict] = []
    relationships: RelationshipsOut
    created_at: str | None = None
    updated_at: str | None = None


class TreeDetailOut(BaseModel):
    tree: TreeOut
    members: list[MemberOut]


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------

class LinkIn(BaseModel):
    from_id: str
    to_id: str
    kind: Literal["parent", "child", "spouse", "sibling"]


class UnlinkIn(BaseModel):
    a_id: str
    b_id: str


class KinshipOut(BaseModel):
    member_id: str
    name: str
    relationship: str  # e.g. "Grandmother"
    description: str  # e.g. "Grandparent"


class SuggestionOut(BaseModel):
    member_id: str
    name: str
    suggested_relationship: str
    confidence: str


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

class NodeOut(BaseModel):
    id: str
    name: str
    gender: str
    x: float
    y: float
    generation: int
    level: int


class ConnectionOut(BaseModel):
    from_id: str
    to_id: str
    type: str


class LayoutOut(BaseModel):
    nodes: list[NodeOut]
    connections: list[ConnectionOut]
    width: float
    height: float


# ---------------------------------------------------------------------------
# Search / timeline / insights
# ---------------------------------------------------------------------------

class SearchIn(BaseModel):
    query: str = ""
    gender: Gender | None = None
    has_photo: bool | None = None
    has_voice_note: bool | None = None
    has_media: bool | None = None
    living_status: Literal["living", "deceased"] | None = None


class SearchResultOut(BaseModel):
    member: MemberOut
    relevance_score: int
    matched_fields: list[str]


class TimelineEventOut(BaseModel):
    id: str
    event_date: date
    type: str
    title: str
    description: str
    member_id: str
    related_member_ids: list[str] = []


class TimelineYearOut(BaseModel):
    year: int
    events: list[TimelineEventOut]


class InsightOut(BaseModel):
    id: str
    type: str
    title: str
    description: str
    priority: str
    related_members: list[str]
    suggestion: str | None = None
    actionable: bool = True


# ---------------------------------------------------------------------------
# Export / biography
# ---------------------------------------------------------------------------

class ExportIn(BaseModel):
    title: str = "Family Tree"
    layout: Literal["tree", "list", "timeline", "photobook"] = "tree"
    include_photos: bool = True
    include_voice_notes: bool = False
    include_media_gallery: bool = False
    orientation: Literal["portrait", "landscape"] = "portrait"
    paper_size: Literal["A4", "Letter", "Legal"] = "A4"


class JsonExportOut(BaseModel):
    filename: str
    data: dict


class BiographyIn(BaseModel):
    style: Literal["formal", "casual", "storytelling", "historical"] = "storytelling"
    length: Literal["short", "medium", "long"] = "medium"
    include_relationships: bool = True
    cultural_context: str | None = None
    save: bool = False


class BiographyOut(BaseModel):
    member_id: str
    biography: str
    source: str  # openai, anthropic, template
    suggestions: list[str]
