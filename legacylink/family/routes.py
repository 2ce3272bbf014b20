"""Family tree API endpoints."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import datetime, timezone
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse

from legacylink.family import biography as bio
from legacylink.family.db import RosterStore, get_store
from legacylink.family.export import ExportOptions, backup_filename, export_json, render_html
from legacylink.family.insights import generate_insights
from legacylink.family.kinship import (
    RelationshipLabel,
    all_relationships_of,
    resolve_relationship,
    suggest_relationships,
)
from legacylink.family.layout import STYLES, layout_tree
from legacylink.family.members import (
    FamilyMember,
    InvalidRelationship,
    MemberNotFound,
    link_members,
    remove_member,
    unlink_members,
)
from legacylink.family.models import (
    BiographyIn,
    BiographyOut,
    ConnectionOut,
    CreateMemberIn,
    CreateTreeIn,
    ExportIn,
    InsightOut,
    JsonExportOut,
    KinshipOut,
    LayoutOut,
    LinkIn,
    MemberOut,
    NodeOut,
    RelationshipsOut,
    SearchIn,
    SearchResultOut,
    SuggestionOut,
    TimelineEventOut,
    TimelineYearOut,
    TreeDetailOut,
    TreeOut,
    UnlinkIn,
    UpdateMemberIn,
)
from legacylink.family.search import SearchFilters, search_members
from legacylink.family.timeline import TimelineEvent, build_timeline, group_by_year

logger = logging.getLogger("legacylink.family.routes")

router = APIRouter(prefix="/api/v1/trees", tags=["trees"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _tree_out(row: dict) -> TreeOut:
    return TreeOut(
        id=row["id"],
        title=row["title"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _member_out(m: FamilyMember) -> MemberOut:
    return MemberOut(
        id=m.id,
        name=m.name,
        gender=m.gender,
        date_of_birth=m.date_of_birth,
        date_of_death=m.date_of_death,
        birth_place=m.birth_place,
        occupation=m.occupation,
        biography=m.biography,
        photo_uri=m.photo_uri,
        voice_note_uri=m.voice_note_uri,
        social_media=m.social_media,
        media_items=m.media_items,
        relationships=RelationshipsOut(
            parents=m.relationships.parents,
            children=m.relationships.children,
            siblings=m.relationships.siblings,
            spouses=m.relationships.spouses,
        ),
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def _kinship_out(m: FamilyMember, label: RelationshipLabel) -> KinshipOut:
    return KinshipOut(
        member_id=m.id,
        name=m.name,
        relationship=label.relationship,
        description=label.description,
    )


def _event_out(e: TimelineEvent) -> TimelineEventOut:
    return TimelineEventOut(
        id=e.id,
        event_date=e.date,
        type=e.type,
        title=e.title,
        description=e.description,
        member_id=e.member.id,
        related_member_ids=[r.id for r in e.related_members],
    )


async def _load_roster(store: RosterStore, tree_id: UUID) -> tuple[dict, list[FamilyMember]]:
    tree = await store.get_tree(str(tree_id))
    if tree is None:
        raise HTTPException(404, "Tree not found")
    return tree, await store.load_members(str(tree_id))


def _find(members: list[FamilyMember], member_id: str) -> FamilyMember:
    for m in members:
        if m.id == member_id:
            return m
    raise HTTPException(404, f"Member not found: {member_id}")


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


# ---------------------------------------------------------------------------
# Tree CRUD
# ---------------------------------------------------------------------------

@router.post("", status_code=201)
async def create_tree(body: CreateTreeIn, store: RosterStore = Depends(get_store)) -> TreeOut:
    """Create a new, empty family tree."""
    row = await store.create_tree(body.title)
    logger.info("Created tree %s", row["id"])
    return _tree_out(row)


@router.get("")
async def list_trees(store: RosterStore = Depends(get_store)) -> list[TreeOut]:
    """List all trees, newest first."""
    return [_tree_out(r) for r in await store.list_trees()]


@router.get("/{tree_id}")
async def get_tree(tree_id: UUID, store: RosterStore = Depends(get_store)) -> TreeDetailOut:
    """Get a tree with its full roster."""
    tree, members = await _load_roster(store, tree_id)
    return TreeDetailOut(tree=_tree_out(tree), members=[_member_out(m) for m in members])


@router.delete("/{tree_id}")
async def delete_tree(tree_id: UUID, store: RosterStore = Depends(get_store)) -> dict:
    """Delete a tree and all of its members."""
    deleted = await store.delete_tree(str(tree_id))
    if not deleted:
        raise HTTPException(404, "Tree not found")
    logger.info("Deleted tree %s", tree_id)
    return {"deleted": True}


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@router.post("/{tree_id}/members", status_code=201)
async def create_member(
    tree_id: UUID,
    body: CreateMemberIn,
    store: RosterStore = Depends(get_store),
) -> MemberOut:
    """Add a member to the tree. Relationships are added separately."""
    _, members = await _load_roster(store, tree_id)
    now = _now()
    member = FamilyMember(
        id=str(uuid.uuid4()),
        name=body.name,
        gender=body.gender,
        date_of_birth=_iso(body.date_of_birth),
        date_of_death=_iso(body.date_of_death),
        birth_place=body.birth_place,
        occupation=body.occupation,
        biography=body.biography,
        photo_uri=body.photo_uri,
        voice_note_uri=body.voice_note_uri,
        social_media=body.social_media,
        media_items=body.media_items,
        created_at=now,
        updated_at=now,
    )
    await store.save_members(str(tree_id), [*members, member])
    return _member_out(member)


@router.patch("/{tree_id}/members/{member_id}")
async def update_member(
    tree_id: UUID,
    member_id: str,
    body: UpdateMemberIn,
    store: RosterStore = Depends(get_store),
) -> MemberOut:
    """Update a member's details. Fields sent as null are cleared."""
    _, members = await _load_roster(store, tree_id)
    member = _find(members, member_id)
    changes = body.model_dump(exclude_unset=True)
    for key in ("name", "gender"):
        if changes.get(key, "") is None:
            raise HTTPException(400, f"{key} cannot be null")
    for key, value in changes.items():
        if key in ("date_of_birth", "date_of_death"):
            value = _iso(value)
        elif key in ("social_media", "media_items") and value is None:
            value = {} if key == "social_media" else []
        setattr(member, key, value)
    member.updated_at = _now()
    await store.save_members(str(tree_id), members)
    return _member_out(member)


@router.delete("/{tree_id}/members/{member_id}")
async def delete_member(
    tree_id: UUID,
    member_id: str,
    store: RosterStore = Depends(get_store),
) -> dict:
    """Delete a member and remove it from every other member's relationships."""
    _, members = await _load_roster(store, tree_id)
    try:
        members = remove_member(members, member_id)
    except MemberNotFound as exc:
        raise HTTPException(404, str(exc))
    await store.save_members(str(tree_id), members)
    return {"deleted": True}


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------

@router.post("/{tree_id}/relationships", status_code=201)
async def create_relationship(
    tree_id: UUID,
    body: LinkIn,
    store: RosterStore = Depends(get_store),
) -> list[MemberOut]:
    """Record a relationship on both members. Returns the two updated members."""
    _, members = await _load_roster(store, tree_id)
    try:
        members = link_members(members, body.from_id, body.to_id, body.kind)
    except MemberNotFound as exc:
        raise HTTPException(404, str(exc))
    except InvalidRelationship as exc:
        raise HTTPException(400, str(exc))
    now = _now()
    touched = []
    for m in members:
        if m.id in (body.from_id, body.to_id):
            m.updated_at = now
            touched.append(m)
    await store.save_members(str(tree_id), members)
    return [_member_out(m) for m in touched]


@router.post("/{tree_id}/relationships/remove")
async def remove_relationship(
    tree_id: UUID,
    body: UnlinkIn,
    store: RosterStore = Depends(get_store),
) -> list[MemberOut]:
    """Remove every relationship between two members."""
    _, members = await _load_roster(store, tree_id)
    try:
        members = unlink_members(members, body.a_id, body.b_id)
    except MemberNotFound as exc:
        raise HTTPException(404, str(exc))
    await store.save_members(str(tree_id), members)
    return [_member_out(m) for m in members if m.id in (body.a_id, body.b_id)]


@router.get("/{tree_id}/kinship")
async def get_kinship(
    tree_id: UUID,
    person: str = Query(..., description="Member being labelled"),
    relative_to: str = Query(..., description="Member the label is relative to"),
    store: RosterStore = Depends(get_store),
) -> KinshipOut:
    """How ``person`` is related to ``relative_to``."""
    _, members = await _load_roster(store, tree_id)
    target = _find(members, person)
    label = resolve_relationship(target, _find(members, relative_to), members)
    return _kinship_out(target, label)


@router.get("/{tree_id}/members/{member_id}/relationships")
async def get_member_relationships(
    tree_id: UUID,
    member_id: str,
    store: RosterStore = Depends(get_store),
) -> list[KinshipOut]:
    """Every other member, labelled relative to this one."""
    _, members = await _load_roster(store, tree_id)
    person = _find(members, member_id)
    return [_kinship_out(m, label) for m, label in all_relationships_of(person, members)]


@router.get("/{tree_id}/members/{member_id}/suggestions")
async def get_suggestions(
    tree_id: UUID,
    member_id: str,
    store: RosterStore = Depends(get_store),
) -> list[SuggestionOut]:
    """Guesses for how this member may relate to the others."""
    _, members = await _load_roster(store, tree_id)
    person = _find(members, member_id)
    return [
        SuggestionOut(
            member_id=s.member.id,
            name=s.member.name,
            suggested_relationship=s.suggested_relationship,
            confidence=s.confidence,
        )
        for s in suggest_relationships(person, members)
    ]


# ---------------------------------------------------------------------------
# Tree views
# ---------------------------------------------------------------------------

@router.get("/{tree_id}/layout")
async def get_layout(
    tree_id: UUID,
    focus: str | None = None,
    style: Literal["tree", "map"] = "map",
    width: float | None = Query(None, gt=0, description="Map width, centers the rows"),
    store: RosterStore = Depends(get_store),
) -> LayoutOut:
    """Node positions and connections for drawing the tree."""
    _, members = await _load_roster(store, tree_id)
    layout_style = STYLES[style]
    if width is not None:
        layout_style = dataclasses.replace(layout_style, center_x=width / 2)
    result = layout_tree(members, focus_id=focus, style=layout_style)
    return LayoutOut(
        nodes=[
            NodeOut(
                id=n.id,
                name=n.member.name,
                gender=n.member.gender,
                x=n.x,
                y=n.y,
                generation=n.generation,
                level=n.level,
            )
            for n in result.nodes
        ],
        connections=[
            ConnectionOut(from_id=c.from_id, to_id=c.to_id, type=c.type)
            for c in result.connections
        ],
        width=result.width,
        height=result.height,
    )


@router.post("/{tree_id}/search")
async def search(
    tree_id: UUID,
    body: SearchIn,
    store: RosterStore = Depends(get_store),
) -> list[SearchResultOut]:
    """Search members by text and filters, best match first."""
    _, members = await _load_roster(store, tree_id)
    filters = SearchFilters(
        gender=body.gender,
        has_photo=body.has_photo,
        has_voice_note=body.has_voice_note,
        has_media=body.has_media,
        living_status=body.living_status,
    )
    return [
        SearchResultOut(
            member=_member_out(r.member),
            relevance_score=r.relevance_score,
            matched_fields=r.matched_fields,
        )
        for r in search_members(members, body.query, filters)
    ]


@router.get("/{tree_id}/timeline")
async def get_timeline(tree_id: UUID, store: RosterStore = Depends(get_store)) -> list[TimelineEventOut]:
    """Births, deaths and estimated marriages, newest first."""
    _, members = await _load_roster(store, tree_id)
    return [_event_out(e) for e in build_timeline(members)]


@router.get("/{tree_id}/timeline/years")
async def get_timeline_years(tree_id: UUID, store: RosterStore = Depends(get_store)) -> list[TimelineYearOut]:
    """Timeline events grouped by year, newest year first."""
    _, members = await _load_roster(store, tree_id)
    return [
        TimelineYearOut(year=year, events=[_event_out(e) for e in events])
        for year, events in group_by_year(build_timeline(members))
    ]


@router.get("/{tree_id}/insights")
async def get_insights(tree_id: UUID, store: RosterStore = Depends(get_store)) -> list[InsightOut]:
    """Profile gaps, unconnected members and one-sided relationships."""
    _, members = await _load_roster(store, tree_id)
    return [
        InsightOut(
            id=i.id,
            type=i.type,
            title=i.title,
            description=i.description,
            priority=i.priority,
            related_members=i.related_members,
            suggestion=i.suggestion,
            actionable=i.actionable,
        )
        for i in generate_insights(members)
    ]


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def _export_options(body: ExportIn, fmt: str) -> ExportOptions:
    return ExportOptions(
        format=fmt,
        include_photos=body.include_photos,
        include_voice_notes=body.include_voice_notes,
        include_media_gallery=body.include_media_gallery,
        layout=body.layout,
        orientation=body.orientation,
        paper_size=body.paper_size,
    )


@router.post("/{tree_id}/export/html", response_class=HTMLResponse)
async def export_html(
    tree_id: UUID,
    body: ExportIn,
    store: RosterStore = Depends(get_store),
) -> HTMLResponse:
    """Printable HTML document; the page size travels in response headers."""
    _, members = await _load_roster(store, tree_id)
    options = _export_options(body, "pdf")
    width, height = options.page_size()
    return HTMLResponse(
        render_html(members, options, title=body.title),
        headers={"X-Page-Width": str(width), "X-Page-Height": str(height)},
    )


@router.post("/{tree_id}/export/json")
async def export_backup(
    tree_id: UUID,
    body: ExportIn,
    store: RosterStore = Depends(get_store),
) -> JsonExportOut:
    """JSON backup of the whole roster."""
    _, members = await _load_roster(store, tree_id)
    return JsonExportOut(
        filename=backup_filename(),
        data=export_json(members, _export_options(body, "json")),
    )


# ---------------------------------------------------------------------------
# Biography
# ---------------------------------------------------------------------------

@router.post("/{tree_id}/members/{member_id}/biography")
async def generate_member_biography(
    tree_id: UUID,
    member_id: str,
    body: BiographyIn,
    store: RosterStore = Depends(get_store),
) -> BiographyOut:
    """Write a biography for a member, optionally saving it on the member."""
    _, members = await _load_roster(store, tree_id)
    member = _find(members, member_id)
    options = bio.BiographyOptions(
        style=body.style,
        length=body.length,
        include_relationships=body.include_relationships,
        cultural_context=body.cultural_context,
    )
    text, source = await bio.generate_biography(member, members, options)

    if body.save:
        member.biography = text
        member.updated_at = _now()
        await store.save_members(str(tree_id), members)
        logger.info("Saved %s biography for member %s", source, member_id)

    return BiographyOut(
        member_id=member_id,
        biography=text,
        source=source,
        suggestions=bio.suggest_improvements(text, member),
    )
