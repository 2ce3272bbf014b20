"""Export — HTML family tree document and JSON backup.

The HTML is handed to the client's print service to become a PDF; nothing
here renders binary formats.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape

from legacylink.family.members import FamilyMember

EXPORT_VERSION = "1.0"

LAYOUTS = ("tree", "list", "timeline", "photobook")
PAPER_SIZES = {
    "A4": (595, 842),
    "Letter": (612, 792),
    "Legal": (612, 1008),
}


@dataclass
class ExportOptions:
    format: str = "pdf"  # pdf, json, image
    include_photos: bool = True
    include_voice_notes: bool = False
    include_media_gallery: bool = False
    layout: str = "tree"
    orientation: str = "portrait"
    paper_size: str = "A4"

    def page_size(self) -> tuple[int, int]:
        width, height = PAPER_SIZES.get(self.paper_size, PAPER_SIZES["A4"])
        if self.orientation == "landscape":
            return height, width
        return width, height

    def to_dict(self) -> dict:
        return {
            "format": self.format,
            "includePhotos": self.include_photos,
            "includeVoiceNotes": self.include_voice_notes,
            "includeMediaGallery": self.include_media_gallery,
            "layout": self.layout,
            "orientation": self.orientation,
            "paperSize": self.paper_size,
        }


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

_STYLES = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body { font-family: Georgia, serif; color: #1F2937; padding: 24px; }
.header { text-align: center; margin-bottom: 32px; }
.header h1 { font-size: 32px; color: #92400E; }
.subtitle { color: #6B7280; margin-top: 4px; }
.member-card { display: flex; gap: 12px; padding: 12px; border: 1px solid #E5E7EB;
  border-radius: 8px; margin-bottom: 12px; page-break-inside: avoid; }
.member-photo { width: 64px; height: 64px; border-radius: 32px; object-fit: cover; }
.photo-placeholder { width: 64px; height: 64px; border-radius: 32px; background: #F3F4F6;
  display: flex; align-items: center; justify-content: center; }
.member-name { font-size: 18px; }
.member-lifespan, .member-occupation, .member-location { color: #6B7280; font-size: 14px; }
.member-bio { margin-top: 8px; font-size: 14px; line-height: 1.5; }
.tree-branch { margin-left: 24px; }
.tree-branch.level-0 { margin-left: 0; }
.children { border-left: 2px solid #D97706; padding-left: 12px; }
.timeline-item { display: flex; gap: 16px; }
.timeline-date { width: 64px; font-weight: bold; color: #92400E; }
.footer { text-align: center; margin-top: 32px; color: #9CA3AF; font-size: 12px; }
"""


def lifespan(m: FamilyMember) -> str:
    born = m.birth_year
    birth = str(born) if born is not None else "Unknown"
    died = m.death_year
    return f"{birth} - {died}" if died is not None else f"{birth} - Present"


def member_card(m: FamilyMember, options: ExportOptions) -> str:
    name = escape(m.name)
    if options.include_photos and m.photo_uri:
        photo = f'<img src="{escape(m.photo_uri)}" alt="{name}" class="member-photo">'
    else:
        photo = '<div class="photo-placeholder">&#128247;</div>'

    lines = [
        f'<h3 class="member-name">{name}</h3>',
        f'<p class="member-lifespan">{lifespan(m)}</p>',
    ]
    if m.occupation:
        lines.append(f'<p class="member-occupation">{escape(m.occupation)}</p>')
    if m.birth_place:
        lines.append(f'<p class="member-location">{escape(m.birth_place)}</p>')
    if m.biography and options.layout == "list":
        lines.append(f'<p class="member-bio">{escape(m.biography)}</p>')

    info = "".join(lines)
    return f'<div class="member-card">{photo}<div class="member-info">{info}</div></div>'


def _tree_branch(
    m: FamilyMember,
    members: list[FamilyMember],
    options: ExportOptions,
    level: int,
    path: frozenset[str],
) -> str:
    children = [
        c for c in members
        if m.id in c.relationships.parents and c.id not in path
    ]
    branch = member_card(m, options)
    if children:
        inner = "".join(
            _tree_branch(c, members, options, level + 1, path | {c.id}) for c in children
        )
        branch += f'<div class="children">{inner}</div>'
    return f'<div class="tree-branch level-{level}">{branch}</div>'


def tree_section(members: list[FamilyMember], options: ExportOptions) -> str:
    roots = [m for m in members if not m.relationships.parents]
    body = "".join(_tree_branch(r, members, options, 0, frozenset({r.id})) for r in roots)
    return f'<div class="tree-layout">{body}</div>'


def list_section(members: list[FamilyMember], options: ExportOptions) -> str:
    ordered = sorted(members, key=lambda m: m.name.casefold())
    body = "".join(member_card(m, options) for m in ordered)
    return f'<div class="list-layout">{body}</div>'


def timeline_section(members: list[FamilyMember], options: ExportOptions) -> str:
    dated = sorted(
        (m for m in members if m.birth_year is not None),
        key=lambda m: m.date_of_birth,
    )
    items = "".join(
        f'<div class="timeline-item"><div class="timeline-date">{m.birth_year}</div>'
        f"{member_card(m, options)}</div>"
        for m in dated
    )
    return f'<div class="timeline-layout">{items}</div>'


_SECTIONS = {
    "tree": tree_section,
    "list": list_section,
    "timeline": timeline_section,
}


def render_html(
    members: list[FamilyMember],
    options: ExportOptions | None = None,
    title: str = "Family Tree",
    now: datetime | None = None,
) -> str:
    """Full HTML document for the chosen layout.

    Layouts without a section renderer (photobook) produce the header and
    footer only.
    """
    options = options or ExportOptions()
    now = now or datetime.now(timezone.utc)
    section = _SECTIONS.get(options.layout)
    body = section(members, options) if section else ""
    return (
        "<!DOCTYPE html>\n"
        "<html>\n"
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{escape(title)}</title>\n"
        f"<style>{_STYLES}</style>\n"
        "</head>\n"
        "<body>\n"
        f'<div class="header"><h1>{escape(title)}</h1>'
        f'<p class="subtitle">Generated on {now.strftime("%B %d, %Y")}</p></div>\n'
        f'<div class="family-tree">{body}</div>\n'
        '<div class="footer"><p>Created with LegacyLink - Preserving Family Stories</p></div>\n'
        "</body>\n"
        "</html>\n"
    )


# ---------------------------------------------------------------------------
# JSON backup
# ---------------------------------------------------------------------------

def export_json(
    members: list[FamilyMember],
    options: ExportOptions | None = None,
    now: datetime | None = None,
) -> dict:
    """Backup document the app can re-import."""
    options = options or ExportOptions(format="json")
    now = now or datetime.now(timezone.utc)
    return {
        "version": EXPORT_VERSION,
        "exportDate": now.isoformat(),
        "familyMembers": [m.to_dict() for m in members],
        "metadata": {
            "totalMembers": len(members),
            "membersWithPhotos": sum(1 for m in members if m.photo_uri or m.media_items),
            "membersWithVoiceNotes": sum(1 for m in members if m.voice_note_uri),
            "livingMembers": sum(1 for m in members if not m.is_deceased),
        },
        "options": options.to_dict(),
    }


def backup_filename(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"family-tree-backup-{now.date().isoformat()}.json"
