"""Biography generator for family members.

Model-agnostic, supports OpenAI and Anthropic via async httpx. Without an
API key, or when the provider call fails, a template biography built from
the member's details and kinship labels is returned instead.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import httpx

from legacylink.family.kinship import all_relationships_of
from legacylink.family.members import FamilyMember

logger = logging.getLogger("legacylink.family.biography")

_OPENAI_URL = "https://api.openai.com/v1/chat/completions"
_ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"

_SYSTEM_PROMPT = (
    "You are a skilled family historian and storyteller who creates engaging, "
    "respectful, and culturally sensitive biographies for family tree applications. "
    "Focus on celebrating the person's life, relationships, and legacy."
)

STYLES = ("formal", "casual", "storytelling", "historical")
LENGTHS = ("short", "medium", "long")

_MAX_TOKENS = {"short": 100, "medium": 300, "long": 500}

_STYLE_GUIDE = {
    "formal": "Write in a formal, respectful tone suitable for official records",
    "casual": "Write in a warm, conversational tone as if sharing with family",
    "storytelling": "Write as an engaging narrative that brings the person to life",
    "historical": "Write with historical context and significance",
}

_LENGTH_GUIDE = {
    "short": "Keep it to 2-3 sentences, highlighting key aspects",
    "medium": "Write 1-2 paragraphs covering their life story",
    "long": "Write 3-4 paragraphs with rich detail about their life journey",
}

_PRONOUNS = {
    "male": ("He", "him", "his"),
    "female": ("She", "her", "her"),
    "other": ("They", "them", "their"),
}


@dataclass
class BiographyOptions:
    style: str = "storytelling"
    length: str = "medium"
    include_relationships: bool = True
    cultural_context: str | None = None

    def __post_init__(self) -> None:
        # Unknown values fall back to the defaults.
        if self.style not in STYLES:
            logger.debug("Unknown biography style %r, using storytelling", self.style)
            self.style = "storytelling"
        if self.length not in LENGTHS:
            logger.debug("Unknown biography length %r, using medium", self.length)
            self.length = "medium"


def _get_config() -> tuple[str, str, str]:
    """Return (provider, api_key, model)."""
    model = os.environ.get("LL_BIOGRAPHY_MODEL", "gpt-4o-mini")
    openai_key = os.environ.get("LL_OPENAI_API_KEY", "")
    anthropic_key = os.environ.get("LL_ANTHROPIC_API_KEY", "")

    if "claude" in model.lower() and anthropic_key:
        return "anthropic", anthropic_key, model
    if openai_key:
        return "openai", openai_key, model
    if anthropic_key:
        return "anthropic", anthropic_key, "claude-sonnet-4-20250514"
    return "none", "", model


def is_available() -> bool:
    provider, _, _ = _get_config()
    return provider != "none"


def pronoun(gender: str, case: int = 0) -> str:
    """0 = subject, 1 = object, 2 = possessive."""
    return _PRONOUNS.get(gender, _PRONOUNS["other"])[case]


# ---------------------------------------------------------------------------
# Prompt + template
# ---------------------------------------------------------------------------

def build_prompt(member: FamilyMember, roster: list[FamilyMember], options: BiographyOptions) -> str:
    lines = [
        f"Create a {options.length} {options.style} biography for a family member "
        "with the following information:",
        "",
        f"Name: {member.name}",
        f"Gender: {member.gender}",
    ]
    if member.date_of_birth:
        lines.append(f"Date of Birth: {member.date_of_birth}")
    if member.date_of_death:
        lines.append(f"Date of Death: {member.date_of_death}")
    if member.birth_place:
        lines.append(f"Place of Birth: {member.birth_place}")
    if member.occupation:
        lines.append(f"Occupation: {member.occupation}")
    if member.biography and member.biography.strip():
        lines.extend(["", f"Existing notes: {member.biography}"])

    if options.include_relationships:
        relations = all_relationships_of(member, roster)
        if relations:
            lines.extend(["", "Family Relationships:"])
            for other, label in relations:
                entry = f"- {label.relationship}: {other.name}"
                if other.birth_year is not None:
                    entry += f" (born {other.birth_year})"
                lines.append(entry)

    if options.cultural_context:
        lines.extend(["", f"Cultural Context: {options.cultural_context}"])

    lines.extend([
        "",
        "Style Guidelines:",
        f"- {_STYLE_GUIDE[options.style]}",
        "- Focus on celebrating their life and contributions",
        "- Include family relationships naturally in the narrative",
        "- Be respectful and sensitive",
        "- Make it personal and meaningful for family members",
        f"- {_LENGTH_GUIDE[options.length]}",
    ])
    return "\n".join(lines)


def template_biography(
    member: FamilyMember,
    roster: list[FamilyMember],
    options: BiographyOptions | None = None,
) -> str:
    options = options or BiographyOptions()
    he = pronoun(member.gender)
    parts: list[str] = []

    if member.birth_year is not None:
        place = f" in {member.birth_place}" if member.birth_place else ""
        parts.append(f"{member.name} was born in {member.birth_year}{place}.")
    else:
        parts.append(f"{member.name} is a cherished member of our family.")

    if member.occupation:
        parts.append(f"{he} worked as {member.occupation}.")

    if options.include_relationships:
        relations = all_relationships_of(member, roster)
        parents = [o for o, label in relations if label.description == "Parent"]
        spouses = [o for o, label in relations if label.description == "Spouse"]
        children = [o for o, label in relations if label.description == "Child"]
        if parents:
            parts.append(f"{he} was the child of {' and '.join(p.name for p in parents)}.")
        if spouses:
            parts.append(f"{he} was married to {spouses[0].name}.")
        if children:
            noun = "child" if len(children) == 1 else "children"
            parts.append(f"{he} had {len(children)} {noun}.")

    if member.biography and member.biography.strip():
        parts.append(member.biography.strip())

    if member.death_year is not None:
        parts.append(f"{he} passed away in {member.death_year}.")

    parts.append(f"{he} will always be remembered as an important part of our family's story.")
    return " ".join(parts)


def suggest_improvements(biography: str, member: FamilyMember) -> list[str]:
    suggestions: list[str] = []
    if not member.date_of_birth:
        suggestions.append("Add birth date for more context")
    if not member.birth_place:
        suggestions.append("Add birth place to enrich the story")
    if not member.occupation:
        suggestions.append("Add occupation or profession")
    if len(biography) < 50:
        suggestions.append("Consider adding more details about their life")
    if "family" not in biography and "relationship" not in biography:
        suggestions.append("Include family relationships and connections")
    return suggestions


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------

async def generate_biography(
    member: FamilyMember,
    roster: list[FamilyMember],
    options: BiographyOptions | None = None,
    client: httpx.AsyncClient | None = None,
) -> tuple[str, str]:
    """Return (biography, source) where source is the provider or "template"."""
    options = options or BiographyOptions()
    provider, api_key, model = _get_config()

    if provider == "none" or not api_key:
        return template_biography(member, roster, options), "template"

    prompt = build_prompt(member, roster, options)
    max_tokens = _MAX_TOKENS[options.length]

    if client is None:
        async with httpx.AsyncClient(timeout=60.0) as owned:
            text = await _call(provider, owned, api_key, model, prompt, max_tokens)
    else:
        text = await _call(provider, client, api_key, model, prompt, max_tokens)

    if not text:
        return template_biography(member, roster, options), "template"
    return text, provider


async def _call(
    provider: str,
    client: httpx.AsyncClient,
    api_key: str,
    model: str,
    prompt: str,
    max_tokens: int,
) -> str | None:
    if provider == "openai":
        return await _call_openai(client, api_key, model, prompt, max_tokens)
    return await _call_anthropic(client, api_key, model, prompt, max_tokens)


async def _call_openai(
    client: httpx.AsyncClient,
    api_key: str,
    model: str,
    prompt: str,
    max_tokens: int,
) -> str | None:
    payload = {
        "model": model,
        "messages": [
            {"role": "system", "content": _SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ],
        "temperature": 0.7,
        "max_tokens": max_tokens,
    }
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    try:
        resp = await client.post(_OPENAI_URL, json=payload, headers=headers)
        resp.raise_for_status()
        data = resp.json()
        return (data["choices"][0]["message"]["content"] or "").strip() or None
    except httpx.HTTPStatusError as exc:
        logger.error("OpenAI HTTP %d: %s", exc.response.status_code, exc.response.text[:200])
        return None
    except Exception as exc:
        logger.error("OpenAI request failed: %s", exc)
        return None


async def _call_anthropic(
    client: httpx.AsyncClient,
    api_key: str,
    model: str,
    prompt: str,
    max_tokens: int,
) -> str | None:
    payload = {
        "model": model,
        "max_tokens": max_tokens,
        "system": _SYSTEM_PROMPT,
        "messages": [{"role": "user", "content": prompt}],
    }
    headers = {
        "x-api-key": api_key,
        "anthropic-version": "2023-06-01",
        "Content-Type": "application/json",
    }
    try:
        resp = await client.post(_ANTHROPIC_URL, json=payload, headers=headers)
        resp.raise_for_status()
        data = resp.json()
        return (data["content"][0]["text"] or "").strip() or None
    except httpx.HTTPStatusError as exc:
        logger.error("Anthropic HTTP %d: %s", exc.response.status_code, exc.response.text[:200])
        return None
    except Exception as exc:
        logger.error("Anthropic request failed: %s", exc)
        return None
