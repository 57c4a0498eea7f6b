"""Restaurant fact sheet: schema, loader and the REFERENCE DATA renderer."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class KnowledgeBaseError(RuntimeError):
    """Raised when the fact sheet is missing or cannot be parsed."""


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Contact(_Frozen):
    email: str | None = None
    phone: str | None = None


class Policies(_Frozen):
    buffet_time_limit_minutes: int | float | None = None
    large_party_deposit_required: bool | None = None
    allergy_note: str | None = None


class Location(_Frozen):
    city: str
    address: list[str] = Field(default_factory=list)
    # day name -> opening hours, in the order they appear in the file
    hours: dict[str, str] = Field(default_factory=dict)


class KnowledgeBase(_Frozen):
    name: str
    contact: Contact | None = None
    policies: Policies | None = None
    locations: list[Location] = Field(default_factory=list)
    menu_highlights: list[str] = Field(default_factory=list)


def load_knowledge_base(path: Path | str) -> KnowledgeBase:
    """Read and validate the fact sheet at ``path``.

    There is no partial mode: any problem raises :class:`KnowledgeBaseError`.
    """
    source = Path(path)
    try:
        raw = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise KnowledgeBaseError(f"Cannot read knowledge base {source}: {exc}") from exc
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise KnowledgeBaseError(f"Invalid JSON in knowledge base {source}: {exc}") from exc
    if not isinstance(payload, dict):
        raise KnowledgeBaseError(f"Knowledge base {source} must contain a JSON object")
    try:
        return KnowledgeBase.model_validate(payload)
    except ValidationError as exc:
        raise KnowledgeBaseError(f"Knowledge base {source} does not match schema: {exc}") from exc


def _format_number(value: int | float) -> str:
    # 90.0 reads as "90", the way the fact sheet author wrote it
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_knowledge_base(kb: KnowledgeBase) -> str:
    """Flatten the fact sheet into the plain-text REFERENCE DATA block.

    Empty values are skipped entirely; no placeholders are emitted.
    """
    lines = [f"Restaurant: {kb.name}"]

    contact = kb.contact
    if contact and contact.email:
        lines.append(f"Contact email: {contact.email}")
    if contact and contact.phone:
        lines.append(f"Contact phone: {contact.phone}")

    policies = kb.policies
    if policies and policies.buffet_time_limit_minutes:
        minutes = _format_number(policies.buffet_time_limit_minutes)
        lines.append(f"Buffet time limit: {minutes} minutes")
    if policies and policies.large_party_deposit_required:
        lines.append("Large party deposit required: yes")
    if policies and policies.allergy_note:
        lines.append(f"Allergy note: {policies.allergy_note}")

    for location in kb.locations:
        lines.append(f"Location: {location.city}")
        lines.extend(f"  {line}" for line in location.address)
        lines.extend(f"  {day}: {hours}" for day, hours in location.hours.items())

    if kb.menu_highlights:
        lines.append(f"Menu highlights: {', '.join(kb.menu_highlights)}")

    return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class ChatContext:
    """Process-wide, read-only state shared by every chat request."""

    knowledge_base: KnowledgeBase
    reference_text: str

    @classmethod
    def from_knowledge_base(cls, kb: KnowledgeBase) -> ChatContext:
        return cls(knowledge_base=kb, reference_text=render_knowledge_base(kb))

    @classmethod
    def from_path(cls, path: Path | str) -> ChatContext:
        return cls.from_knowledge_base(load_knowledge_base(path))


__all__ = [
    "ChatContext",
    "Contact",
    "KnowledgeBase",
    "KnowledgeBaseError",
    "Location",
    "Policies",
    "load_knowledge_base",
    "render_knowledge_base",
]
