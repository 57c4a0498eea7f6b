"""Behavior policies placed ahead of the reference data in the system prompt."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

REFERENCE_MARKER = "REFERENCE DATA:"

BOOKING_FIELDS = ("name", "email", "party size", "date", "time", "special requests")


class ChatMode(str, Enum):
    STRICT = "strict"
    VERSATILE = "versatile"

    @classmethod
    def from_request(cls, value: object) -> ChatMode:
        # Only the exact string "strict" opts in; anything else stays versatile.
        if value == cls.STRICT.value:
            return cls.STRICT
        return cls.VERSATILE


@dataclass(frozen=True, slots=True)
class PolicyTemplate:
    mode: ChatMode
    version: int
    rules: tuple[str, ...]

    @property
    def text(self) -> str:
        # A blank line, then the marker; the reference data follows on the next line.
        return "\n".join((*self.rules, "", REFERENCE_MARKER))


_BOOKING_RULE = f"If asked to book, collect: {', '.join(BOOKING_FIELDS)}."

STRICT_POLICY_V1 = PolicyTemplate(
    mode=ChatMode.STRICT,
    version=1,
    rules=(
        "You are a concise, friendly restaurant assistant.",
        "Answer ONLY using the REFERENCE DATA below.",
        "If the answer is not in the REFERENCE DATA, say you don't have that information "
        "and ask a short follow-up question.",
        _BOOKING_RULE,
    ),
)

VERSATILE_POLICY_V2 = PolicyTemplate(
    mode=ChatMode.VERSATILE,
    version=2,
    rules=(
        "You are a concise, friendly restaurant assistant.",
        "FIRST: If the user asks about this restaurant (hours, locations, policies, contact, "
        "menu highlights), answer from the REFERENCE DATA exactly.",
        "SECOND: If the user asks a general food/culinary question (e.g., 'what is A5 Wagyu?', "
        "'what is nigiri?'), answer briefly using general knowledge.",
        "If the reference data conflicts with general knowledge, the REFERENCE DATA takes "
        "priority for anything about this restaurant.",
        "If information is missing or ambiguous, say you don't have that and ask a short follow-up.",
        _BOOKING_RULE,
        "Do NOT invent prices, promotions, or unavailable items. If unsure, ask to confirm.",
    ),
)

POLICIES: dict[ChatMode, PolicyTemplate] = {
    ChatMode.STRICT: STRICT_POLICY_V1,
    ChatMode.VERSATILE: VERSATILE_POLICY_V2,
}


def select_policy(mode: ChatMode | str | None) -> PolicyTemplate:
    if not isinstance(mode, ChatMode):
        mode = ChatMode.from_request(mode)
    return POLICIES[mode]


def compose_system_prompt(mode: ChatMode | str | None, reference_text: str) -> str:
    return f"{select_policy(mode).text}\n{reference_text}"


__all__ = [
    "BOOKING_FIELDS",
    "ChatMode",
    "POLICIES",
    "PolicyTemplate",
    "REFERENCE_MARKER",
    "STRICT_POLICY_V1",
    "VERSATILE_POLICY_V2",
    "compose_system_prompt",
    "select_policy",
]
