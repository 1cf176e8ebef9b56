# ABOUTME: Catalogue of the journal form's fields with labels, kinds and sections
# ABOUTME: Renders stored entries as labelled plain text for downstream analysis

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Literal

from trade_journal.content.plaintext import to_plain_text
from trade_journal.content.wikilinks import WIKILINK_RE

FieldKind = Literal["input", "wysiwyg", "checkbox", "slider"]

MISSING_VALUE = "N/A"
TRUTHY_VALUES = frozenset({"on", "true", "1", "yes"})


@dataclass(frozen=True, slots=True)
class FieldSpec:
    key: str
    label: str
    kind: FieldKind
    section: str

    @property
    def is_rich_text(self) -> bool:
        return self.kind == "wysiwyg"


def _section(name: str, *fields: tuple[str, str, FieldKind]) -> tuple[FieldSpec, ...]:
    return tuple(FieldSpec(key=key, label=label, kind=kind, section=name) for key, label, kind in fields)


FIELD_CATALOGUE: tuple[FieldSpec, ...] = (
    *_section(
        "Pre-Market Prep",
        ("trcGoal", "TRC Goal", "input"),
        ("trcPlan", "Plan to Achieve TRC Goal", "wysiwyg"),
        ("emotionalTemp", "Emotional Temperature", "slider"),
        ("emotionalReason", "Reason for Emotional State", "wysiwyg"),
        ("aphorisms", "Reminders / aphorisms to self", "input"),
    ),
    *_section(
        "Post-Market Review",
        ("loggedInStats", "Logged Stats?", "checkbox"),
        ("brokeRules", "Broke Any Rules?", "checkbox"),
        ("rulesExplanation", "What rule did you break and why?", "wysiwyg"),
        ("trcProgress", "Made progress toward TRC?", "checkbox"),
        ("whyTrcProgress", "Why / Why Not made progress toward TRC?", "wysiwyg"),
        ("pnlOfTheDay", "P&L Summary", "wysiwyg"),
    ),
    *_section(
        "Learnings & Improvements",
        ("learnings", "What did I learn/improve today (market + self)", "wysiwyg"),
        ("whatIsntWorking", "What Isn't Working", "wysiwyg"),
        ("eliminationPlan", "What will I eliminate starting now?", "wysiwyg"),
        ("changePlan", "What changes can be made in order to achieve my goal?", "wysiwyg"),
        (
            "solutionBrainstorm",
            "For the changes I need to make starting today, what are the solutions I can find?",
            "wysiwyg",
        ),
        ("adjustmentForTomorrow", "What adjustments will I make for tomorrow?", "wysiwyg"),
    ),
    *_section(
        "Strategic",
        ("top3ThingsDoneWell", "Top 3 things done well today", "wysiwyg"),
        ("top3MistakesToday", "Top 3 mistakes of today", "wysiwyg"),
        ("bestAndWorstTrades", "What was the best and worst trade today?", "wysiwyg"),
        (
            "recurringMistake",
            "What recurring mistake am I still making, and what's the real root cause?",
            "wysiwyg",
        ),
        (
            "oneTakeawayTeaching",
            "If I had to teach one takeaway from today's trades to a junior trader what would it be?",
            "wysiwyg",
        ),
        ("todaysRepetition", "If today repeated 10 more times, what would I change to maximize edge?", "wysiwyg"),
        ("actionsToImproveForward", "List of actions to improve forward.", "wysiwyg"),
    ),
)

_BY_KEY: dict[str, FieldSpec] = {spec.key: spec for spec in FIELD_CATALOGUE}


def get_field(key: str) -> FieldSpec | None:
    return _BY_KEY.get(key)


def label_for(key: str) -> str:
    spec = _BY_KEY.get(key)
    return spec.label if spec else key


def is_checked(value: str | None) -> bool:
    return value is not None and value.strip().lower() in TRUTHY_VALUES


def format_value(spec: FieldSpec | None, value: str | None) -> str:
    if spec is not None and spec.kind == "checkbox":
        return "Yes" if is_checked(value) else "No"
    if value is None:
        return MISSING_VALUE
    if spec is not None and not spec.is_rich_text:
        # Plain inputs are stored verbatim; only image tokens and whitespace runs go.
        text = " ".join(WIKILINK_RE.sub("", value).split())
    else:
        text = to_plain_text(value)
    return text if text else MISSING_VALUE


def format_entry_as_text(entry_date: date, fields: Mapping[str, str | None]) -> str:
    """Render an entry as ``Label: value`` lines.

    Catalogue fields come first in form order, followed by any unknown keys in
    submission order. Rich text is flattened and image tokens are dropped.
    """
    lines = [f"Date: {entry_date.isoformat()}"]
    for spec in FIELD_CATALOGUE:
        lines.append(f"{spec.label}: {format_value(spec, fields.get(spec.key))}")
    for key, value in fields.items():
        if key not in _BY_KEY:
            lines.append(f"{key}: {format_value(None, value)}")
    return "\n".join(lines)
