"""
Vow language analysis.

Flags "combat" vocabulary (fight, resist, ...) and suggests remembrance
alternatives, and scores how closely a vow follows the
"I am the type of person that ...; therefore, I will never/always ..." shape.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

COMBAT_WORDS = [
    "fight", "battle", "war", "attack", "defeat", "destroy", "kill", "crush",
    "conquer", "beat", "overcome", "resist", "struggle", "combat", "enemy",
    "weapon", "armor", "defend", "guard", "warrior", "soldier", "fighting",
]

REMEMBRANCE_WORDS = [
    "remember", "observe", "notice", "aware", "conscious", "mindful", "present",
    "return", "rebuild", "restore", "repair", "renew", "align", "integrate",
    "become", "embody", "honor", "respect", "commit", "promise", "vow",
]

# word -> (replacement, reason)
COMBAT_REPLACEMENTS: dict[str, tuple[str, str]] = {
    "fight": ("observe", "Observation creates awareness without conflict"),
    "battle": ("remember", "Remembrance anchors you to your vow"),
    "war": ("journey", "Your path is transformation, not combat"),
    "attack": ("notice", "Notice the urge without engaging it"),
    "defeat": ("return to", "Return to who you are becoming"),
    "destroy": ("release", "Release what no longer serves you"),
    "beat": ("honor", "Honor your commitment through awareness"),
    "overcome": ("integrate", "Integrate the lesson without struggle"),
    "resist": ("acknowledge", "Acknowledge the urge and choose differently"),
    "struggle": ("practice", "Practice presence and conscious choice"),
    "enemy": ("teacher", "Each urge teaches you about yourself"),
    "conquer": ("embody", "Embody the identity you are becoming"),
}

_IDENTITY_RE = re.compile(r"(i am|i'm) (the )?type of person", re.IGNORECASE)
_THEREFORE_RE = re.compile(r"therefore", re.IGNORECASE)
_NEVER_ALWAYS_RE = re.compile(r"(never|always)", re.IGNORECASE)
_AGAIN_RE = re.compile(r"again", re.IGNORECASE)


@dataclass
class LanguageScan:
    found: bool
    words: list[str]
    severity: Optional[str] = None


@dataclass
class StructureAnalysis:
    is_proper_structure: bool
    has_identity_statement: bool
    has_therefore: bool
    has_never_always: bool
    has_again: bool
    structure_score: int


@dataclass
class Suggestion:
    type: str
    message: str
    original: Optional[str] = None
    suggested: Optional[str] = None
    example: Optional[str] = None


@dataclass
class VowAnalysis:
    combat: LanguageScan
    remembrance: LanguageScan
    structure: StructureAnalysis
    suggestions: list[Suggestion] = field(default_factory=list)


def detect_combat_language(text: str) -> LanguageScan:
    lower = text.lower()
    words = [w for w in COMBAT_WORDS if w in lower]
    if len(words) >= 3:
        severity = "high"
    elif len(words) >= 2:
        severity = "medium"
    else:
        severity = "low"
    return LanguageScan(found=bool(words), words=words, severity=severity)


def detect_remembrance_language(text: str) -> LanguageScan:
    lower = text.lower()
    words = [w for w in REMEMBRANCE_WORDS if w in lower]
    return LanguageScan(found=bool(words), words=words)


def analyze_structure(text: str) -> StructureAnalysis:
    has_identity = bool(_IDENTITY_RE.search(text))
    has_therefore = bool(_THEREFORE_RE.search(text))
    has_never_always = bool(_NEVER_ALWAYS_RE.search(text))
    has_again = bool(_AGAIN_RE.search(text))
    return StructureAnalysis(
        is_proper_structure=has_identity and has_therefore and (has_never_always or has_again),
        has_identity_statement=has_identity,
        has_therefore=has_therefore,
        has_never_always=has_never_always,
        has_again=has_again,
        structure_score=sum([has_identity, has_therefore, has_never_always or has_again]),
    )


def reframe_suggestions(text: str, combat: LanguageScan) -> list[Suggestion]:
    if not combat.found:
        return []

    suggestions = []
    for word in combat.words:
        if word not in COMBAT_REPLACEMENTS:
            continue
        replacement, reason = COMBAT_REPLACEMENTS[word]
        suggestions.append(Suggestion(
            type="word_replacement",
            message=reason,
            original=word,
            suggested=replacement,
            example=re.sub(re.escape(word), replacement, text, flags=re.IGNORECASE),
        ))
    suggestions.append(Suggestion(
        type="general_reframe",
        message=(
            "Consider shifting from resistance to remembrance. "
            "Instead of fighting the urge, observe it and return to your vow."
        ),
    ))
    return suggestions


def analyze_vow(text: str) -> VowAnalysis:
    combat = detect_combat_language(text)
    return VowAnalysis(
        combat=combat,
        remembrance=detect_remembrance_language(text),
        structure=analyze_structure(text),
        suggestions=reframe_suggestions(text, combat),
    )
