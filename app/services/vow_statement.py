"""
Vow statements.

    "I'm the type of person that <identity>; therefore, I will <boundary>."

create_vow_statement and parse_vow_statement round-trip for any identity
that does not itself contain the separator.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

STATEMENT_PREFIX = "I'm the type of person that "
STATEMENT_SEPARATOR = "; therefore, I will "
STATEMENT_SUFFIX = "."


@dataclass(frozen=True)
class VowStatement:
    identity: str
    boundary: str


def create_vow_statement(identity: str, boundary: str) -> str:
    return f"{STATEMENT_PREFIX}{identity}{STATEMENT_SEPARATOR}{boundary}{STATEMENT_SUFFIX}"


def parse_vow_statement(text: str) -> Optional[VowStatement]:
    """Split a statement back into identity and boundary; None if it isn't one."""
    if not text.startswith(STATEMENT_PREFIX) or not text.endswith(STATEMENT_SUFFIX):
        return None
    body = text[len(STATEMENT_PREFIX):-len(STATEMENT_SUFFIX)]
    identity, separator, boundary = body.partition(STATEMENT_SEPARATOR)
    if not separator:
        return None
    return VowStatement(identity=identity, boundary=boundary)
