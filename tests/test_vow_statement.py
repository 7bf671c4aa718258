"""
Tests for vow statement formatting and parsing.
"""
from hypothesis import given, strategies as st

from app.services.vow_statement import (
    STATEMENT_SEPARATOR,
    VowStatement,
    create_vow_statement,
    parse_vow_statement,
)


def test_create_statement():
    assert create_vow_statement("honors my body", "never drink alcohol again") == (
        "I'm the type of person that honors my body; therefore, I will never drink alcohol again."
    )


def test_parse_statement():
    parsed = parse_vow_statement(
        "I'm the type of person that keeps promises; therefore, I will always call back."
    )
    assert parsed == VowStatement(identity="keeps promises", boundary="always call back")


def test_parse_rejects_other_text():
    assert parse_vow_statement("I will stop smoking.") is None
    assert parse_vow_statement("I'm the type of person that rests.") is None
    assert parse_vow_statement("I'm the type of person that rests; therefore, I will sleep") is None


@given(
    st.text(min_size=1, max_size=40).filter(lambda s: STATEMENT_SEPARATOR not in s),
    st.text(min_size=1, max_size=40),
)
def test_round_trip(identity, boundary):
    parsed = parse_vow_statement(create_vow_statement(identity, boundary))
    assert parsed == VowStatement(identity=identity, boundary=boundary)
