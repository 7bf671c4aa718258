"""
Unit tests for vow language analysis.
"""
from app.services.vow_language import (
    analyze_structure,
    analyze_vow,
    detect_combat_language,
    detect_remembrance_language,
)

PROPER = "I am the type of person that honors my body; therefore, I will never drink alcohol again."


class TestCombatLanguage:
    def test_none(self):
        scan = detect_combat_language("I will remember who I am")
        assert scan.found is False
        assert scan.words == []

    def test_severity(self):
        assert detect_combat_language("I fight it").severity == "low"
        assert detect_combat_language("I fight and resist").severity == "medium"
        assert detect_combat_language("I will fight and resist the enemy").severity == "high"

    def test_remembrance(self):
        scan = detect_remembrance_language("I remember and notice")
        assert scan.found is True
        assert scan.words == ["remember", "notice"]


class TestStructure:
    def test_proper_structure(self):
        s = analyze_structure(PROPER)
        assert s.is_proper_structure is True
        assert s.structure_score == 3

    def test_contraction_accepted(self):
        s = analyze_structure("I'm the type of person that rests; therefore, I will always sleep early.")
        assert s.has_identity_statement is True
        assert s.is_proper_structure is True

    def test_unstructured(self):
        s = analyze_structure("I want to stop")
        assert s.structure_score == 0
        assert s.is_proper_structure is False

    def test_missing_therefore(self):
        s = analyze_structure("I am the type of person that never lies")
        assert s.has_therefore is False
        assert s.structure_score == 2


class TestAnalyzeVow:
    def test_reframe_suggestions(self):
        analysis = analyze_vow("I will fight and resist the enemy")
        words = [s.original for s in analysis.suggestions if s.type == "word_replacement"]
        assert words == ["fight", "resist", "enemy"]
        assert analysis.suggestions[0].suggested == "observe"
        assert analysis.suggestions[0].example == "I will observe and resist the enemy"
        assert analysis.suggestions[-1].type == "general_reframe"

    def test_clean_vow_has_no_suggestions(self):
        analysis = analyze_vow(PROPER)
        assert analysis.suggestions == []
        assert analysis.structure.is_proper_structure is True
