"""Tests for built-in methodologies."""

from marvin.methodologies import (BUILTIN_METHODOLOGIES, DEFAULT_METHODOLOGY,
                                  registrations_for, resolve_methodology)


class TestMethodologies:
    """Tests for methodology lookup and registrations."""

    def test_default_is_builtin(self):
        assert DEFAULT_METHODOLOGY in BUILTIN_METHODOLOGIES

    def test_generic_agile_types(self):
        methodology = resolve_methodology("generic-agile")
        assert methodology.document_types == [
            "decision", "action", "question", "meeting", "report", "feature", "epic",
        ]

    def test_sap_aem_extends_common_types(self):
        types = resolve_methodology("sap-aem").document_types
        assert types[-3:] == ["use-case", "tech-assessment", "extension-design"]
        assert "meeting" in types

    def test_meetings_use_dated_file_names(self):
        meeting = next(reg for reg in registrations_for("generic-agile") if reg.type == "meeting")
        assert meeting.is_dated
        assert meeting.id_prefix == "M"

    def test_unknown_or_unset(self):
        assert resolve_methodology("waterfall") is None
        assert resolve_methodology(None) is None
        assert registrations_for("waterfall") == []
