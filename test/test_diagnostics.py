import pytest

from jsonfoundry.core.errors import InternalError
from jsonfoundry.diagnostics import DiagnosticCode, DiagnosticsCollector, validate_envelope


def test_emit_and_deduplicate():
    diagnostics = DiagnosticsCollector()
    diagnostics.emit(DiagnosticCode.UNSUPPORTED_FORMAT, "#/properties/a", details={"format": "ipv9"})
    diagnostics.emit(DiagnosticCode.UNSUPPORTED_FORMAT, "#/properties/a", details={"format": "ipv9"})
    diagnostics.emit(DiagnosticCode.UNSUPPORTED_FORMAT, "#/properties/b", details={"format": "ipv9"})
    assert len(diagnostics) == 2
    assert [item.canon_path for item in diagnostics.by_code(DiagnosticCode.UNSUPPORTED_FORMAT)] == [
        "#/properties/a",
        "#/properties/b",
    ]
    assert diagnostics.as_list()[0] == {
        "code": "UNSUPPORTED_FORMAT",
        "canonPath": "#/properties/a",
        "details": {"format": "ipv9"},
    }


def test_validation_skipped_envelope():
    diagnostics = DiagnosticsCollector()
    envelope = diagnostics.emit(
        DiagnosticCode.VALIDATION_SKIPPED, "#", details={"skippedValidation": True}, metrics={"validationsPerRow": 0}
    )
    assert envelope.as_dict()["metrics"] == {"validationsPerRow": 0}


@pytest.mark.parametrize(
    ["code", "canon_path", "details", "metrics"],
    [
        (DiagnosticCode.GENERATION_FAILED, "#", {"skippedValidation": True}, None),
        (DiagnosticCode.ORACLE_REJECTED, "#", {}, {"validationsPerRow": 1}),
        (DiagnosticCode.TARGET_UNREACHABLE, "$.a", {}, None),
        (DiagnosticCode.VALIDATION_SKIPPED, "#", {}, {"validationsPerRow": -1}),
    ],
)
def test_malformed_envelopes(code, canon_path, details, metrics):
    with pytest.raises(InternalError, match=code.value):
        DiagnosticsCollector().emit(code, canon_path, details=details, metrics=metrics)


def test_validate_envelope_accepts_dicts():
    assert validate_envelope({"code": "PLANNER_CAP_HIT", "canonPath": "#", "details": {}}) == []
    assert validate_envelope({"code": "NOPE", "canonPath": "#", "details": {}})
    assert validate_envelope({"code": "PLANNER_CAP_HIT", "canonPath": "#"})
