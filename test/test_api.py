import jsonfoundry
from jsonfoundry import FoundryConfig, GenerationOutput, Operation, generate

from .conftest import SEED
from .utils import assert_valid

SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "format": "uuid"},
        "status": {"enum": ["active", "suspended"]},
        "score": {"type": "number", "minimum": 0, "maximum": 1},
    },
    "required": ["id", "status"],
    "additionalProperties": False,
}
USERS = Operation(key="GET /users", request=None, response={"type": "array", "items": SCHEMA, "maxItems": 3})


def test_generate_with_options():
    output = generate(SCHEMA, {"seed": SEED, "generate": {"count": 5}})
    assert isinstance(output, GenerationOutput)
    assert output.report is None
    assert output.operations == {}
    assert len(output.items) == 5
    for item in output.items:
        assert_valid(SCHEMA, item)


def test_generate_defaults():
    assert len(generate({"type": "boolean"}).items) == FoundryConfig().generate.count


def test_generate_is_reproducible():
    options = {"seed": SEED, "generate": {"count": 4}}
    assert generate(SCHEMA, options).items == generate(SCHEMA, FoundryConfig.from_options(options)).items


def test_generate_operations_without_coverage():
    output = generate(True, {"seed": SEED, "generate": {"count": 2}}, operations=[USERS])
    assert set(output.operations["GET /users"]) == {"response"}
    for item in output.operations["GET /users"]["response"].items:
        assert_valid(USERS.response, item)


def test_generate_with_coverage():
    output = generate(
        SCHEMA,
        {"seed": SEED, "generate": {"count": 3}, "coverage": {"mode": "guided"}},
        operations=[USERS],
    )
    assert output.report is not None
    assert output.report.to_dict()["engine"]["coverageMode"] == "guided"
    assert "GET /users" in output.report.metrics.by_operation
    assert len(output.operations["GET /users"]["response"]) == 3


def test_failures_are_reported_as_diagnostics():
    output = generate({"type": "string", "minLength": 5, "maxLength": 2}, {"generate": {"count": 2}})
    assert output.items == []
    assert len(output.batch.failures) == 2
    assert [item["code"] for item in output.diagnostics.as_list()] == ["GENERATION_FAILED"]


def test_version():
    assert isinstance(jsonfoundry.__version__, str)
