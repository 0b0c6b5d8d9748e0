from __future__ import annotations

import pytest

from pdf_generator.exceptions import ValidationError
from pdf_generator.options import OutputFormat, validate_options
from pdf_generator.types import FieldDefinition, RuleKind, ValidationRule
from pdf_generator.validators import FieldValidator, parse_request, validate_request


@pytest.fixture()
def validator() -> FieldValidator:
    return FieldValidator()


def rule(kind: str, value=None, message=None, predicate=None) -> ValidationRule:
    return ValidationRule(kind=RuleKind(kind), value=value, message=message, predicate=predicate)


def test_required_rule(validator: FieldValidator) -> None:
    assert validator.validate("", [rule("required")]).errors == ["This field is required"]
    assert validator.validate([], [rule("required", message="Pick one")]).errors == ["Pick one"]
    assert validator.validate(0, [rule("required")]).is_valid


def test_all_rules_are_evaluated(validator: FieldValidator) -> None:
    result = validator.validate("ab", [rule("minLength", 3), rule("pattern", r"^\d+$")])
    assert not result.is_valid
    assert result.errors == ["Minimum length is 3", "Invalid format"]


def test_length_rules_ignore_non_strings(validator: FieldValidator) -> None:
    assert validator.validate(12345, [rule("maxLength", 2)]).is_valid
    assert validator.validate("abc", [rule("maxLength", 2)]).errors == ["Maximum length is 2"]


def test_custom_rules(validator: FieldValidator) -> None:
    even = rule("custom", predicate=lambda value: value % 2 == 0 or "Must be even")
    assert validator.validate(4, [even]).is_valid
    assert validator.validate(3, [even]).errors == ["Must be even"]

    falsy = rule("custom", message="Nope", predicate=lambda value: False)
    assert validator.validate(1, [falsy]).errors == ["Nope"]


def test_raising_custom_rule_is_a_failure(validator: FieldValidator) -> None:
    def explode(value):
        raise RuntimeError("boom")

    result = validator.validate("x", [rule("custom", predicate=explode)])
    assert result.errors == ["Validation failed: boom"]


def test_rule_construction_checks() -> None:
    with pytest.raises(ValueError):
        rule("pattern", "([unclosed")
    with pytest.raises(ValueError):
        rule("custom")


def test_required_field_gets_implicit_rule(validator: FieldValidator) -> None:
    field = FieldDefinition.from_dict(
        {
            "id": "email",
            "name": "email",
            "page": 1,
            "required": True,
            "dimensions": {"width": 100, "height": 20},
            "validation": [{"type": "pattern", "value": "@"}],
        }
    )
    result = validator.validate_field(field, None)
    assert result.errors == ["Field email is required"]
    assert validator.validate_field(field, "nobody").errors == ["Invalid format"]
    assert validator.validate_field(field, "a@b.c").is_valid


@pytest.mark.parametrize(
    "template_id, data, location",
    [
        (None, {"a": 1}, "templateId"),
        ("", {"a": 1}, "templateId"),
        (42, {"a": 1}, "templateId"),
        ("t", ["a"], "data"),
        ("t", None, "data"),
        ("t", {}, "data"),
    ],
)
def test_validate_request(template_id, data, location) -> None:
    problems = validate_request(template_id, data)
    assert len(problems) == 1
    assert problems[0].startswith(f"{location}: ")


def test_empty_data_message() -> None:
    assert validate_request("t", {}) == ["data: Value error, Data must not be empty"]


def test_validate_request_reports_every_problem() -> None:
    problems = validate_request(None, {}, {"outputFormat": "docx", "quality": "ultra"})
    assert len(problems) == 4
    assert any(problem.startswith("options.outputFormat: ") for problem in problems)
    assert any(problem.startswith("options.quality: ") for problem in problems)


def test_validate_request_accepts_valid_input() -> None:
    assert validate_request("invoice", {"total": 1}, {"outputFormat": "base64"}) == []


def test_parse_request_raises_with_every_message() -> None:
    with pytest.raises(ValidationError) as excinfo:
        parse_request("t", {"a": 1}, {"security": {"permissions": ["print"]}})
    assert excinfo.value.code == "VALIDATION_ERROR"
    assert excinfo.value.validation_errors[0].startswith("options.security.permissions: ")


def test_parse_request_returns_typed_options() -> None:
    request = parse_request(
        "invoice", {"a": 1}, {"outputFormat": "base64", "metadata": {"keywords": "a, b"}}
    )
    assert request.template_id == "invoice"
    assert request.options.output_format is OutputFormat.BASE64
    assert request.options.metadata.keywords == ["a", "b"]


@pytest.mark.parametrize(
    "options, location",
    [
        ({"outputFormat": "docx"}, "outputFormat"),
        ({"quality": "ultra"}, "quality"),
        ({"metadata": "x"}, "metadata"),
        ({"metadata": {"keywords": 5}}, "metadata.keywords"),
        ({"watermark": {}}, "watermark.text"),
        ({"watermark": {"text": ""}}, "watermark.text"),
        ({"watermark": {"text": "X", "opacity": 2}}, "watermark.opacity"),
        ({"watermark": {"text": "X", "fontSize": 4}}, "watermark.fontSize"),
        ({"watermark": {"text": "X", "rotation": "up"}}, "watermark.rotation"),
        ({"watermark": {"text": "X", "position": "middle"}}, "watermark.position"),
        ({"watermark": {"text": "X", "position": {"x": "left", "y": 1}}}, "watermark.position"),
        ({"watermark": {"text": "X", "color": "chartreuse-ish"}}, "watermark.color"),
        ({"watermark": {"text": "X", "color": {"r": 1}}}, "watermark.color"),
        ({"security": True}, "security"),
        ({"security": {"permissions": ["print"]}}, "security.permissions"),
    ],
)
def test_validate_options(options, location) -> None:
    problems = validate_options(options)
    assert problems
    assert all(problem.startswith(location) for problem in problems)


def test_validate_options_rejects_non_objects() -> None:
    problems = validate_options("nope")
    assert len(problems) == 1
    assert "valid dictionary" in problems[0]


def test_validate_options_accepts_explicit_position() -> None:
    assert validate_options({"watermark": {"text": "X", "position": {"x": 1, "y": 2}}}) == []
    assert validate_options(None) == []
