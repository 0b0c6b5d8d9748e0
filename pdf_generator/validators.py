"""
Field value validation and request validation.

:class:`FieldValidator` evaluates every rule of a field and aggregates all
failures; :func:`validate_request` checks a generation request before any
store is touched.
"""

from __future__ import annotations

from collections.abc import Sized
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError
from .options import GenerationRequest, error_messages
from .results import ValidationResult
from .types import FieldDefinition, RuleKind, ValidationRule
from .utils import get_logger

LOGGER = get_logger("pdf_generator.validators")


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, Sized) and not isinstance(value, (bytes, bytearray)):
        return len(value) == 0
    return False


class FieldValidator:
    """Evaluates validation rules without short-circuiting."""

    def validate(self, value: Any, rules: Iterable[ValidationRule]) -> ValidationResult:
        errors: List[str] = []
        warnings: List[str] = []

        for rule in rules:
            message = self._check(value, rule)
            if message is not None:
                errors.append(message)

        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)

    def validate_field(self, field: FieldDefinition, value: Any) -> ValidationResult:
        """Validate *value* against the rules of *field*.

        A required field gets an implicit ``required`` rule unless it
        already declares one.
        """
        rules = list(field.validation)
        if field.required and not any(rule.kind is RuleKind.REQUIRED for rule in rules):
            rules.insert(
                0,
                ValidationRule(kind=RuleKind.REQUIRED, message=f"Field {field.name} is required"),
            )
        return self.validate(value, rules)

    def _check(self, value: Any, rule: ValidationRule) -> Optional[str]:
        kind = rule.kind

        if kind is RuleKind.REQUIRED:
            if _is_empty(value):
                return rule.message or "This field is required"
            return None

        if kind is RuleKind.MIN_LENGTH:
            if isinstance(value, str) and rule.value is not None and len(value) < int(rule.value):
                return rule.message or f"Minimum length is {rule.value}"
            return None

        if kind is RuleKind.MAX_LENGTH:
            if isinstance(value, str) and rule.value is not None and len(value) > int(rule.value):
                return rule.message or f"Maximum length is {rule.value}"
            return None

        if kind is RuleKind.PATTERN:
            if isinstance(value, str) and rule.compiled is not None and not rule.compiled.search(value):
                return rule.message or "Invalid format"
            return None

        if kind is RuleKind.CUSTOM:
            try:
                outcome = rule.predicate(value)
            except Exception as exc:  # predicate failures are reported, not raised
                LOGGER.warning("Custom validator raised: %s", exc)
                return rule.message or f"Validation failed: {exc}"
            if outcome is True:
                return None
            if isinstance(outcome, str):
                return outcome
            return rule.message or "Validation failed"

        return None


def parse_request(template_id: Any, data: Any, options: Any = None) -> GenerationRequest:
    """Validate a generation request, raising :class:`ValidationError` listing every problem."""

    try:
        return GenerationRequest.model_validate(
            {"templateId": template_id, "data": data, "options": options}
        )
    except PydanticValidationError as exc:
        raise ValidationError("Request validation failed", error_messages(exc)) from exc


def validate_request(template_id: Any, data: Any, options: Any = None) -> List[str]:
    """Return every problem with a generation request; empty when valid."""

    try:
        parse_request(template_id, data, options)
    except ValidationError as exc:
        return exc.validation_errors
    return []


__all__ = ["FieldValidator", "parse_request", "validate_request"]
