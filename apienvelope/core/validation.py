"""Pluggable checks that validate a request payload.

Anything with a ``check(payload)`` method returning an object that can say
whether it ``failed()`` and explain why can be used by a request gate. Two
implementations ship here: ``Spec`` for plain predicate constraints and
``ModelCheck`` for pydantic models.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ValidationError


logger = logging.getLogger(__name__)


@runtime_checkable
class CheckResult(Protocol):
    def failed(self) -> bool: ...

    def get_messages(self) -> List[str]: ...


@runtime_checkable
class FieldCheckResult(CheckResult, Protocol):
    """A result that can also point at the offending fields."""

    def get_missing(self) -> List[str]: ...

    def get_failed(self) -> Dict[str, List[str]]: ...


@runtime_checkable
class Checkable(Protocol):
    def check(self, payload: Any) -> CheckResult: ...


class SpecResult:
    """Outcome of running a check against a payload."""

    def __init__(
        self,
        missing: Optional[Iterable[str]] = None,
        failed: Optional[Mapping[str, Iterable[str]]] = None,
        messages: Optional[Iterable[str]] = None,
        value: Any = None,
    ):
        self.missing = list(missing or [])
        self.failed_fields = {field: list(reasons) for field, reasons in (failed or {}).items()}
        self.messages = list(messages or [])
        self.value = value

    def failed(self) -> bool:
        return bool(self.missing or self.failed_fields or self.messages)

    def passed(self) -> bool:
        return not self.failed()

    def get_messages(self) -> List[str]:
        return list(self.messages)

    def get_missing(self) -> List[str]:
        return list(self.missing)

    def get_failed(self) -> Dict[str, List[str]]:
        return {field: list(reasons) for field, reasons in self.failed_fields.items()}

    def __repr__(self) -> str:
        return f"SpecResult(missing={self.missing!r}, failed={self.failed_fields!r})"


@dataclass(frozen=True)
class Constraint:
    """A predicate over a single value plus what to say when it does not hold."""

    check: Callable[[Any], bool]
    message: str

    def __call__(self, value: Any) -> bool:
        return bool(self.check(value))


def is_string() -> Constraint:
    return Constraint(lambda v: isinstance(v, str), "must be a string")


def is_integer() -> Constraint:
    return Constraint(lambda v: isinstance(v, int) and not isinstance(v, bool), "must be an integer")


def is_boolean() -> Constraint:
    return Constraint(lambda v: isinstance(v, bool), "must be a boolean")


def is_list() -> Constraint:
    return Constraint(lambda v: isinstance(v, (list, tuple)), "must be a list")


def not_empty() -> Constraint:
    return Constraint(lambda v: v is not None and v != "" and v != [] and v != {}, "must not be empty")


def one_of(values: Iterable[Any]) -> Constraint:
    allowed = list(values)
    return Constraint(lambda v: v in allowed, f"must be one of: {', '.join(str(a) for a in allowed)}")


def matches(pattern: str) -> Constraint:
    compiled = re.compile(pattern)
    return Constraint(
        lambda v: isinstance(v, str) and compiled.match(v) is not None,
        f"must match the pattern {pattern}",
    )


def min_length(length: int) -> Constraint:
    return Constraint(lambda v: hasattr(v, "__len__") and len(v) >= length, f"must have a length of at least {length}")


def max_length(length: int) -> Constraint:
    return Constraint(lambda v: hasattr(v, "__len__") and len(v) <= length, f"must have a length of at most {length}")


def list_of(constraint: Constraint) -> Constraint:
    return Constraint(
        lambda v: isinstance(v, (list, tuple)) and all(constraint(item) for item in v),
        f"must be a list where every item {constraint.message}",
    )


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


class Spec:
    """Field constraints plus a set of required fields.

    A required field counts as missing when it is absent, ``None`` or an empty
    string. Optional fields that are absent are not checked.
    """

    def __init__(
        self,
        constraints: Optional[Mapping[str, Iterable[Constraint] | Constraint]] = None,
        required: Optional[Iterable[str]] = None,
    ):
        self.constraints: Dict[str, List[Constraint]] = {}
        for field, field_constraints in (constraints or {}).items():
            if isinstance(field_constraints, Constraint):
                field_constraints = [field_constraints]
            self.constraints[field] = list(field_constraints)
        self.required = list(required or [])

    def check(self, payload: Any) -> SpecResult:
        if not isinstance(payload, Mapping):
            return SpecResult(messages=["The payload must be a key-value mapping."])

        missing = [field for field in self.required if _is_blank(payload.get(field))]
        failed: Dict[str, List[str]] = {}
        for field, field_constraints in self.constraints.items():
            if field in missing or field not in payload:
                continue
            value = payload[field]
            reasons = [c.message for c in field_constraints if not c(value)]
            if reasons:
                failed[field] = reasons

        messages = [f"The field '{field}' is required." for field in missing]
        for field, reasons in failed.items():
            messages.extend(f"The field '{field}' {reason}." for reason in reasons)

        return SpecResult(missing=missing, failed=failed, messages=messages, value=payload)


class ModelCheck:
    """Check a payload by parsing it into a pydantic model."""

    def __init__(self, model: type[BaseModel]):
        self.model = model

    def check(self, payload: Any) -> SpecResult:
        try:
            parsed = self.model.model_validate(payload)
        except ValidationError as e:
            logger.debug(f"Payload rejected by {self.model.__name__}: {e.error_count()} error(s)")
            return result_from_errors(e.errors())

        return SpecResult(value=parsed)


def result_from_errors(errors: Iterable[Mapping[str, Any]]) -> SpecResult:
    """Map pydantic style error dicts (``loc``, ``msg``, ``type``) onto a SpecResult."""
    missing: List[str] = []
    failed: Dict[str, List[str]] = {}
    messages: List[str] = []
    for error in errors:
        field = ".".join(str(part) for part in error.get("loc", ())) or "payload"
        if error.get("type") == "missing":
            missing.append(field)
            messages.append(f"The field '{field}' is required.")
        else:
            failed.setdefault(field, []).append(error.get("msg", "is invalid"))
            messages.append(f"The field '{field}' is invalid: {error.get('msg', 'is invalid')}.")
    return SpecResult(missing=missing, failed=failed, messages=messages)
