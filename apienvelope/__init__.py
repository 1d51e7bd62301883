"""Canonical JSON response envelopes and validated request gates for FastAPI."""

from .core.errors import ApiEnvelopeError, CoreError, EnvelopeError, FailedCheckError, InvalidArgumentError
from .core.requests import ApiValidatedRequestGate, GateRequest, GateState, ValidatedRequestGate, gate_dependency
from .core.response import RESERVED_KEYS, STATUS_CODE_MAP, ResponseEnvelope, Status, WireBody
from .core.validation import Checkable, CheckResult, Constraint, FieldCheckResult, ModelCheck, Spec, SpecResult

__all__ = [
    "ApiEnvelopeError",
    "ApiValidatedRequestGate",
    "CheckResult",
    "Checkable",
    "Constraint",
    "CoreError",
    "EnvelopeError",
    "FailedCheckError",
    "FieldCheckResult",
    "GateRequest",
    "GateState",
    "InvalidArgumentError",
    "ModelCheck",
    "RESERVED_KEYS",
    "ResponseEnvelope",
    "STATUS_CODE_MAP",
    "Spec",
    "SpecResult",
    "Status",
    "ValidatedRequestGate",
    "WireBody",
    "gate_dependency",
]
