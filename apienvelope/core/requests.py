"""Request gates: run a check against the inbound input before a handler does.

Similar to form requests in other frameworks, a gate moves input validation out
of the endpoint. When the check fails the gate raises, so the endpoint body only
ever sees input that passed.

Usage with FastAPI::

    class CreateUserGate(ValidatedRequestGate):
        def get_checkable(self):
            return Spec({"name": is_string()}, required=["name"])

    @app.post("/users")
    async def create_user(gate: CreateUserGate = Depends(gate_dependency(CreateUserGate))):
        ...
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Tuple, Type

from fastapi import Request

from .errors import EnvelopeError, FailedCheckError
from .response import ResponseEnvelope


logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def _collect(items: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """Fold repeated keys into lists, keep single keys as plain values."""
    collected: Dict[str, Any] = {}
    for key, value in items:
        if key not in collected:
            collected[key] = value
        elif isinstance(collected[key], list):
            collected[key].append(value)
        else:
            collected[key] = [collected[key], value]
    return collected


class GateState(str, Enum):
    UNVALIDATED = "unvalidated"
    VALIDATING = "validating"
    PASSED = "passed"
    FAILED = "failed"


@dataclass
class GateRequest:
    """Plain snapshot of the parts of an inbound request a gate can check."""

    method: str = "GET"
    path: str = "/"
    query: Dict[str, Any] = field(default_factory=dict)
    path_params: Dict[str, Any] = field(default_factory=dict)
    body: Dict[str, Any] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)

    def all(self) -> Dict[str, Any]:
        """All input fields. Body wins over query, path params win over both."""
        merged: Dict[str, Any] = {}
        merged.update(self.query)
        merged.update(self.body)
        merged.update(self.path_params)
        return merged

    @classmethod
    async def from_request(cls, request: Request) -> "GateRequest":
        content_type = request.headers.get("content-type", "").lower()
        body: Dict[str, Any] = {}
        if content_type.startswith(FORM_CONTENT_TYPES):
            form = await request.form()
            body = _collect(form.multi_items())
        elif await request.body():
            try:
                parsed = await request.json()
            except ValueError:
                logger.info(f"Ignoring undecodable JSON body on {request.method} {request.url.path}")
                parsed = None
            if isinstance(parsed, dict):
                body = parsed

        return cls(
            method=request.method,
            path=request.url.path,
            query=_collect(request.query_params.multi_items()),
            path_params=dict(request.path_params),
            body=body,
            headers=dict(request.headers),
        )


class ValidatedRequestGate(ABC):
    """Gate an endpoint behind a check.

    Subclasses supply the check through :meth:`get_checkable` and may reshape
    the payload in :meth:`assemble` or react differently to failures in
    :meth:`handle_failure`.
    """

    def __init__(self, request: GateRequest, route: Any = None):
        self.request = request
        self.route = route
        self._state = GateState.UNVALIDATED
        self._result = None

    @abstractmethod
    def get_checkable(self):
        """Return the check to run (a Spec, a ModelCheck, ...)."""

    def assemble(self, request: GateRequest) -> Any:
        return request.all()

    def validate(self):
        """Run the check. Returns its result when it passes.

        On failure :meth:`handle_failure` is called, which raises by default.
        """
        self._state = GateState.VALIDATING
        try:
            check = self.get_checkable()
            result = check.check(self.assemble(self.request))
        except Exception:
            self._state = GateState.FAILED
            raise
        self._result = result

        if result.failed():
            self._state = GateState.FAILED
            logger.info(f"{type(self).__name__} rejected {self.request.method} {self.request.path}")
            self.handle_failure(check, result)
            return result

        self._state = GateState.PASSED
        return result

    def handle_failure(self, check, result) -> None:
        raise FailedCheckError(check, result)

    def get_request(self) -> GateRequest:
        return self.request

    def get_route(self) -> Any:
        return self.route

    def get_state(self) -> GateState:
        return self._state

    def get_result(self):
        return self._result

    def passed(self) -> bool:
        return self._state == GateState.PASSED


class ApiValidatedRequestGate(ValidatedRequestGate, ABC):
    """Gate that aborts with an ``invalid`` envelope instead of a bare failure."""

    def handle_failure(self, check, result) -> None:
        raise EnvelopeError(ResponseEnvelope.from_check_result(result))


def gate_dependency(gate_class: Type[ValidatedRequestGate]):
    """Build a FastAPI dependency that resolves to a validated gate instance."""

    async def _resolve(request: Request) -> ValidatedRequestGate:
        gate_request = await GateRequest.from_request(request)
        gate = gate_class(gate_request, route=request.scope.get("route"))
        gate.validate()
        return gate

    _resolve.__name__ = f"resolve_{gate_class.__name__}"
    return _resolve
