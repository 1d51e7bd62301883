"""The canonical API response envelope.

Every response produced by the service has the same top-level shape::

    {"code": 404, "status": "not_found", "messages": ["..."], ...content}

``ResponseEnvelope`` builds that shape, maps its status to an HTTP code and
can parse a serialized body back for introspection and testing.
"""

import json
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional

from fastapi.responses import Response

from .errors import CoreError, InvalidArgumentError


logger = logging.getLogger(__name__)


class Status(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INVALID = "invalid"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


STATUS_CODE_MAP: Dict[str, int] = {
    Status.SUCCESS.value: 200,
    Status.ERROR.value: 500,
    Status.INVALID.value: 400,
    Status.UNAUTHORIZED.value: 401,
    Status.FORBIDDEN.value: 403,
    Status.NOT_FOUND.value: 404,
}

RESERVED_KEYS = ("status", "code", "messages")

DEFAULT_HTTP_CODE = 200
JSON_CONTENT_TYPE = "application/json"
INVALID_REQUEST_MESSAGE = "The request contains invalid or missing fields."


class WireBody(NamedTuple):
    body: str
    status_code: int
    headers: Dict[str, str]


def _normalize_status(status: Any) -> Optional[str]:
    if isinstance(status, Status):
        return status.value
    if isinstance(status, str) and status in STATUS_CODE_MAP:
        return status
    return None


def _check_messages(messages: Any) -> List[str]:
    if not isinstance(messages, (list, tuple)):
        raise InvalidArgumentError("Messages must be provided as a list of strings.")
    for message in messages:
        if not isinstance(message, str):
            raise InvalidArgumentError(f"Message {message!r} is not a string.")
    return list(messages)


class ResponseEnvelope:
    """A structured API response: content, a status and human-readable messages."""

    def __init__(self, content: Mapping[str, Any], status: Any = Status.SUCCESS, messages: Optional[List[str]] = None):
        if not isinstance(content, Mapping):
            raise InvalidArgumentError("Response content must be a mapping.")
        for key in content:
            if not isinstance(key, str):
                raise InvalidArgumentError(f"Response key {key!r} is not a string.")
        normalized = _normalize_status(status)
        if normalized is None:
            raise InvalidArgumentError(
                f"Status {status!r} is not one of: {', '.join(self.valid_statuses())}."
            )

        self._content: Dict[str, Any] = dict(content)
        self._status: str = normalized
        self._messages: List[str] = _check_messages(messages if messages is not None else [])

    @classmethod
    def create(cls, content: Mapping[str, Any], status: Any = Status.SUCCESS, messages: Optional[List[str]] = None) -> "ResponseEnvelope":
        return cls(content, status, messages)

    @classmethod
    def send(cls, content: Mapping[str, Any], status: Any = Status.SUCCESS, messages: Optional[List[str]] = None) -> Response:
        return cls(content, status, messages).to_response()

    @classmethod
    def make_not_found(cls, resource_name: str, identifier: Any) -> "ResponseEnvelope":
        return cls(
            {"provided_id": identifier, "resource_name": resource_name},
            Status.NOT_FOUND,
            [f"The resource '{resource_name}' with the identifier '{identifier}' could not be found."],
        )

    @classmethod
    def from_check_result(cls, result) -> "ResponseEnvelope":
        """Build an ``invalid`` envelope out of a failed check result.

        Works with anything implementing the ``CheckResult`` protocol from
        :mod:`apienvelope.core.validation`. Field details are included when the
        result also offers ``get_missing`` and ``get_failed``.
        """
        messages = list(result.get_messages()) or [INVALID_REQUEST_MESSAGE]
        get_missing = getattr(result, "get_missing", None)
        get_failed = getattr(result, "get_failed", None)
        return cls(
            {
                "missing": list(get_missing()) if callable(get_missing) else [],
                "invalid": dict(get_failed()) if callable(get_failed) else {},
            },
            Status.INVALID,
            messages,
        )

    @classmethod
    def flow(cls, result, on_success: Callable[[], Any]) -> Any:
        """Send a validation response if ``result`` failed, otherwise call ``on_success``."""
        if result.failed():
            return cls.from_check_result(result).to_response()
        return on_success()

    @classmethod
    def from_wire_body(cls, body: str | bytes) -> "ResponseEnvelope":
        """Parse a serialized envelope. The inverse of :meth:`to_wire_body`."""
        try:
            data = json.loads(body)
        except (TypeError, ValueError) as e:
            logger.warning(f"Unable to decode envelope body: {e}")
            raise CoreError("Unable to decode the response body as JSON.") from e

        if not cls._is_wire_shaped(data):
            logger.warning("Response body does not follow the envelope protocol")
            raise CoreError(
                "Unable to parse a ResponseEnvelope out of the response body. Make sure"
                " that it was actually generated by a ResponseEnvelope or a compatible"
                " implementation."
            )

        content = {key: value for key, value in data.items() if key not in RESERVED_KEYS}
        return cls(content, data["status"], data["messages"])

    @classmethod
    def from_response(cls, response) -> "ResponseEnvelope":
        """Parse a Starlette or httpx response produced by :meth:`to_response`."""
        body = getattr(response, "body", None)
        if body is None:
            body = response.content
        return cls.from_wire_body(body)

    @staticmethod
    def _is_wire_shaped(data: Any) -> bool:
        if not isinstance(data, dict):
            return False
        messages = data.get("messages")
        if not isinstance(messages, list) or not all(isinstance(m, str) for m in messages):
            return False
        if not isinstance(data.get("status"), str) or data["status"] not in STATUS_CODE_MAP:
            return False
        code = data.get("code")
        return isinstance(code, int) and not isinstance(code, bool)

    @staticmethod
    def valid_statuses() -> List[str]:
        return list(STATUS_CODE_MAP)

    @staticmethod
    def reserved_keys() -> List[str]:
        return list(RESERVED_KEYS)

    def add_message(self, message: str) -> None:
        if not isinstance(message, str):
            raise InvalidArgumentError(f"Message {message!r} is not a string.")
        self._messages.append(message)

    def set(self, key: str, value: Any) -> None:
        if not isinstance(key, str):
            raise InvalidArgumentError("Response keys must be strings.")
        if key in RESERVED_KEYS:
            raise InvalidArgumentError(f"The response key '{key}' is reserved.")
        self._content[key] = value

    def set_status(self, new_status: Any) -> None:
        normalized = _normalize_status(new_status)
        if normalized is None:
            raise InvalidArgumentError(
                f"Status {new_status!r} is not one of: {', '.join(self.valid_statuses())}."
            )
        self._status = normalized

    def get_http_status_code(self) -> int:
        return STATUS_CODE_MAP.get(self._status, DEFAULT_HTTP_CODE)

    def get_status(self) -> str:
        return self._status

    def get_messages(self) -> List[str]:
        return list(self._messages)

    def get_content(self) -> Dict[str, Any]:
        return dict(self._content)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a content value, descending into mappings on dots (``"user.name"``)."""
        if key in self._content:
            return self._content[key]
        current: Any = self._content
        for part in key.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return default
            current = current[part]
        return current

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.get_http_status_code(),
            "status": self._status,
            "messages": list(self._messages),
            **self._content,
        }

    def to_wire_body(self, headers: Optional[Mapping[str, str]] = None) -> WireBody:
        # A caller content type in any casing is replaced by the JSON one
        merged = {k: v for k, v in (headers or {}).items() if k.lower() != "content-type"}
        merged["Content-Type"] = JSON_CONTENT_TYPE
        return WireBody(json.dumps(self.to_dict()), self.get_http_status_code(), merged)

    def to_response(self, headers: Optional[Mapping[str, str]] = None) -> Response:
        wire = self.to_wire_body(headers)
        return Response(
            content=wire.body,
            status_code=wire.status_code,
            headers=wire.headers,
            media_type=JSON_CONTENT_TYPE,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResponseEnvelope):
            return NotImplemented
        return (
            self._status == other._status
            and self._messages == other._messages
            and self._content == other._content
        )

    def __repr__(self) -> str:
        return f"ResponseEnvelope(status={self._status!r}, messages={self._messages!r}, content={self._content!r})"
