import pytest

from apienvelope.core.errors import EnvelopeError, FailedCheckError
from apienvelope.core.requests import ApiValidatedRequestGate, GateRequest, GateState, ValidatedRequestGate
from apienvelope.core.response import ResponseEnvelope
from apienvelope.core.validation import Spec, SpecResult, is_integer, is_string


class NameGate(ValidatedRequestGate):
    def get_checkable(self):
        return Spec({"name": is_string()}, required=["name"])


class ApiNameGate(ApiValidatedRequestGate):
    def get_checkable(self):
        return Spec({"name": is_string()}, required=["name"])


class RouteParamGate(ValidatedRequestGate):
    def get_checkable(self):
        return Spec({"post_id": is_integer()}, required=["post_id"])

    def assemble(self, request):
        payload = request.all()
        payload["post_id"] = int(payload["post_id"]) if str(payload.get("post_id", "")).isdigit() else payload.get("post_id")
        return payload


class RecordingGate(NameGate):
    def __init__(self, request, route=None):
        super().__init__(request, route)
        self.failures = []

    def handle_failure(self, check, result):
        self.failures.append((check, result))


def test_gate_request_all_merges_inputs():
    request = GateRequest(
        query={"page": "1", "name": "from-query"},
        body={"name": "from-body"},
        path_params={"id": "9"},
    )

    assert request.all() == {"page": "1", "name": "from-body", "id": "9"}


def test_gate_cannot_be_instantiated_without_a_check():
    with pytest.raises(TypeError):
        ValidatedRequestGate(GateRequest())


def test_gate_passes_valid_input():
    gate = NameGate(GateRequest(body={"name": "Ada"}))
    assert gate.get_state() == GateState.UNVALIDATED

    result = gate.validate()

    assert not result.failed()
    assert gate.get_state() == GateState.PASSED
    assert gate.passed()
    assert gate.get_result() is result


def test_gate_raises_failed_check_on_empty_required_field():
    gate = NameGate(GateRequest(body={"name": ""}))

    with pytest.raises(FailedCheckError) as exc_info:
        gate.validate()

    assert gate.get_state() == GateState.FAILED
    assert isinstance(exc_info.value.check, Spec)
    envelope = ResponseEnvelope.from_check_result(exc_info.value.result)
    assert envelope.get_status() == "invalid"
    assert envelope.get_http_status_code() == 400
    assert envelope.get_messages()


def test_custom_failure_handler_can_recover():
    gate = RecordingGate(GateRequest(query={}))

    result = gate.validate()

    assert result.failed()
    assert gate.get_state() == GateState.FAILED
    assert len(gate.failures) == 1
    assert gate.failures[0][1] is result


def test_api_gate_aborts_with_invalid_envelope():
    gate = ApiNameGate(GateRequest(body={"name": 5}))

    with pytest.raises(EnvelopeError) as exc_info:
        gate.validate()

    envelope = exc_info.value.envelope
    assert envelope.get_status() == "invalid"
    assert envelope.get("invalid") == {"name": ["must be a string"]}


def test_assemble_can_reshape_payload():
    RouteParamGate(GateRequest(path_params={"post_id": "12"})).validate()

    with pytest.raises(FailedCheckError):
        RouteParamGate(GateRequest(path_params={"post_id": "twelve"})).validate()


def test_gate_works_with_any_checkable():
    class AlwaysFails:
        def check(self, payload):
            return SpecResult(messages=[f"Rejected {len(payload)} field(s)."])

    class AnyGate(ValidatedRequestGate):
        def get_checkable(self):
            return AlwaysFails()

    with pytest.raises(FailedCheckError) as exc_info:
        AnyGate(GateRequest(body={"a": 1, "b": 2})).validate()

    assert exc_info.value.result.get_messages() == ["Rejected 2 field(s)."]


def test_gate_exposes_request_and_route():
    request = GateRequest(method="POST", path="/users")
    route = object()

    gate = NameGate(request, route)

    assert gate.get_request() is request
    assert gate.get_route() is route


class TokenResult:
    def failed(self):
        return True

    def get_messages(self):
        return ["The token has expired."]


class TokenCheck:
    def check(self, payload):
        return TokenResult()


class TokenGate(ValidatedRequestGate):
    def get_checkable(self):
        return TokenCheck()


class ApiTokenGate(ApiValidatedRequestGate):
    def get_checkable(self):
        return TokenCheck()


def test_gate_accepts_results_without_field_details():
    with pytest.raises(FailedCheckError) as exc_info:
        TokenGate(GateRequest(body={"token": "abc"})).validate()

    envelope = ResponseEnvelope.from_check_result(exc_info.value.result)
    assert envelope.get_status() == "invalid"
    assert envelope.get_messages() == ["The token has expired."]

    with pytest.raises(EnvelopeError) as envelope_info:
        ApiTokenGate(GateRequest()).validate()

    assert envelope_info.value.envelope.get_content() == {"missing": [], "invalid": {}}


def test_gate_is_failed_when_the_check_itself_raises():
    class BrokenCheck:
        def check(self, payload):
            raise RuntimeError("validator unavailable")

    class BrokenGate(ValidatedRequestGate):
        def get_checkable(self):
            return BrokenCheck()

    gate = BrokenGate(GateRequest())

    with pytest.raises(RuntimeError):
        gate.validate()

    assert gate.get_state() == GateState.FAILED
    assert not gate.passed()
    assert gate.get_result() is None
