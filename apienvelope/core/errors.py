"""Exception types raised by the envelope and request gate layers."""


class ApiEnvelopeError(Exception):
    """Base class for every error raised by this package."""


class InvalidArgumentError(ApiEnvelopeError, ValueError):
    """A constructor or mutator received a malformed argument."""


class CoreError(ApiEnvelopeError):
    """A producer handed us something that does not follow the envelope protocol.

    Not meant to be handled per request: seeing one means a non-compliant
    implementation is on the other end.
    """


class FailedCheckError(ApiEnvelopeError):
    """Validation of an inbound payload did not pass.

    Carries the check that ran and the result it produced so the application
    can turn it into an ``invalid`` envelope.
    """

    def __init__(self, check, result, message: str = "The request failed validation."):
        super().__init__(message)
        self.check = check
        self.result = result


class EnvelopeError(ApiEnvelopeError):
    """Abort the current request and answer with a ready envelope."""

    def __init__(self, envelope):
        super().__init__(f"Request aborted with status '{envelope.get_status()}'")
        self.envelope = envelope
