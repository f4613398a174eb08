"""
Error taxonomy for the verification flow.

Every per-request failure ends up as one of these and is rendered by the
handlers in app/main.py as `{"success": false, "error": ..., "step": ...}`.
"""


class VerificationError(Exception):
    """Base class. `step` names the pipeline stage that failed."""

    status_code = 500

    def __init__(self, message: str, step: str = "unknown"):
        super().__init__(message)
        self.message = message
        self.step = step


class ValidationError(VerificationError):
    """Bad upload: user-correctable."""

    status_code = 400

    def __init__(self, message: str, step: str = "validation"):
        super().__init__(message, step)


class AdapterTransientError(VerificationError):
    """Rate limit, timeout, cold start. Retried inside the adapter."""

    status_code = 503


class AdapterConfigurationAbsent(VerificationError):
    """Credential not configured. Adapters catch this and switch to mock output."""

    status_code = 503


class AdapterTerminalError(VerificationError):
    """Retries exhausted or non-retryable remote failure."""

    status_code = 500
