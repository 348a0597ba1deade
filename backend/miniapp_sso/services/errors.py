"""Error taxonomy for the session/ticket protocol.

Host-facing operations raise these; the API layer renders them as
``{"error": message}`` with ``status_code``. The introspector never lets them
escape: it turns each into a ``valid: false`` verdict.
"""


class SsoError(Exception):
    status_code: int = 400
    default_message: str = "Request rejected"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationRequired(SsoError):
    status_code = 401
    default_message = "Not authenticated"


class BadRequest(SsoError):
    status_code = 400


class MissingField(BadRequest):
    default_message = "Missing required fields"


class UnsupportedLaunchMode(BadRequest):
    default_message = "App does not support iframe mode"


class StartUrlNotAllowed(BadRequest):
    default_message = "Invalid app configuration: startUrl not allowed"


class NotFound(SsoError):
    status_code = 404
    default_message = "Not found"


class Forbidden(SsoError):
    status_code = 403
    default_message = "Forbidden"


class AppNotActive(Forbidden):
    default_message = "App is not active"


class InvalidSession(Forbidden):
    default_message = "Invalid session"


class SessionOriginMismatch(Forbidden):
    default_message = "Session origin mismatch"


# Introspection outcomes. These never reach the client as HTTP errors.


class Expired(SsoError):
    default_message = "ticket expired"


class Malformed(SsoError):
    default_message = "invalid ticket"


class TicketNotFound(NotFound):
    default_message = "ticket not found"


class AlreadyUsed(SsoError):
    default_message = "ticket already used"


class ConcurrencyConflict(SsoError):
    status_code = 409
    default_message = "concurrency conflict: ticket already consumed"
