"""
Error taxonomy shared by the services and the HTTP/WebSocket layer.

Services raise these exceptions; `campushub.api.errors` turns them into
JSON responses carrying `status_code` and the stable `message`.
"""


class CampusHubError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class AuthenticationError(CampusHubError):
    status_code = 401
    message = "Authentication required"


class AuthorizationError(CampusHubError):
    status_code = 403
    message = "Forbidden"


class ValidationError(CampusHubError):
    status_code = 400
    message = "Validation failed"


class NotFoundError(CampusHubError):
    status_code = 404
    message = "Resource not found"


class ConflictError(CampusHubError):
    status_code = 409
    message = "Conflict"


class UpstreamError(CampusHubError):
    status_code = 502
    message = "Upstream service failure"


# --- authentication ---
class InvalidCredentials(AuthenticationError):
    message = "Invalid credentials"


class InvalidToken(AuthenticationError):
    message = "Invalid token"


class TokenExpired(AuthenticationError):
    message = "Token expired"


# --- authorization ---
class NotParticipant(AuthorizationError):
    message = "You are not a participant in this conversation"


class AccountPending(AuthorizationError):
    message = "Account is pending approval"


class AccountInactive(AuthorizationError):
    message = "Account is not active. Please contact administrator."


class InsufficientRole(AuthorizationError):
    message = "You do not have permission to access this resource"


# --- validation ---
class InvalidOrExpiredToken(ValidationError):
    message = "Invalid or expired reset token"


class IncorrectPassword(ValidationError):
    message = "Current password is incorrect"


class EmailDomainNotAllowed(ValidationError):
    message = "This role must register with an institutional email address"


# --- conflicts ---
class DuplicateAccount(ConflictError):
    message = "User with this email already exists"


class SelfConversation(ConflictError):
    message = "Cannot create conversation with yourself"
