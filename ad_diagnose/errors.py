"""Exception hierarchy for login diagnostics."""

from typing import Dict, Type

from .models import AuthenticationOutcome


class DiagnosisError(Exception):
    """Base class for every error raised by this package."""


class DirectoryUnavailableError(DiagnosisError):
    """The directory could not be reached or returned a protocol error."""


class DiagnosisSequenceError(DiagnosisError):
    """A diagnostic session phase was called out of order."""


class LoginError(DiagnosisError):
    """A login failed for a classified reason."""
    outcome: AuthenticationOutcome = AuthenticationOutcome.NOT_AUTHORIZED
    description = "Login failed"

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"{self.description}: {username}")


class UserNotFoundError(LoginError):
    outcome = AuthenticationOutcome.NOT_FOUND
    description = "Account not found in directory"


class WrongPasswordError(LoginError):
    outcome = AuthenticationOutcome.WRONG_PASSWORD
    description = "Wrong password"


class AccountDisabledError(LoginError):
    outcome = AuthenticationOutcome.ACCOUNT_DISABLED
    description = "Account disabled"


class AccountLockedOutError(LoginError):
    outcome = AuthenticationOutcome.ACCOUNT_LOCKED_OUT
    description = "Account locked out"


class PasswordExpiredError(LoginError):
    outcome = AuthenticationOutcome.PASSWORD_EXPIRED
    description = "Password expired"


class NotAuthorizedError(LoginError):
    """Bind failed and no more specific cause was identified."""
    outcome = AuthenticationOutcome.NOT_AUTHORIZED
    description = "Not authorized"


LOGIN_ERRORS: Dict[AuthenticationOutcome, Type[LoginError]] = {
    cls.outcome: cls
    for cls in (
        UserNotFoundError,
        WrongPasswordError,
        AccountDisabledError,
        AccountLockedOutError,
        PasswordExpiredError,
        NotAuthorizedError,
    )
}


def error_for_outcome(outcome: AuthenticationOutcome, username: str) -> LoginError:
    """Build the exception matching a failed outcome."""
    if outcome is AuthenticationOutcome.SUCCESS:
        raise ValueError("A successful login has no matching error")
    return LOGIN_ERRORS[outcome](username)
