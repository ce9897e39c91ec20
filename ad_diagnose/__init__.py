"""
AD Diagnose - Active Directory login failure diagnostics

Explains why an LDAP bind against Active Directory failed (unknown account,
wrong password, disabled, locked out, expired password) by reading account
attributes around a single bind attempt.
"""

__version__ = "1.0.0"

from .constants import (
    Colors,
    ACCOUNT_DISABLED,
    PASSWORD_NEVER_EXPIRES,
    MAX_ATTEMPTS_COUNT,
)
from .models import (
    AccountRecord,
    AuthenticationOutcome,
    Credentials,
    DiagnosisResult,
    DiagnosticPolicy,
)
from .errors import (
    DiagnosisError,
    DiagnosisSequenceError,
    DirectoryUnavailableError,
    LoginError,
    UserNotFoundError,
    WrongPasswordError,
    AccountDisabledError,
    AccountLockedOutError,
    PasswordExpiredError,
    NotAuthorizedError,
    error_for_outcome,
)
from .flags import AccountFlags
from .lookup import DirectoryLookup, build_account_filter
from .session import DiagnosticSession
from .diagnostic import LoginDiagnostic, check_user, classify, diagnose
from .ldap import ADConnection
from .config import load_config, build_policy
from .cli import main

__all__ = [
    # Version
    "__version__",
    # Constants
    "Colors",
    "ACCOUNT_DISABLED",
    "PASSWORD_NEVER_EXPIRES",
    "MAX_ATTEMPTS_COUNT",
    # Models
    "AccountRecord",
    "AuthenticationOutcome",
    "Credentials",
    "DiagnosisResult",
    "DiagnosticPolicy",
    # Errors
    "DiagnosisError",
    "DiagnosisSequenceError",
    "DirectoryUnavailableError",
    "LoginError",
    "UserNotFoundError",
    "WrongPasswordError",
    "AccountDisabledError",
    "AccountLockedOutError",
    "PasswordExpiredError",
    "NotAuthorizedError",
    "error_for_outcome",
    # Diagnosis
    "AccountFlags",
    "DirectoryLookup",
    "build_account_filter",
    "DiagnosticSession",
    "LoginDiagnostic",
    "check_user",
    "classify",
    "diagnose",
    # LDAP
    "ADConnection",
    # Config
    "load_config",
    "build_policy",
    # CLI
    "main",
]
