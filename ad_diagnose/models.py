"""Data models for login diagnostics."""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .constants import (
    ACCOUNT_DISABLED,
    ATTR_USERNAME,
    MAX_ATTEMPTS_COUNT,
    PASSWORD_NEVER_EXPIRES,
)


class AuthenticationOutcome(Enum):
    """The single result of diagnosing one login attempt."""
    NOT_FOUND = "NotFound"
    SUCCESS = "Success"
    WRONG_PASSWORD = "WrongPassword"
    ACCOUNT_DISABLED = "AccountDisabled"
    ACCOUNT_LOCKED_OUT = "AccountLockedOut"
    PASSWORD_EXPIRED = "PasswordExpired"
    NOT_AUTHORIZED = "NotAuthorized"


@dataclass(frozen=True)
class AccountRecord:
    """A read-only snapshot of one directory account."""
    username: str
    failed_attempt_count: int = 0
    account_control: int = 0
    password_set_timestamp: int = 0
    dn: Optional[str] = None
    # sAMAccountName, which NTLM binds need whatever attribute the login name came from
    account_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AccountRecord":
        return cls(**d)


@dataclass(frozen=True)
class Credentials:
    """Username/password pair supplied by the caller."""
    username: str
    password: str = field(repr=False)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Credentials":
        return cls(username=d["username"], password=d.get("password") or "")


@dataclass(frozen=True)
class DiagnosticPolicy:
    """
    Directory-specific facts the diagnosis depends on.

    The defaults match a stock Active Directory schema with a lockout
    threshold of 20 bad attempts.
    """
    lockout_threshold: int = MAX_ATTEMPTS_COUNT
    account_disabled_bit: int = ACCOUNT_DISABLED
    password_never_expires_bit: int = PASSWORD_NEVER_EXPIRES
    username_attribute: str = ATTR_USERNAME

    def __post_init__(self):
        if self.lockout_threshold < 0:
            raise ValueError(f"lockout_threshold must be >= 0, got {self.lockout_threshold}")
        for name in ("account_disabled_bit", "password_never_expires_bit"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DiagnosticPolicy":
        defaults = cls()
        return cls(
            lockout_threshold=d.get("lockout_threshold", defaults.lockout_threshold),
            account_disabled_bit=d.get("account_disabled_bit", defaults.account_disabled_bit),
            password_never_expires_bit=d.get("password_never_expires_bit", defaults.password_never_expires_bit),
            username_attribute=d.get("username_attribute", defaults.username_attribute),
        )


@dataclass(frozen=True)
class DiagnosisResult:
    """An outcome together with the username it was produced for."""
    outcome: AuthenticationOutcome
    username: str

    @property
    def success(self) -> bool:
        return self.outcome is AuthenticationOutcome.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "outcome": self.outcome.value,
            "success": self.success,
        }
