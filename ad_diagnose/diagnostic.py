"""Login diagnosis: find out why a bind failed."""

import logging
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from ldap3.core.exceptions import LDAPException

from .errors import DirectoryUnavailableError, error_for_outcome
from .lookup import DirectoryLookup
from .models import AuthenticationOutcome, Credentials, DiagnosisResult, DiagnosticPolicy
from .session import DiagnosticSession

logger = logging.getLogger(__name__)

CredentialsLike = Union[Credentials, Mapping[str, Any]]

# Checked in this order once a bind has failed; the first match wins.
CLASSIFICATION_ORDER: List[Tuple[AuthenticationOutcome, Callable[[DiagnosticSession], bool]]] = [
    (AuthenticationOutcome.WRONG_PASSWORD, DiagnosticSession.is_wrong_password),
    (AuthenticationOutcome.ACCOUNT_DISABLED, DiagnosticSession.is_account_disabled),
    (AuthenticationOutcome.ACCOUNT_LOCKED_OUT, DiagnosticSession.is_locked_out),
    (AuthenticationOutcome.PASSWORD_EXPIRED, DiagnosticSession.is_password_expired),
]


def classify(session: DiagnosticSession) -> AuthenticationOutcome:
    """Return the highest-priority cause for a concluded session."""
    for outcome, check in CLASSIFICATION_ORDER:
        if check(session):
            return outcome
    return AuthenticationOutcome.NOT_AUTHORIZED


class LoginDiagnostic:
    """
    Diagnoses a single login against a directory connection.

    ``connection`` must provide ``search(search_filter)`` returning a sequence
    of AccountRecord and ``bind(search_filter, password)`` returning a bool.

    Example:
        with ADConnection('dc01.corp.local', 'svc', 'secret', workgroup='CORP') as ad:
            result = LoginDiagnostic.call(ad, {"username": "jdoe", "password": "hunter2"})
    """

    def __init__(
        self,
        connection: Any,
        credentials: CredentialsLike,
        policy: Optional[DiagnosticPolicy] = None,
    ):
        self.connection = connection
        if not isinstance(credentials, Credentials):
            credentials = Credentials.from_dict(credentials)
        self.credentials = credentials
        self.policy = policy or DiagnosticPolicy()

    @classmethod
    def call(
        cls,
        connection: Any,
        credentials: CredentialsLike,
        policy: Optional[DiagnosticPolicy] = None,
    ) -> DiagnosisResult:
        """Diagnose and raise the matching LoginError for anything but success."""
        return cls(connection, credentials, policy).check_user()

    @property
    def username(self) -> str:
        return self.credentials.username

    def _bind(self, search_filter: str) -> bool:
        try:
            return bool(self.connection.bind(search_filter, self.credentials.password))
        except LDAPException as e:
            raise DirectoryUnavailableError(f"Bind attempt failed: {e}") from e

    def diagnose(self) -> DiagnosisResult:
        """Run the full procedure and return exactly one outcome."""
        lookup = DirectoryLookup(self.connection, self.policy.username_attribute)
        session = DiagnosticSession(lookup, self.credentials, self.policy)

        if session.begin_diagnosis() is None:
            logger.info("Login for %s: account not found", self.username)
            return DiagnosisResult(AuthenticationOutcome.NOT_FOUND, self.username)

        success = self._bind(session.search_filter)
        session.record_bind_result(success)
        if success:
            logger.info("Login for %s: bind succeeded", self.username)
            return DiagnosisResult(AuthenticationOutcome.SUCCESS, self.username)

        session.conclude_diagnosis()
        outcome = classify(session)
        logger.info("Login for %s: bind failed (%s)", self.username, outcome.value)
        return DiagnosisResult(outcome, self.username)

    def check_user(self) -> DiagnosisResult:
        """
        Diagnose the login, raising on failure.

        Raises:
            UserNotFoundError, WrongPasswordError, AccountDisabledError,
            AccountLockedOutError, PasswordExpiredError, NotAuthorizedError:
                the login failed for that reason
            DirectoryUnavailableError: the directory could not be queried
        """
        result = self.diagnose()
        if not result.success:
            raise error_for_outcome(result.outcome, result.username)
        return result


def diagnose(
    connection: Any,
    credentials: CredentialsLike,
    policy: Optional[DiagnosticPolicy] = None,
) -> DiagnosisResult:
    """Diagnose one login and return its outcome."""
    return LoginDiagnostic(connection, credentials, policy).diagnose()


def check_user(
    connection: Any,
    credentials: CredentialsLike,
    policy: Optional[DiagnosticPolicy] = None,
) -> DiagnosisResult:
    """Diagnose one login, raising the matching LoginError unless it succeeded."""
    return LoginDiagnostic.call(connection, credentials, policy)
