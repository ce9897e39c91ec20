"""
Diagnostic session bracketing a single bind attempt.

The directory never says why a bind failed, but it does increment badPwdCount
when the credential itself was wrong. A session therefore works in two phases
around the caller's bind:

    session = DiagnosticSession(lookup, credentials)
    record = session.begin_diagnosis()        # pre-bind read
    ok = connection.bind(session.search_filter, credentials.password)
    session.record_bind_result(ok)
    if not ok:
        session.conclude_diagnosis()          # post-bind read
        session.is_wrong_password()

Each phase runs once and in this order; anything else raises
DiagnosisSequenceError. Snapshots are immutable and never refreshed in place.
"""

import logging
from typing import Optional

from .constants import PASSWORD_SET_SENTINEL
from .errors import DiagnosisSequenceError
from .flags import AccountFlags
from .lookup import DirectoryLookup
from .models import AccountRecord, Credentials, DiagnosticPolicy

logger = logging.getLogger(__name__)


class DiagnosticSession:
    """
    State for diagnosing one login request.

    Attributes:
        pre_bind_record: Account snapshot taken before the bind attempt
        post_bind_record: Fresh snapshot taken after a failed bind
        bind_succeeded: Result recorded by record_bind_result(), None until then
    """

    def __init__(
        self,
        lookup: DirectoryLookup,
        credentials: Credentials,
        policy: Optional[DiagnosticPolicy] = None,
    ):
        self.lookup = lookup
        self.credentials = credentials
        self.policy = policy or DiagnosticPolicy()
        self.search_filter = lookup.account_filter(credentials.username)

        self.pre_bind_record: Optional[AccountRecord] = None
        self.post_bind_record: Optional[AccountRecord] = None
        self.bind_succeeded: Optional[bool] = None

        self._begun = False
        self._concluded = False
        self._flags: Optional[AccountFlags] = None

    @property
    def username(self) -> str:
        return self.credentials.username

    # -----------------------------------------------------------------------
    # Phases
    # -----------------------------------------------------------------------

    def begin_diagnosis(self) -> Optional[AccountRecord]:
        """Take the pre-bind snapshot. Returns None if the account does not exist."""
        if self._begun:
            raise DiagnosisSequenceError("begin_diagnosis() already called for this session")
        self._begun = True

        self.pre_bind_record = self.lookup.lookup(self.search_filter)
        if self.pre_bind_record is not None:
            logger.debug(
                "Pre-bind snapshot for %s: badPwdCount=%d",
                self.username, self.pre_bind_record.failed_attempt_count,
            )
        return self.pre_bind_record

    def record_bind_result(self, success: bool) -> None:
        """Record the outcome of the caller's single bind attempt."""
        if self.pre_bind_record is None:
            raise DiagnosisSequenceError("No account snapshot; call begin_diagnosis() first")
        if self.bind_succeeded is not None:
            raise DiagnosisSequenceError("Bind result already recorded for this session")
        self.bind_succeeded = bool(success)

    def conclude_diagnosis(self) -> Optional[AccountRecord]:
        """Force a fresh read after a failed bind and keep it as the post-bind snapshot."""
        if self.bind_succeeded is None:
            raise DiagnosisSequenceError("Bind result not recorded; call record_bind_result() first")
        if self.bind_succeeded:
            raise DiagnosisSequenceError("Bind succeeded; there is nothing to diagnose")
        if self._concluded:
            raise DiagnosisSequenceError("conclude_diagnosis() already called for this session")
        self._concluded = True

        self.post_bind_record = self.lookup.lookup(self.search_filter)
        if self.post_bind_record is None:
            logger.warning("Account %s disappeared between reads", self.username)
        else:
            logger.debug(
                "Post-bind snapshot for %s: badPwdCount=%d",
                self.username, self.post_bind_record.failed_attempt_count,
            )
        return self.post_bind_record

    # -----------------------------------------------------------------------
    # Checks
    # -----------------------------------------------------------------------

    @property
    def current_record(self) -> AccountRecord:
        """The freshest snapshot available."""
        record = self.post_bind_record or self.pre_bind_record
        if record is None:
            raise DiagnosisSequenceError("No account snapshot; call begin_diagnosis() first")
        return record

    @property
    def flags(self) -> AccountFlags:
        """Account-control flags, decoded once from the pre-bind snapshot."""
        if self._flags is None:
            if self.pre_bind_record is None:
                raise DiagnosisSequenceError("No account snapshot; call begin_diagnosis() first")
            self._flags = AccountFlags(self.pre_bind_record.account_control)
        return self._flags

    def is_wrong_password(self) -> bool:
        """True if the failed bind incremented badPwdCount."""
        if not self._concluded:
            raise DiagnosisSequenceError("conclude_diagnosis() must run before the wrong-password check")
        if self.post_bind_record is None:
            return False
        before = self.pre_bind_record.failed_attempt_count
        after = self.post_bind_record.failed_attempt_count
        return after > before

    def is_account_disabled(self) -> bool:
        return self.flags.is_property_active(self.policy.account_disabled_bit)

    def is_locked_out(self) -> bool:
        """
        True if badPwdCount sits exactly on the lockout threshold.

        A threshold of 0 means the domain has no lockout policy.
        """
        threshold = self.policy.lockout_threshold
        if threshold == 0:
            return False
        return self.current_record.failed_attempt_count == threshold

    def is_password_expired(self) -> bool:
        password_set = self.current_record.password_set_timestamp
        return (
            password_set == PASSWORD_SET_SENTINEL
            and not self.flags.is_property_active(self.policy.password_never_expires_bit)
        )
