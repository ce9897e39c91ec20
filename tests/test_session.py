import pytest

from ad_diagnose.errors import DiagnosisSequenceError, DirectoryUnavailableError
from ad_diagnose.lookup import DirectoryLookup
from ad_diagnose.models import Credentials, DiagnosticPolicy
from ad_diagnose.session import DiagnosticSession

CREDS = Credentials("jdoe", "hunter2")


def run_failed_bind(ad, policy=None) -> DiagnosticSession:
    session = DiagnosticSession(DirectoryLookup(ad), CREDS, policy)
    session.begin_diagnosis()
    session.record_bind_result(ad.bind(session.search_filter, CREDS.password))
    session.conclude_diagnosis()
    return session


def test_search_filter() -> None:
    session = DiagnosticSession(DirectoryLookup(None), CREDS)
    assert session.search_filter == "(sAMAccountName=jdoe)"


def test_search_filter_uses_lookup_attribute() -> None:
    session = DiagnosticSession(DirectoryLookup(None, "uid"), CREDS)
    assert session.search_filter == "(uid=jdoe)"


def test_phases_keep_two_snapshots(directory, record) -> None:
    ad = directory(record(failed_attempt_count=5), count_after_bind=6)
    session = run_failed_bind(ad)

    assert session.pre_bind_record.failed_attempt_count == 5
    assert session.post_bind_record.failed_attempt_count == 6
    assert session.current_record is session.post_bind_record
    assert ad.call_names == ["search", "bind", "search"]


def test_wrong_password_when_counter_increments(directory, record) -> None:
    session = run_failed_bind(directory(record(failed_attempt_count=5), count_after_bind=6))
    assert session.is_wrong_password()


@pytest.mark.parametrize("after", [5, 4, 0])
def test_not_wrong_password_without_increment(directory, record, after: int) -> None:
    session = run_failed_bind(directory(record(failed_attempt_count=5), count_after_bind=after))
    assert not session.is_wrong_password()


def test_account_vanished_is_not_wrong_password(directory, record) -> None:
    ad = directory(record())
    session = DiagnosticSession(DirectoryLookup(ad), CREDS)
    session.begin_diagnosis()
    session.record_bind_result(False)
    ad.record = None
    assert session.conclude_diagnosis() is None

    assert not session.is_wrong_password()
    assert session.current_record is session.pre_bind_record


def test_post_bind_read_failure_propagates(directory, record) -> None:
    ad = directory(record(), count_after_bind=6)
    session = DiagnosticSession(DirectoryLookup(ad), CREDS)
    session.begin_diagnosis()
    session.record_bind_result(ad.bind(session.search_filter, CREDS.password))

    def unavailable(search_filter):
        raise DirectoryUnavailableError("Search for (sAMAccountName=jdoe) failed: busy")

    ad.search = unavailable
    with pytest.raises(DirectoryUnavailableError, match="busy"):
        session.conclude_diagnosis()
    assert session.post_bind_record is None


@pytest.mark.parametrize(
    "count, expected",
    [
        (19, False),
        (20, True),
        (21, False),
    ],
)
def test_lockout_requires_exact_threshold(directory, record, count: int, expected: bool) -> None:
    session = run_failed_bind(directory(record(failed_attempt_count=count)))
    assert session.is_locked_out() is expected


def test_lockout_threshold_is_configurable(directory, record) -> None:
    policy = DiagnosticPolicy(lockout_threshold=5)
    session = run_failed_bind(directory(record(failed_attempt_count=5)), policy)
    assert session.is_locked_out()


def test_lockout_threshold_zero_never_locks(directory, record) -> None:
    policy = DiagnosticPolicy(lockout_threshold=0)
    session = run_failed_bind(directory(record(failed_attempt_count=0)), policy)
    assert not session.is_locked_out()


def test_lockout_reads_post_bind_counter(directory, record) -> None:
    session = run_failed_bind(directory(record(failed_attempt_count=19), count_after_bind=20))
    assert session.is_locked_out()


@pytest.mark.parametrize(
    "timestamp, account_control, expected",
    [
        (0, 512, True),
        (0, 512 | 65536, False),
        (133000000000000000, 512, False),
        (133000000000000000, 512 | 65536, False),
    ],
)
def test_password_expired(directory, record, timestamp: int, account_control: int, expected: bool) -> None:
    ad = directory(record(password_set_timestamp=timestamp, account_control=account_control))
    session = run_failed_bind(ad)
    assert session.is_password_expired() is expected


def test_account_disabled(directory, record) -> None:
    assert run_failed_bind(directory(record(account_control=514))).is_account_disabled()
    assert not run_failed_bind(directory(record(account_control=512))).is_account_disabled()


def test_custom_bit_indices(directory, record) -> None:
    policy = DiagnosticPolicy(account_disabled_bit=3, password_never_expires_bit=4)
    session = run_failed_bind(directory(record(account_control=0b11000, password_set_timestamp=0)), policy)

    assert session.is_account_disabled()
    assert not session.is_password_expired()


def test_flags_decoded_once_from_pre_bind_snapshot(directory, record) -> None:
    ad = directory(record(account_control=512))
    session = DiagnosticSession(DirectoryLookup(ad), CREDS)
    session.begin_diagnosis()
    session.record_bind_result(False)
    ad.record = record(account_control=514)
    session.conclude_diagnosis()

    assert session.post_bind_record.account_control == 514
    assert not session.is_account_disabled()
    assert session.flags is session.flags


def test_begin_twice_raises(directory, record) -> None:
    session = DiagnosticSession(DirectoryLookup(directory(record())), CREDS)
    session.begin_diagnosis()
    with pytest.raises(DiagnosisSequenceError, match="already called"):
        session.begin_diagnosis()


def test_record_bind_result_before_begin_raises(directory, record) -> None:
    session = DiagnosticSession(DirectoryLookup(directory(record())), CREDS)
    with pytest.raises(DiagnosisSequenceError, match="begin_diagnosis"):
        session.record_bind_result(False)


def test_record_bind_result_when_account_missing_raises(directory) -> None:
    session = DiagnosticSession(DirectoryLookup(directory(None)), CREDS)
    assert session.begin_diagnosis() is None
    with pytest.raises(DiagnosisSequenceError):
        session.record_bind_result(False)


def test_record_bind_result_twice_raises(directory, record) -> None:
    session = DiagnosticSession(DirectoryLookup(directory(record())), CREDS)
    session.begin_diagnosis()
    session.record_bind_result(False)
    with pytest.raises(DiagnosisSequenceError, match="already recorded"):
        session.record_bind_result(False)


def test_conclude_before_bind_raises(directory, record) -> None:
    session = DiagnosticSession(DirectoryLookup(directory(record())), CREDS)
    session.begin_diagnosis()
    with pytest.raises(DiagnosisSequenceError, match="record_bind_result"):
        session.conclude_diagnosis()


def test_conclude_after_successful_bind_raises(directory, record) -> None:
    ad = directory(record())
    session = DiagnosticSession(DirectoryLookup(ad), CREDS)
    session.begin_diagnosis()
    session.record_bind_result(True)
    with pytest.raises(DiagnosisSequenceError, match="nothing to diagnose"):
        session.conclude_diagnosis()
    assert ad.call_names == ["search"]


def test_conclude_twice_raises(directory, record) -> None:
    session = run_failed_bind(directory(record()))
    with pytest.raises(DiagnosisSequenceError, match="already called"):
        session.conclude_diagnosis()


def test_wrong_password_check_before_conclude_raises(directory, record) -> None:
    session = DiagnosticSession(DirectoryLookup(directory(record())), CREDS)
    session.begin_diagnosis()
    session.record_bind_result(False)
    with pytest.raises(DiagnosisSequenceError, match="conclude_diagnosis"):
        session.is_wrong_password()


def test_checks_before_begin_raise() -> None:
    session = DiagnosticSession(DirectoryLookup(None), CREDS)
    with pytest.raises(DiagnosisSequenceError):
        session.is_account_disabled()
    with pytest.raises(DiagnosisSequenceError):
        session.is_locked_out()
