import dataclasses
import typing as t

import pytest

from ad_diagnose.models import AccountRecord


class FakeDirectory:
    """
    Stand-in for a directory connection.

    A failed bind moves the account's badPwdCount to ``count_after_bind`` when
    set, the way a domain controller does for a bad password.
    """

    def __init__(
        self,
        record: t.Optional[AccountRecord] = None,
        bind_ok: bool = False,
        count_after_bind: t.Optional[int] = None,
        lockout_threshold: int = 20,
    ) -> None:
        self.record = record
        self.bind_ok = bind_ok
        self.count_after_bind = count_after_bind
        self.lockout_threshold = lockout_threshold
        self.calls: t.List[t.Tuple[str, str]] = []

    def search(self, search_filter: str) -> t.List[AccountRecord]:
        self.calls.append(("search", search_filter))
        return [self.record] if self.record else []

    def bind(self, search_filter: str, password: str) -> bool:
        self.calls.append(("bind", search_filter))
        if not self.bind_ok and self.count_after_bind is not None:
            self.record = dataclasses.replace(self.record, failed_attempt_count=self.count_after_bind)
        return self.bind_ok

    def get_lockout_threshold(self) -> int:
        return self.lockout_threshold

    def __enter__(self) -> "FakeDirectory":
        return self

    def __exit__(self, *args: t.Any) -> bool:
        return False

    @property
    def call_names(self) -> t.List[str]:
        return [name for name, _ in self.calls]


def make_record(
    username: str = "jdoe",
    failed_attempt_count: int = 5,
    account_control: int = 512,
    password_set_timestamp: int = 133000000000000000,
) -> AccountRecord:
    return AccountRecord(
        username=username,
        failed_attempt_count=failed_attempt_count,
        account_control=account_control,
        password_set_timestamp=password_set_timestamp,
        dn=f"CN={username},CN=Users,DC=corp,DC=local",
    )


@pytest.fixture
def directory() -> t.Callable[..., FakeDirectory]:
    return FakeDirectory


@pytest.fixture
def record() -> t.Callable[..., AccountRecord]:
    return make_record
