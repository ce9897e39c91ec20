"""userAccountControl bitmask decoding."""

from typing import List

from .constants import USER_ACCOUNT_CONTROL_FLAGS

UINT32_MASK = 0xFFFFFFFF


class AccountFlags:
    """
    Read-only view of an account-control bitmask.

    Bit 0 is the least-significant bit. Bits above the width of the value are
    simply unset, so any non-negative index can be queried.

    Example:
        flags = AccountFlags(66)   # ACCOUNTDISABLE | PASSWD_CANT_CHANGE
        flags.is_property_active(1)   # True
        flags.is_property_active(40)  # False
    """

    def __init__(self, account_control: int):
        self.value = int(account_control) & UINT32_MASK

    def __repr__(self) -> str:
        return f"AccountFlags({self.value:#x})"

    def is_property_active(self, bit_index: int) -> bool:
        """Return True if bit ``bit_index`` is set. Negative indices are never set."""
        if bit_index < 0:
            return False
        return (self.value >> bit_index) & 1 == 1

    def active_bits(self) -> List[int]:
        """Indices of every set bit, lowest first."""
        return [i for i in range(self.value.bit_length()) if self.is_property_active(i)]

    def names(self) -> List[str]:
        """Names of the well-known flags that are set (unknown bits as BIT_<n>)."""
        return [USER_ACCOUNT_CONTROL_FLAGS.get(i, f"BIT_{i}") for i in self.active_bits()]
