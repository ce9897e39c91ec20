"""Constants used throughout the application."""


class Colors:
    """ANSI color codes for terminal output."""
    NC = '\033[0m'
    RED = '\033[0;31m'
    BLUE = '\033[0;34m'
    GREEN = '\033[0;32m'
    LBLUE = '\033[1;34m'
    ORANGE = '\033[0;33m'

    @classmethod
    def disable(cls):
        """Disable colors (for non-TTY output)."""
        cls.NC = cls.RED = cls.BLUE = cls.GREEN = cls.LBLUE = cls.ORANGE = ''


# Directory attributes read for every matched account
ATTR_USERNAME = "sAMAccountName"
ATTR_FAILED_ATTEMPTS = "badPwdCount"
ATTR_ACCOUNT_CONTROL = "userAccountControl"
ATTR_PASSWORD_SET = "pwdLastSet"

ACCOUNT_ATTRIBUTES = [ATTR_FAILED_ATTEMPTS, ATTR_ACCOUNT_CONTROL, ATTR_PASSWORD_SET]

# Bit indices (not values) into userAccountControl
ACCOUNT_DISABLED = 1          # ACCOUNTDISABLE, value 2
PASSWORD_NEVER_EXPIRES = 16   # DONT_EXPIRE_PASSWORD, value 65536

# badPwdCount value at which the account is treated as locked out
MAX_ATTEMPTS_COUNT = 20

# pwdLastSet value meaning "no timestamp recorded" (expired or reset pending)
PASSWORD_SET_SENTINEL = 0

# Well-known userAccountControl flags, keyed by bit index
# Reference: https://learn.microsoft.com/en-us/troubleshoot/windows-server/active-directory/useraccountcontrol-manipulate-account-properties
USER_ACCOUNT_CONTROL_FLAGS = {
    0: "SCRIPT",
    1: "ACCOUNTDISABLE",
    3: "HOMEDIR_REQUIRED",
    4: "LOCKOUT",
    5: "PASSWD_NOTREQD",
    6: "PASSWD_CANT_CHANGE",
    7: "ENCRYPTED_TEXT_PWD_ALLOWED",
    8: "TEMP_DUPLICATE_ACCOUNT",
    9: "NORMAL_ACCOUNT",
    11: "INTERDOMAIN_TRUST_ACCOUNT",
    12: "WORKSTATION_TRUST_ACCOUNT",
    13: "SERVER_TRUST_ACCOUNT",
    16: "DONT_EXPIRE_PASSWORD",
    17: "MNS_LOGON_ACCOUNT",
    18: "SMARTCARD_REQUIRED",
    19: "TRUSTED_FOR_DELEGATION",
    20: "NOT_DELEGATED",
    21: "USE_DES_KEY_ONLY",
    22: "DONT_REQ_PREAUTH",
    23: "PASSWORD_EXPIRED",
    24: "TRUSTED_TO_AUTH_FOR_DELEGATION",
    26: "PARTIAL_SECRETS_ACCOUNT",
}

# CLI exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_LOGIN_FAILED = 2
