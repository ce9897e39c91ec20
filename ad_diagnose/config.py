"""Configuration file handling."""

import argparse
import configparser
from typing import Any, Callable, Dict, Optional

from .models import DiagnosticPolicy


DEFAULT_CONFIG_TEMPLATE = """\
# AD Diagnose Configuration File
# ------------------------------
# Use 'auto' for lockout_threshold to read the domain's lockoutThreshold.
# The [target] credentials are a service account used for searches; they are
# never the account being diagnosed.

[target]
# Domain controller FQDN or IP address
dc = 10.0.0.1
# NetBIOS domain/workgroup name (enables NTLM binds; leave empty for SIMPLE)
workgroup = CORP
# Service account used to read account attributes
username = svc_ldap
password = P@ssw0rd!
# Use LDAPS (SSL/TLS)
ssl = false
# Override port number (optional, leave empty for default)
port =
# Override LDAP base DN (optional, leave empty for auto-detect)
base_dn =
# Connect/receive timeout in seconds (optional)
timeout =

[policy]
# badPwdCount value treated as locked out, or 'auto' to fetch from AD
# 0 = no lockout policy
lockout_threshold = 20
# Bit index of ACCOUNTDISABLE in userAccountControl
account_disabled_bit = 1
# Bit index of DONT_EXPIRE_PASSWORD in userAccountControl
password_never_expires_bit = 16
# Attribute holding the login name
username_attribute = sAMAccountName

[output]
# Verbosity level (0=silent, 1=minimal, 2=normal, 3=verbose)
verbose = 2
# Print the result as JSON on stdout
json = false
"""


def _optional_int(config: configparser.ConfigParser, section: str, key: str) -> Optional[int]:
    value = config.get(section, key, fallback='')
    return int(value) if value.strip() else None


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from INI file.

    Returns a dict with all config values, using None for unset values.
    """
    config = configparser.ConfigParser()
    config.read(config_path)

    result: Dict[str, Any] = {}

    # [target] section
    if config.has_section('target'):
        result['dc'] = config.get('target', 'dc', fallback=None)
        workgroup = config.get('target', 'workgroup', fallback='')
        result['workgroup'] = workgroup if workgroup.strip() else None
        result['username'] = config.get('target', 'username', fallback=None)
        result['password'] = config.get('target', 'password', fallback=None)
        result['ssl'] = config.getboolean('target', 'ssl', fallback=False)
        result['port'] = _optional_int(config, 'target', 'port')
        base_dn = config.get('target', 'base_dn', fallback='')
        result['base_dn'] = base_dn if base_dn.strip() else None
        result['timeout'] = _optional_int(config, 'target', 'timeout')

    # [policy] section - lockout_threshold supports 'auto'
    if config.has_section('policy'):
        threshold = config.get('policy', 'lockout_threshold', fallback='')
        if threshold.strip().lower() == 'auto':
            result['lockout_threshold'] = 'auto'
        elif threshold.strip():
            result['lockout_threshold'] = int(threshold)
        result['disabled_bit'] = _optional_int(config, 'policy', 'account_disabled_bit')
        result['never_expires_bit'] = _optional_int(config, 'policy', 'password_never_expires_bit')
        attr = config.get('policy', 'username_attribute', fallback='')
        result['username_attribute'] = attr.strip() or None

    # [output] section
    if config.has_section('output'):
        result['verbose'] = config.getint('output', 'verbose', fallback=2)
        result['json'] = config.getboolean('output', 'json', fallback=False)

    return result


def merge_config_with_args(config: Dict[str, Any], args: argparse.Namespace) -> argparse.Namespace:
    """
    Merge config file values with CLI args. CLI args take precedence.
    """
    for key, config_value in config.items():
        if config_value is None:
            continue

        if hasattr(args, key):
            current_value = getattr(args, key)
            # If CLI provided a value (not None and not the argparse default), keep it.
            if current_value is not None:
                if isinstance(current_value, bool) and not current_value and config_value:
                    setattr(args, key, config_value)
                # Preserve explicit CLI values (including False) unless config is True.
                continue

        setattr(args, key, config_value)

    return args


def build_policy(
    values: Dict[str, Any],
    threshold_lookup: Optional[Callable[[], int]] = None,
) -> DiagnosticPolicy:
    """
    Build a DiagnosticPolicy from merged config/CLI values.

    Args:
        values: Mapping with optional lockout_threshold, disabled_bit,
            never_expires_bit and username_attribute keys
        threshold_lookup: Called when lockout_threshold is 'auto'

    Raises:
        ValueError: lockout_threshold is 'auto' and no lookup was given
    """
    defaults = DiagnosticPolicy()

    threshold = values.get('lockout_threshold')
    if threshold == 'auto':
        if threshold_lookup is None:
            raise ValueError("lockout_threshold = auto requires a directory connection")
        threshold = threshold_lookup()
    if threshold is None:
        threshold = defaults.lockout_threshold

    def pick(key: str, default: Any) -> Any:
        value = values.get(key)
        return default if value is None else value

    return DiagnosticPolicy(
        lockout_threshold=int(threshold),
        account_disabled_bit=pick('disabled_bit', defaults.account_disabled_bit),
        password_never_expires_bit=pick('never_expires_bit', defaults.password_never_expires_bit),
        username_attribute=pick('username_attribute', defaults.username_attribute),
    )


def generate_config_file(output_path: Optional[str] = None) -> str:
    """Generate a template configuration file."""
    if output_path:
        with open(output_path, 'w') as f:
            f.write(DEFAULT_CONFIG_TEMPLATE)
        return f"Configuration template written to: {output_path}"
    else:
        return DEFAULT_CONFIG_TEMPLATE
