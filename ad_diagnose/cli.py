"""Command-line interface for AD Diagnose."""

import argparse
import getpass
import json
import logging
import sys
from typing import List, Optional

from ldap3.core.exceptions import LDAPException

from .config import build_policy, generate_config_file, load_config, merge_config_with_args
from .constants import Colors, EXIT_ERROR, EXIT_LOGIN_FAILED, EXIT_SUCCESS
from .diagnostic import diagnose
from .errors import LOGIN_ERRORS, DiagnosisError
from .ldap import ADConnection
from .models import Credentials, DiagnosisResult

LOG_LEVELS = {
    0: logging.CRITICAL,
    1: logging.WARNING,
    2: logging.INFO,
    3: logging.DEBUG,
}


def configure_logging(verbose: int) -> None:
    """Route library log records to stderr at the requested verbosity."""
    level = LOG_LEVELS.get(verbose, logging.DEBUG if verbose > 3 else logging.CRITICAL)
    logging.basicConfig(
        level=level,
        format=f"{Colors.BLUE}[*]{Colors.NC} %(name)s: %(message)s",
        stream=sys.stderr,
    )


def threshold_type(value: str):
    """argparse type accepting an integer or 'auto'."""
    if value.lower() == "auto":
        return "auto"
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer or 'auto', got {value!r}")


def apply_config(args) -> argparse.Namespace:
    """Merge the optional config file into args and fill remaining defaults."""
    if getattr(args, "config", None):
        args = merge_config_with_args(load_config(args.config), args)
    if getattr(args, "verbose", None) is None:
        args.verbose = 2
    return args


def require_target(args) -> bool:
    """Check the service connection flags, printing the first missing one."""
    if not args.dc:
        print(f"{Colors.RED}[!] Domain controller is required (-d){Colors.NC}", file=sys.stderr)
        return False
    if not args.username:
        print(f"{Colors.RED}[!] Service username is required (-u){Colors.NC}", file=sys.stderr)
        return False
    if not args.password:
        print(f"{Colors.RED}[!] Service password is required (-p){Colors.NC}", file=sys.stderr)
        return False
    return True


def open_connection(args) -> ADConnection:
    return ADConnection(
        dc_host=args.dc,
        username=args.username,
        password=args.password,
        workgroup=args.workgroup,
        base_dn=args.base_dn,
        use_ssl=args.ssl or False,
        port=args.port,
        username_attribute=getattr(args, "username_attribute", None) or "sAMAccountName",
        timeout=args.timeout,
    )


def print_result(result: DiagnosisResult, as_json: bool = False) -> None:
    """Print a diagnosis result for a human, or as JSON on stdout."""
    if as_json:
        print(json.dumps(result.to_dict()))
        return

    if result.success:
        print(f"{Colors.GREEN}[+] {result.username}: {result.outcome.value}{Colors.NC}")
        return

    description = LOGIN_ERRORS[result.outcome].description
    print(f"{Colors.RED}[-] {result.username}: {result.outcome.value}{Colors.NC} ({description})")


def cmd_check(args) -> int:
    """Diagnose a single login."""
    args = apply_config(args)
    if not require_target(args):
        return EXIT_ERROR
    if not args.user:
        print(f"{Colors.RED}[!] Account to check is required (--user){Colors.NC}", file=sys.stderr)
        return EXIT_ERROR

    configure_logging(args.verbose)

    user_password = args.user_password
    if user_password is None:
        user_password = getpass.getpass(f"Password for {args.user}: ")
    credentials = Credentials(username=args.user, password=user_password)

    try:
        with open_connection(args) as ad:
            policy = build_policy(vars(args), threshold_lookup=ad.get_lockout_threshold)
            result = diagnose(ad, credentials, policy)
    except (DiagnosisError, LDAPException, RuntimeError, ValueError) as e:
        print(f"{Colors.RED}[!] Diagnosis failed: {e}{Colors.NC}", file=sys.stderr)
        return EXIT_ERROR

    print_result(result, as_json=args.json)
    return EXIT_SUCCESS if result.success else EXIT_LOGIN_FAILED


def cmd_get_policy(args) -> int:
    """Fetch and display the domain lockout threshold."""
    args = apply_config(args)
    if not require_target(args):
        return EXIT_ERROR

    configure_logging(args.verbose)

    try:
        with open_connection(args) as ad:
            threshold = ad.get_lockout_threshold()
    except (DiagnosisError, LDAPException, RuntimeError, ValueError) as e:
        print(f"{Colors.RED}[!] Failed to fetch policy: {e}{Colors.NC}", file=sys.stderr)
        return EXIT_ERROR

    print(f"\n{Colors.BLUE}{'═' * 50}{Colors.NC}")
    print(f"{Colors.ORANGE} Domain Lockout Policy{Colors.NC}")
    print(f"{Colors.BLUE}{'═' * 50}{Colors.NC}\n")
    print(f"  {Colors.LBLUE}Lockout Threshold:{Colors.NC}      {threshold}")
    print(f"\n{Colors.BLUE}{'═' * 50}{Colors.NC}\n")

    if threshold == 0:
        print(f"  {Colors.GREEN}No lockout policy - lockout checks will be skipped{Colors.NC}")
    else:
        print(f"  {Colors.ORANGE}Suggested setting:{Colors.NC}")
        print(f"    --lockout-threshold {threshold}")
    print()
    return EXIT_SUCCESS


def cmd_generate_config(args) -> int:
    """Write or print a configuration template."""
    print(generate_config_file(args.output))
    return EXIT_SUCCESS


def add_target_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--config", help="Configuration file (INI format)")
    parser.add_argument("-d", "--dc", help="Domain controller FQDN or IP address")
    parser.add_argument("-w", "--workgroup", help="NetBIOS domain/workgroup name (e.g., CORP)")
    parser.add_argument("-u", "--username", help="Service account username for searches")
    parser.add_argument("-p", "--password", help="Service account password")
    parser.add_argument("--base-dn", dest="base_dn", help="Override LDAP base DN")
    parser.add_argument("--ssl", action="store_true", help="Use LDAPS (SSL/TLS)")
    parser.add_argument("--port", type=int, help="Override port number")
    parser.add_argument("--timeout", type=int, help="Connect/receive timeout in seconds")
    parser.add_argument("-v", "--verbose", type=int, choices=[0, 1, 2, 3],
                        help="Verbosity level (0=silent, 3=max, default: 2)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ad-diagnose",
        description="Find out why an Active Directory login failed",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Diagnose a login for one account",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Prompt for the account's password
  %(prog)s -d dc01.corp.local -w CORP -u svc_ldap -p 'P@ss' --user jdoe

  # Use a config file and print JSON
  %(prog)s -c diagnose.ini --user jdoe --user-password 'hunter2' --json

Exit codes: 0 = login succeeded, 2 = login failed (diagnosed), 1 = error
        """,
    )
    add_target_arguments(check_parser)
    check_parser.add_argument("--user", help="Account to diagnose")
    check_parser.add_argument("--user-password", dest="user_password",
                              help="Password to test (prompted if omitted)")
    check_parser.add_argument("--lockout-threshold", dest="lockout_threshold", type=threshold_type,
                              help="badPwdCount treated as locked out, or 'auto' (default: 20)")
    check_parser.add_argument("--disabled-bit", dest="disabled_bit", type=int,
                              help="userAccountControl bit index for disabled accounts (default: 1)")
    check_parser.add_argument("--never-expires-bit", dest="never_expires_bit", type=int,
                              help="userAccountControl bit index for non-expiring passwords (default: 16)")
    check_parser.add_argument("--username-attribute", dest="username_attribute",
                              help="Attribute holding the login name (default: sAMAccountName)")
    check_parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    check_parser.set_defaults(func=cmd_check)

    # Get-policy subcommand
    policy_parser = subparsers.add_parser(
        "get-policy",
        help="Fetch and display the domain lockout threshold",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -d 10.0.0.1 -w CORP -u svc_ldap -p 'P@ss'
  %(prog)s -d dc01.corp.local -w CORP -u svc_ldap -p 'P@ss' --ssl
        """,
    )
    add_target_arguments(policy_parser)
    policy_parser.set_defaults(func=cmd_get_policy)

    # Generate-config subcommand
    config_parser = subparsers.add_parser("generate-config", help="Write a configuration template")
    config_parser.add_argument("-o", "--output", help="Output file (prints to stdout if omitted)")
    config_parser.set_defaults(func=cmd_generate_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Disable colors if not a TTY
    if not sys.stderr.isatty():
        Colors.disable()

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
