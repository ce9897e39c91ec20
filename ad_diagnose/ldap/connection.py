"""ADConnection class for LDAP operations."""

import ipaddress
import logging
from typing import Any, Dict, List, Optional

from ldap3 import ALL, BASE, NTLM, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPBindError, LDAPException

from ..constants import (
    ACCOUNT_ATTRIBUTES,
    ATTR_ACCOUNT_CONTROL,
    ATTR_FAILED_ATTEMPTS,
    ATTR_PASSWORD_SET,
    ATTR_USERNAME,
)
from ..errors import DirectoryUnavailableError
from ..flags import UINT32_MASK
from ..models import AccountRecord

logger = logging.getLogger(__name__)


def is_ip_address(value: str) -> bool:
    """Check if a string is an IPv4 or IPv6 address."""
    try:
        ipaddress.ip_address(value)
        return True
    except ValueError:
        return False


def fqdn_to_base_dn(fqdn: str) -> str:
    """Convert FQDN to LDAP base DN (e.g., 'corp.example.com' -> 'DC=corp,DC=example,DC=com')"""
    return ",".join(f"DC={part}" for part in fqdn.split("."))


def raw_int(entry: Any, attr: str) -> int:
    """
    Read the first raw value of ``attr`` as an integer.

    Raw values are used because ldap3 formats some AD attributes (pwdLastSet)
    as datetimes. A missing or empty attribute reads as 0.
    """
    if not hasattr(entry, attr):
        return 0
    raw = entry[attr].raw_values
    if not raw:
        return 0
    value = raw[0]
    if isinstance(value, bytes):
        value = value.decode("ascii")
    return int(value)


def entry_to_record(entry: Any, username_attribute: str = ATTR_USERNAME) -> AccountRecord:
    """Convert an ldap3 Entry into an AccountRecord snapshot."""
    username = entry[username_attribute].value if hasattr(entry, username_attribute) else None
    account_name = entry[ATTR_USERNAME].value if hasattr(entry, ATTR_USERNAME) else None
    return AccountRecord(
        username=username or "",
        failed_attempt_count=raw_int(entry, ATTR_FAILED_ATTEMPTS),
        account_control=raw_int(entry, ATTR_ACCOUNT_CONTROL) & UINT32_MASK,
        password_set_timestamp=raw_int(entry, ATTR_PASSWORD_SET),
        dn=entry.entry_dn,
        account_name=account_name,
    )


class ADConnection:
    """
    A connection manager for Active Directory LDAP operations.

    Searches run over a connection bound with the service credentials given
    here. bind() checks another account's password over a separate,
    short-lived connection so the service bind is never replaced.

    Attributes:
        server: The ldap3 Server object
        connection: The ldap3 Connection object (None until connect() is called)
        base_dn: The base DN for LDAP searches

    Example:
        with ADConnection('dc01.corp.local', 'svc_ldap', 'password', workgroup='CORP') as ad:
            records = ad.search('(sAMAccountName=jdoe)')
            ok = ad.bind('(sAMAccountName=jdoe)', 'hunter2')
    """

    def __init__(
        self,
        dc_host: str,
        username: str,
        password: str,
        workgroup: str = None,
        base_dn: str = None,
        use_ssl: bool = False,
        port: int = None,
        username_attribute: str = ATTR_USERNAME,
        timeout: Optional[int] = None,
    ):
        """
        Initialize an AD connection configuration.

        Args:
            dc_host: Domain controller FQDN or IP address
            username: Service account username for searches
            password: Service account password
            workgroup: NetBIOS domain/workgroup name (e.g., 'CORP')
            base_dn: Override the LDAP search base DN
            use_ssl: Use LDAPS (SSL/TLS)
            port: Override the port (default: 636 for SSL, 389 otherwise)
            username_attribute: Attribute holding the login name
            timeout: Connect/receive timeout in seconds (None = ldap3 default)
        """
        self.dc_host = dc_host
        self.username = self._clean_username(username)
        self.password = password
        self.workgroup = workgroup
        self._base_dn_override = base_dn
        self.use_ssl = use_ssl
        self.port = port or (636 if use_ssl else 389)
        self.username_attribute = username_attribute
        self.timeout = timeout

        self.server: Optional[Server] = None
        self.connection: Optional[Connection] = None
        self.base_dn: Optional[str] = None

    def _clean_username(self, username: str) -> str:
        """Strip any existing domain prefix from username."""
        if "\\" in username:
            return username.partition("\\")[2]
        return username.partition("@")[0] or username

    def _auth_params(self, username: str, password: str, dn: str = None) -> Dict[str, Any]:
        """Build Connection() authentication parameters."""
        if self.workgroup:
            # Use NetBIOS domain/workgroup for NTLM.
            return {
                "user": f"{self.workgroup}\\{username}",
                "password": password,
                "authentication": NTLM,
            }
        # SIMPLE bind (or default) if no workgroup specified.
        return {"user": dn or username, "password": password}

    def _resolve_base_dn(self) -> str:
        """Determine the base DN from override, server info, or FQDN."""
        if self._base_dn_override:
            return self._base_dn_override

        # Try to get from server info
        if self.server and self.server.info and self.server.info.other.get("defaultNamingContext"):
            return self.server.info.other["defaultNamingContext"][0]

        # Fall back to deriving from FQDN (won't work for IP addresses)
        if not is_ip_address(self.dc_host):
            return fqdn_to_base_dn(self.dc_host)

        raise ValueError(
            "Cannot determine base DN. When using an IP address, either provide "
            "--base-dn or ensure the server exposes defaultNamingContext."
        )

    def connect(self) -> "ADConnection":
        """Establish the LDAP connection. Returns self for chaining."""
        server_kwargs: Dict[str, Any] = {"port": self.port, "use_ssl": self.use_ssl, "get_info": ALL}
        conn_kwargs: Dict[str, Any] = {}
        if self.timeout:
            server_kwargs["connect_timeout"] = self.timeout
            conn_kwargs["receive_timeout"] = self.timeout

        self.server = Server(self.dc_host, **server_kwargs)
        try:
            self.connection = Connection(
                self.server,
                auto_bind=True,
                **conn_kwargs,
                **self._auth_params(self.username, self.password),
            )
        except LDAPException as e:
            raise DirectoryUnavailableError(f"Could not connect to {self.dc_host}: {e}") from e
        self.base_dn = self._resolve_base_dn()
        logger.debug("Connected to %s (base DN %s)", self.dc_host, self.base_dn)
        return self

    def disconnect(self) -> None:
        """Close the LDAP connection."""
        if self.connection:
            self.connection.unbind()
            self.connection = None

    def __enter__(self) -> "ADConnection":
        """Context manager entry."""
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Context manager exit."""
        self.disconnect()
        return False

    def _search_entries(
        self,
        search_filter: str,
        attributes: List[str],
        search_base: str = None,
        scope=SUBTREE,
    ) -> List[Any]:
        """Perform an LDAP search and return the raw ldap3 Entry objects."""
        if not self.connection:
            raise RuntimeError("Not connected. Call connect() first or use as context manager.")

        found = self.connection.search(
            search_base=search_base or self.base_dn,
            search_filter=search_filter,
            search_scope=scope,
            attributes=attributes,
        )
        # search() returns False both for an empty result and for a failed operation.
        if not found:
            result = self.connection.result or {}
            if result.get("result", 0) != 0:
                detail = f"{result.get('description')} {result.get('message') or ''}".rstrip()
                raise DirectoryUnavailableError(f"Search for {search_filter} failed: {detail}")
        return list(self.connection.entries)

    def search(self, search_filter: str) -> List[AccountRecord]:
        """
        Search for accounts matching ``search_filter``.

        Every call is a new round-trip to the server.

        Returns:
            List of AccountRecord snapshots, in server order
        """
        attributes = [self.username_attribute] + ACCOUNT_ATTRIBUTES
        if self.username_attribute != ATTR_USERNAME:
            attributes.append(ATTR_USERNAME)
        entries = self._search_entries(search_filter, attributes)
        return [entry_to_record(entry, self.username_attribute) for entry in entries]

    def bind(self, search_filter: str, password: str) -> bool:
        """
        Attempt to bind as the first account matching ``search_filter``.

        Returns:
            True if the directory accepted the password, False otherwise
            (including when no account matches)

        Raises:
            DirectoryUnavailableError: the server could not be reached
        """
        # An empty password would turn a SIMPLE bind into an anonymous one.
        if not password:
            logger.debug("Refusing bind with empty password for %s", search_filter)
            return False

        try:
            records = self.search(search_filter)
        except LDAPException as e:
            raise DirectoryUnavailableError(f"Directory search failed: {e}") from e
        if not records:
            return False
        record = records[0]

        conn_kwargs: Dict[str, Any] = {}
        if self.timeout:
            conn_kwargs["receive_timeout"] = self.timeout

        user_conn = Connection(
            self.server,
            **conn_kwargs,
            **self._auth_params(record.account_name or record.username, password, dn=record.dn),
        )
        try:
            bound = bool(user_conn.bind())
        except LDAPBindError:
            bound = False
        except LDAPException as e:
            raise DirectoryUnavailableError(f"Bind attempt against {self.dc_host} failed: {e}") from e
        finally:
            if not user_conn.closed:
                user_conn.unbind()

        logger.debug("Bind as %s: %s", record.dn, "accepted" if bound else "rejected")
        return bound

    def get_lockout_threshold(self) -> int:
        """
        Retrieve the domain's account lockout threshold.

        Returns:
            Number of failed attempts before lockout (0 = never)
        """
        entries = self._search_entries("(objectClass=domain)", ["lockoutThreshold"], self.base_dn, BASE)
        if not entries:
            raise RuntimeError("Could not retrieve domain policy")

        entry = entries[0]
        if not hasattr(entry, "lockoutThreshold") or entry["lockoutThreshold"].value is None:
            return 0
        return int(entry["lockoutThreshold"].value)
