"""Account lookup against the directory."""

import logging
from typing import Any, Optional

from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from .constants import ATTR_USERNAME
from .errors import DirectoryUnavailableError
from .models import AccountRecord

logger = logging.getLogger(__name__)


def build_account_filter(username: str, username_attribute: str = ATTR_USERNAME) -> str:
    """Build the equality filter for an account, e.g. '(sAMAccountName=jdoe)'."""
    return f"({username_attribute}={escape_filter_chars(username)})"


class DirectoryLookup:
    """
    Resolves a username to at most one AccountRecord.

    ``connection`` must provide ``search(search_filter)`` returning a sequence
    of AccountRecord (see ADConnection). Every call goes to the directory;
    nothing is cached here.
    """

    def __init__(self, connection: Any, username_attribute: str = ATTR_USERNAME):
        self.connection = connection
        self.username_attribute = username_attribute

    def account_filter(self, username: str) -> str:
        return build_account_filter(username, self.username_attribute)

    def lookup(self, search_filter: str) -> Optional[AccountRecord]:
        """
        Search for ``search_filter`` and return the first record, or None.

        Raises:
            DirectoryUnavailableError: the connection failed or the server
                returned a protocol error.
        """
        try:
            records = self.connection.search(search_filter)
        except LDAPException as e:
            raise DirectoryUnavailableError(f"Directory search failed: {e}") from e

        if not records:
            logger.debug("No account matched %s", search_filter)
            return None
        if len(records) > 1:
            logger.warning("%d accounts matched %s, using the first", len(records), search_filter)
        return records[0]

    def lookup_user(self, username: str) -> Optional[AccountRecord]:
        """Convenience wrapper building the filter from ``username``."""
        return self.lookup(self.account_filter(username))
