"""LDAP utilities for Active Directory interaction."""

from .connection import ADConnection, entry_to_record, fqdn_to_base_dn, is_ip_address, raw_int

__all__ = [
    "ADConnection",
    "entry_to_record",
    "fqdn_to_base_dn",
    "is_ip_address",
    "raw_int",
]
