"""
ldapscript: add, delete, modify, rename, compare, read and search LDAP entries
using plain Python values.
"""

from .attributes import AttributeValue, coerce
from .client import LDAP
from .exceptions import (
    AmbiguousResultError,
    ConfigError,
    LDAPScriptError,
    NotFoundError,
    ProtocolError,
)
from .modify import ModificationKind, ModificationSpec
from .search import SearchScope, SearchSpec
from .session import DirectorySession, perform_with_connection
from .settings import ConnectionSettings

__version__ = "1.0.0"

__all__ = [
    "LDAP",
    "AmbiguousResultError",
    "AttributeValue",
    "ConfigError",
    "ConnectionSettings",
    "DirectorySession",
    "LDAPScriptError",
    "ModificationKind",
    "ModificationSpec",
    "NotFoundError",
    "ProtocolError",
    "SearchScope",
    "SearchSpec",
    "coerce",
    "perform_with_connection",
]
