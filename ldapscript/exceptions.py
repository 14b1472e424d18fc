"""
Exceptions raised by ldapscript.

Failures reported by the directory itself are not wrapped: they reach the
caller as the python-ldap exception that was raised (``ldap.NO_SUCH_OBJECT``,
``ldap.INVALID_CREDENTIALS``, ...), all of which derive from
:py:data:`ProtocolError`.
"""

from ldapscript import ldap

#: Base class of every error reported by the directory server or by
#: python-ldap itself.
ProtocolError = ldap.LDAPError  # type: ignore[attr-defined]


class LDAPScriptError(Exception):
    """Base class for errors raised by ldapscript itself."""


class ConfigError(LDAPScriptError, ValueError):
    """
    Raised when caller supplied parameters are malformed: an unknown search
    parameter, an assertion with more than one attribute, an unparsable
    modification kind, a malformed modification pair or invalid connection
    settings.

    These are always detected before a connection is opened.
    """


class NotFoundError(LDAPScriptError, LookupError):
    """Raised when the entry an operation needs does not exist."""

    def __init__(self, dn: str) -> None:
        self.dn = dn
        super().__init__(f"Entry {dn} does not exist!")


class AmbiguousResultError(LDAPScriptError):
    """Raised by ``search_unique()`` when more than one entry matched."""

    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(f"Result of search is not unique: {count} entries matched")
