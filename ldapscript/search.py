"""
The search parameter model.

A :py:class:`SearchSpec` is an immutable, fully defaulted description of one
LDAP search: where to start (``base``), how deep to go (``scope``), what to
match (``filter`` plus positional ``filter_args``) and which attributes to
return (``attrs``).
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ldap.filter import escape_filter_chars
from ldap_filter import Filter

from ldapscript import ldap

from .attributes import is_multi_valued
from .exceptions import ConfigError

#: The filter used when none is given: match every entry.
DEFAULT_FILTER: str = "(objectClass=*)"

#: Ask the server for no attributes at all (RFC 4511, section 4.5.1.8).
NO_ATTRIBUTES: tuple[str, ...] = ("1.1",)

#: Matches a ``{N}`` filter argument placeholder.
PLACEHOLDER_RE: re.Pattern[str] = re.compile(r"\{(\d+)\}")


class SearchScope(Enum):
    """
    How far below ``base`` a search looks.
    """

    #: Only the base entry itself
    BASE = ldap.SCOPE_BASE  # type: ignore[attr-defined]
    #: Only the immediate children of the base entry
    ONE = ldap.SCOPE_ONELEVEL  # type: ignore[attr-defined]
    #: The base entry and everything below it
    SUB = ldap.SCOPE_SUBTREE  # type: ignore[attr-defined]

    @classmethod
    def parse(cls, value: Any) -> "SearchScope":
        """
        Return the scope named by ``value``.

        Args:
            value: a :py:class:`SearchScope`, or the (case-sensitive) name of one

        Raises:
            ConfigError: ``value`` does not name a scope

        Returns:
            The scope.

        """
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value)]
        except KeyError as exc:
            msg = f"invalid search scope: {value}"
            raise ConfigError(msg) from exc


def escape_filter_arg(value: Any) -> str:
    """
    Escape one filter argument so it can only ever be an assertion value.

    ``bytes`` are escaped byte by byte (``\\xx``); everything else is converted
    to ``str`` and escaped per RFC 4515.
    """
    if isinstance(value, (bytes, bytearray)):
        return "".join(f"\\{byte:02x}" for byte in value)
    if isinstance(value, bool):
        value = "TRUE" if value else "FALSE"
    return escape_filter_chars(str(value))


def bind_filter_args(filterstr: str, args: tuple[Any, ...] | None) -> str:
    """
    Replace each ``{N}`` placeholder in ``filterstr`` with the escaped value of
    ``args[N]``.  With no ``args`` at all the filter is returned untouched.

    Example:
        >>> bind_filter_args("(cn={0})", ("a*b",))
        '(cn=a\\\\2ab)'

    Args:
        filterstr: the filter template
        args: the filter arguments

    Raises:
        ConfigError: ``args`` were given and a placeholder refers to an
            argument that is not among them

    Returns:
        The filter string, ready to send to the server.

    """
    if args is None:
        return filterstr

    def replace(match: re.Match[str]) -> str:
        index = int(match.group(1))
        if index >= len(args):
            msg = f"filter {filterstr} has no argument for placeholder {{{index}}}"
            raise ConfigError(msg)
        return escape_filter_arg(args[index])

    return PLACEHOLDER_RE.sub(replace, filterstr)


def _to_filter_string(value: Any) -> str:
    if isinstance(value, Filter):
        return value.to_string()
    return str(value)


def _to_tuple(value: Any) -> tuple[Any, ...]:
    if is_multi_valued(value):
        return tuple(value)
    return (value,)


@dataclass(frozen=True)
class SearchSpec:
    """
    Everything needed to perform one search.

    Keyword Args:
        base: the DN where the search starts
        scope: how deep to search below ``base``
        filter: the filter; may contain ``{N}`` placeholders for ``filter_args``
        filter_args: values for the filter placeholders
        attrs: names of the attributes to return; ``None`` means all of them

    """

    base: str = ""
    scope: SearchScope = SearchScope.SUB
    filter: str = DEFAULT_FILTER
    filter_args: tuple[Any, ...] | None = None
    attrs: tuple[str, ...] | None = None

    @classmethod
    def default(cls) -> "SearchSpec":
        """
        Return a search for every entry under the root DSE.
        """
        return cls()

    @classmethod
    def from_map(cls, params: Mapping[str, Any]) -> "SearchSpec":
        """
        Build a search from a loosely typed parameter dictionary, e.g.::

            {"base": "dc=example,dc=com", "filter": "(uid={0})",
             "filterArgs": "alice", "scope": "ONE"}

        Keys are compared case-insensitively.  ``filterArgs`` and ``attrs``
        may be a single value or a collection of values.

        Args:
            params: the search parameters

        Raises:
            ConfigError: ``params`` contains a key we don't recognize, or
                ``scope`` does not name a :py:class:`SearchScope`

        Returns:
            The search.

        """
        kwargs: dict[str, Any] = {}
        for key, value in params.items():
            name = str(key).lower()
            if name == "base":
                kwargs["base"] = "" if value is None else str(value)
            elif name == "filter":
                kwargs["filter"] = _to_filter_string(value)
            elif name == "scope":
                kwargs["scope"] = SearchScope.parse(value)
            elif name == "filterargs":
                kwargs["filter_args"] = _to_tuple(value)
            elif name == "attrs":
                kwargs["attrs"] = tuple(str(attr) for attr in _to_tuple(value))
            else:
                msg = f"unknown search parameter: {key}"
                raise ConfigError(msg)
        return cls(**kwargs)

    def bound_filter(self) -> str:
        """
        Return our filter with the filter arguments substituted in.
        """
        return bind_filter_args(self.filter, self.filter_args)

    def attrlist(self) -> list[str] | None:
        """
        Return the ``attrlist`` argument for python-ldap's search methods.
        """
        if self.attrs is None:
            return None
        return list(self.attrs)
