"""
The scripting facade.

:py:class:`LDAP` turns plain Python values into LDAP requests::

    from ldapscript import LDAP

    directory = LDAP.new_instance(
        "ldap://ldap.example.com", "cn=admin,dc=example,dc=com", "secret"
    )
    directory.add(
        "cn=test,dc=example,dc=com",
        {"objectClass": ["top", "person"], "cn": "test", "sn": "t"},
    )
    directory.modify("cn=test,dc=example,dc=com", "REPLACE", {"sn": "updated"})
    for entry in directory.search("(objectClass=person)", "dc=example,dc=com"):
        print(entry["dn"], entry["sn"])

Every operation opens its own connection, does its work and closes the
connection again; nothing is shared between calls.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ldap.dn import dn2str, str2dn

from ldapscript import ldap

from .attributes import coerce_all, to_entry
from .exceptions import AmbiguousResultError, ConfigError, NotFoundError
from .modify import ModificationKind, ModificationSpec
from .search import DEFAULT_FILTER, NO_ATTRIBUTES, SearchScope, SearchSpec
from .session import perform_with_connection
from .settings import DEFAULT_URL, ConnectionSettings
from .typing import AddModList, AttributeMap, EntryCallback, LDAPData

logger = logging.getLogger("ldapscript")


def _entries(data: list[LDAPData]) -> list[Any]:
    # Active Directory mixes search references into the results
    return [to_entry(dn, attrs) for dn, attrs in data if isinstance(attrs, dict)]


class LDAP:
    """
    LDAP operations on plain Python values.

    Attribute values may be ``str``, ``bytes``, numbers or booleans, or a
    list/tuple/set of those for multi-valued attributes.  Entries come back as
    case-insensitive dictionaries holding the DN under ``"dn"``; see
    :py:func:`ldapscript.attributes.to_entry`.

    Errors reported by the server propagate as the python-ldap exceptions that
    reported them.  Problems with the arguments we were given raise
    :py:class:`~ldapscript.exceptions.ConfigError` before any connection is
    opened.

    Keyword Args:
        settings: how to connect; defaults to anonymous access to localhost

    """

    #: Search only the base entry
    BASE = SearchScope.BASE
    #: Search the immediate children of the base entry
    ONE = SearchScope.ONE
    #: Search the whole subtree under the base entry
    SUB = SearchScope.SUB

    def __init__(self, settings: ConnectionSettings | None = None) -> None:
        self.settings: ConnectionSettings = settings or ConnectionSettings()

    def __repr__(self) -> str:
        return f"LDAP({self.settings!r})"

    @classmethod
    def new_instance(
        cls,
        url: str = DEFAULT_URL,
        user: str | None = None,
        password: str | None = None,
    ) -> "LDAP":
        """
        Create a new facade.

        With no arguments we connect anonymously to ``ldap://localhost:389/``.
        With just ``url`` we connect anonymously to that server.  With ``user``
        and ``password`` we bind as ``user``.

        Keyword Args:
            url: the LDAP URL of the server
            user: the DN to bind as
            password: the password for ``user``

        Raises:
            ConfigError: only one of ``user`` and ``password`` was given

        Returns:
            The new facade.

        """
        if user is None and password is None:
            return cls(ConnectionSettings(url=url))
        return cls(
            ConnectionSettings(
                url=url, anonymous=False, bind_user=user, bind_password=password
            )
        )

    @classmethod
    def from_django(cls, server: str = "default", key: str = "read") -> "LDAP":
        """
        Create a new facade from ``settings.LDAP_SERVERS[server][key]``.

        See :py:meth:`ldapscript.settings.ConnectionSettings.from_django`.
        """
        return cls(ConnectionSettings.from_django(server=server, key=key))

    # Helpers

    def _search_spec(
        self, search: Any, base: str = "", scope: SearchScope | str = SearchScope.SUB
    ) -> SearchSpec:
        """
        Normalize the different ways a search can be described.

        ``search`` may be a :py:class:`SearchSpec`, a parameter dictionary for
        :py:meth:`SearchSpec.from_map`, a filter string (searched for from
        ``base`` with ``scope``), or ``None`` for :py:meth:`SearchSpec.default`.
        """
        if isinstance(search, SearchSpec):
            return search
        if isinstance(search, Mapping):
            return SearchSpec.from_map(search)
        if search is None:
            return SearchSpec.default()
        return SearchSpec.from_map({"filter": search, "base": base, "scope": scope})

    # Operations

    def add(self, dn: str, attributes: AttributeMap) -> None:
        """
        Add a new entry.

        Args:
            dn: the DN of the new entry
            attributes: attribute names mapped to values; a list of values makes
                a multi-valued attribute

        Raises:
            ldap.ALREADY_EXISTS: there is already an entry at ``dn``
            ldap.NO_SUCH_OBJECT: the parent of ``dn`` does not exist

        """
        addlist: AddModList = [
            (attr.name, attr.to_bytes()) for attr in coerce_all(attributes)
        ]

        def operation(connection) -> None:
            connection.add_s(dn, addlist)

        logger.debug("ldapscript.add dn=%s", dn)
        perform_with_connection(self.settings, operation)

    def delete(self, dn: str) -> None:
        """
        Delete an entry.

        Args:
            dn: the DN of the entry

        Raises:
            NotFoundError: there is no entry at ``dn``; no delete is attempted

        """
        if not self.exists(dn):
            logger.debug("ldapscript.delete.missing dn=%s", dn)
            raise NotFoundError(dn)

        def operation(connection) -> None:
            connection.delete_s(dn)

        logger.debug("ldapscript.delete dn=%s", dn)
        perform_with_connection(self.settings, operation)

    def read(self, dn: str) -> Any:
        """
        Return the entry at ``dn`` with all its user attributes.

        Args:
            dn: the DN of the entry

        Raises:
            NotFoundError: there is no entry at ``dn``

        Returns:
            The entry.

        """

        def operation(connection) -> list[LDAPData]:
            return connection.search_s(dn, ldap.SCOPE_BASE, DEFAULT_FILTER)  # type: ignore[attr-defined]

        try:
            entries = _entries(perform_with_connection(self.settings, operation))
        except ldap.NO_SUCH_OBJECT as exc:  # type: ignore[attr-defined]
            raise NotFoundError(dn) from exc
        if not entries:
            raise NotFoundError(dn)
        return entries[0]

    def exists(self, dn: str) -> bool:
        """
        Return whether there is an entry at ``dn``.

        This does a base scoped search that asks for no attributes, which is
        cheaper than reading the entry.

        Args:
            dn: the DN of the entry

        Raises:
            ldap.LDAPError: the search failed for any reason other than the
                entry not existing

        Returns:
            ``True`` if the entry exists, ``False`` otherwise.

        """

        def operation(connection) -> bool:
            try:
                connection.search_s(
                    dn,
                    ldap.SCOPE_BASE,  # type: ignore[attr-defined]
                    DEFAULT_FILTER,
                    attrlist=list(NO_ATTRIBUTES),
                )
            except ldap.NO_SUCH_OBJECT:  # type: ignore[attr-defined]
                return False
            return True

        return perform_with_connection(self.settings, operation)

    def compare(self, dn: str, assertion: AttributeMap) -> bool:
        """
        Return whether the entry at ``dn`` has the asserted attribute value,
        e.g. ``compare(dn, {"uid": "alice"})``.

        The value is passed as a filter argument, so it is always escaped.

        Args:
            dn: the DN of the entry
            assertion: exactly one attribute name mapped to one value

        Raises:
            ConfigError: ``assertion`` does not have exactly one entry

        Returns:
            ``True`` if the entry matches the assertion.

        """
        if len(assertion) != 1:
            msg = "Assertion may only include one attribute"
            raise ConfigError(msg)
        ((name, value),) = assertion.items()
        spec = SearchSpec(
            base=dn,
            scope=SearchScope.BASE,
            filter=f"({name}={{0}})",
            filter_args=(value,),
            attrs=NO_ATTRIBUTES,
        )

        def operation(connection) -> bool:
            data = connection.search_s(
                spec.base, spec.scope.value, spec.bound_filter(), attrlist=spec.attrlist()
            )
            return bool(data)

        return perform_with_connection(self.settings, operation)

    def modify_dn(
        self,
        dn: str,
        new_rdn: str,
        delete_old_rdn: bool = True,
        new_superior: str | None = None,
    ) -> str:
        """
        Rename and/or move an entry.

        The entry at ``dn`` becomes ``new_rdn`` under ``new_superior``.  Name
        syntax is checked by the server, not by us.

        Args:
            dn: the current DN of the entry
            new_rdn: the new RDN, e.g. ``"cn=new name"``
            delete_old_rdn: if ``True``, remove the attribute values of the old
                RDN from the entry
            new_superior: the DN of the new parent entry; ``None`` keeps the
                entry under its current parent

        Returns:
            The new DN of the entry.

        """
        if new_superior is None:
            try:
                parent = dn2str(str2dn(dn)[1:])
            except ldap.DECODING_ERROR:  # type: ignore[attr-defined]
                # Leave syntax errors to the server
                parent = dn.split(",", 1)[1] if "," in dn else ""
        else:
            parent = new_superior
        target = f"{new_rdn},{parent}" if parent else new_rdn

        def operation(connection) -> None:
            connection.rename_s(dn, new_rdn, new_superior, int(delete_old_rdn))

        logger.debug("ldapscript.modify_dn dn=%s target=%s", dn, target)
        perform_with_connection(self.settings, operation)
        return target

    def modify(
        self,
        dn: str,
        kind_or_pairs: Any,
        attributes: AttributeMap | None = None,
    ) -> None:
        """
        Modify the attributes of an entry in one request.

        Either apply one kind of modification to several attributes::

            modify(dn, "REPLACE", {"sn": "Smith", "cn": "Alice Smith"})
            modify(dn, ModificationKind.ADD, {"mail": "alice@example.com"})

        or give an ordered list of ``(kind, attributes)`` pairs::

            modify(dn, [
                ("DELETE", {"mail": "old@example.com"}),
                ("ADD", {"mail": "new@example.com"}),
            ])

        The server applies the modifications in the order given.

        Args:
            dn: the DN of the entry
            kind_or_pairs: a :py:class:`ModificationKind` or its name, or a list
                of ``(kind, attributes)`` pairs
            attributes: the attributes to modify when ``kind_or_pairs`` is a kind

        Raises:
            ConfigError: the modification kind or a pair is malformed

        """
        if attributes is None:
            if isinstance(kind_or_pairs, (ModificationKind, str)):
                msg = "modify() needs attributes when given a modification kind"
                raise ConfigError(msg)
            spec = ModificationSpec.from_pairs(kind_or_pairs)
        else:
            spec = ModificationSpec.from_uniform_map(kind_or_pairs, attributes)
        _modlist = spec.modlist()

        def operation(connection) -> None:
            connection.modify_s(dn, _modlist)

        logger.debug("ldapscript.modify dn=%s items=%d", dn, len(_modlist))
        perform_with_connection(self.settings, operation)

    def search(
        self,
        search: Any = None,
        base: str = "",
        scope: SearchScope | str = SearchScope.SUB,
    ) -> list[Any]:
        """
        Return every entry matching a search, in the order the server sent them.

        ``search`` may be a :py:class:`SearchSpec`, a parameter dictionary
        (see :py:meth:`SearchSpec.from_map`), a filter string, or ``None`` to
        get every entry.  ``base`` and ``scope`` only apply to a filter string.

        Example:
            >>> directory.search({"base": "dc=example", "filter": "(cn={0})",
            ...                   "filterArgs": "test", "scope": "SUB"})

        Raises:
            ConfigError: the search parameters are malformed

        Returns:
            A list of entries.

        """
        spec = self._search_spec(search, base=base, scope=scope)
        filterstr = spec.bound_filter()

        def operation(connection) -> list[LDAPData]:
            return connection.search_s(
                spec.base, spec.scope.value, filterstr, attrlist=spec.attrlist()
            )

        logger.debug(
            "ldapscript.search base=%s scope=%s filter=%s",
            spec.base,
            spec.scope.name,
            filterstr,
        )
        return _entries(perform_with_connection(self.settings, operation))

    def search_unique(
        self,
        search: Any = None,
        base: str = "",
        scope: SearchScope | str = SearchScope.SUB,
    ) -> Any | None:
        """
        Return the single entry matching a search.

        Takes the same arguments as :py:meth:`search`.

        Raises:
            AmbiguousResultError: more than one entry matched

        Returns:
            The entry, or ``None`` if nothing matched.

        """
        results = self.search(search, base=base, scope=scope)
        if not results:
            return None
        if len(results) > 1:
            raise AmbiguousResultError(len(results))
        return results[0]

    def each_entry(
        self,
        search: Any,
        callback: EntryCallback,
        base: str = "",
        scope: SearchScope | str = SearchScope.SUB,
    ) -> None:
        """
        Call ``callback`` with each entry matching a search, as the server
        returns them.

        Takes the same search arguments as :py:meth:`search`.  The connection
        stays open until the last entry has been handled or ``callback``
        raises, so a slow callback keeps the connection busy.

        Args:
            search: the search
            callback: called once per entry

        Keyword Args:
            base: the search base, when ``search`` is a filter string
            scope: the search scope, when ``search`` is a filter string

        """
        spec = self._search_spec(search, base=base, scope=scope)
        filterstr = spec.bound_filter()

        def operation(connection) -> None:
            msgid = connection.search_ext(
                spec.base, spec.scope.value, filterstr, attrlist=spec.attrlist()
            )
            while True:
                rtype, rdata, _, _ = connection.result3(msgid, all=0)
                for dn, attrs in rdata:
                    if isinstance(attrs, dict):
                        callback(to_entry(dn, attrs))
                if rtype == ldap.RES_SEARCH_RESULT:  # type: ignore[attr-defined]
                    break

        logger.debug(
            "ldapscript.each_entry base=%s scope=%s filter=%s",
            spec.base,
            spec.scope.name,
            filterstr,
        )
        perform_with_connection(self.settings, operation)
