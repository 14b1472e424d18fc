"""
The modification list model.

A :py:class:`ModificationSpec` is the ordered list of single-attribute
modifications sent in one LDAP modify request.  The server applies them in
order, so the order callers give us is preserved exactly.
"""

from collections.abc import Iterable, Iterator, Mapping, Sequence
from enum import Enum
from typing import Any

from ldapscript import ldap

from .attributes import AttributeValue, coerce
from .exceptions import ConfigError
from .typing import ModList


class ModificationKind(Enum):
    """
    What a modification does to its attribute.
    """

    #: Add the given values to the attribute
    ADD = ldap.MOD_ADD  # type: ignore[attr-defined]
    #: Remove the given values, or the whole attribute if no values are given
    DELETE = ldap.MOD_DELETE  # type: ignore[attr-defined]
    #: Replace all values of the attribute with the given values
    REPLACE = ldap.MOD_REPLACE  # type: ignore[attr-defined]

    @classmethod
    def parse(cls, token: Any) -> "ModificationKind":
        """
        Return the kind named by ``token``.

        Args:
            token: a :py:class:`ModificationKind`, or the case-sensitive name of
                one (``"ADD"``, ``"DELETE"``, ``"REPLACE"``)

        Raises:
            ConfigError: ``token`` is neither

        Returns:
            The modification kind.

        """
        if isinstance(token, cls):
            return token
        if isinstance(token, str):
            try:
                return cls[token]
            except KeyError as exc:
                msg = f"unknown modification kind: {token}"
                raise ConfigError(msg) from exc
        msg = f"parameter 1 of pair is not a valid ModificationKind: {token!r}"
        raise ConfigError(msg)


ModificationItem = tuple[ModificationKind, AttributeValue]


class ModificationSpec:
    """
    An ordered, flattened list of ``(kind, attribute)`` modification items.

    Build one with :py:meth:`from_uniform_map` or :py:meth:`from_pairs` rather
    than directly.

    Args:
        items: the modification items, in the order they should be applied

    """

    def __init__(self, items: Iterable[ModificationItem]) -> None:
        self.items: tuple[ModificationItem, ...] = tuple(items)

    def __iter__(self) -> Iterator[ModificationItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        items = ", ".join(f"({kind.name}, {attr.name})" for kind, attr in self.items)
        return f"ModificationSpec([{items}])"

    @classmethod
    def from_uniform_map(
        cls, kind: ModificationKind | str, attributes: Mapping[str, Any]
    ) -> "ModificationSpec":
        """
        Apply the same modification kind to every attribute in ``attributes``.

        Args:
            kind: the modification kind, or its name
            attributes: attribute names mapped to their values

        Raises:
            ConfigError: ``kind`` is not a valid modification kind

        Returns:
            One item per attribute, in the mapping's order.

        """
        _kind = ModificationKind.parse(kind)
        return cls((_kind, coerce(name, value)) for name, value in attributes.items())

    @classmethod
    def from_pairs(cls, pairs: Iterable[Any]) -> "ModificationSpec":
        """
        Build a modification list from ``(kind, attributes)`` pairs, e.g.::

            [
                ("ADD", {"mail": ["a@example.com", "b@example.com"]}),
                (ModificationKind.DELETE, {"description": None}),
                ("REPLACE", {"sn": "Smith", "cn": "Alice Smith"}),
            ]

        Args:
            pairs: the pairs, in the order they should be applied

        Raises:
            ConfigError: a pair does not have exactly two elements, its first
                element is not a modification kind, or its second element is
                not a mapping

        Returns:
            The items of all pairs, flattened in order.

        """
        items: list[ModificationItem] = []
        for pair in pairs:
            if (
                not isinstance(pair, Sequence)
                or isinstance(pair, (str, bytes))
                or len(pair) != 2  # noqa: PLR2004
            ):
                msg = f"modification is not a (kind, attributes) pair: {pair!r}"
                raise ConfigError(msg)
            token, attributes = pair
            kind = ModificationKind.parse(token)
            if not isinstance(attributes, Mapping):
                msg = f"parameter 2 of pair is not a mapping of attributes: {attributes!r}"
                raise ConfigError(msg)
            items.extend((kind, coerce(name, value)) for name, value in attributes.items())
        return cls(items)

    def modlist(self) -> ModList:
        """
        Return our items as a modlist for ``LDAPObject.modify_s``.

        A DELETE with no values deletes the whole attribute, which python-ldap
        spells as ``None``.
        """
        _modlist: ModList = []
        for kind, attr in self.items:
            if kind is ModificationKind.DELETE and not len(attr):
                _modlist.append((kind.value, attr.name, None))
            else:
                _modlist.append((kind.value, attr.name, attr.to_bytes()))
        return _modlist
