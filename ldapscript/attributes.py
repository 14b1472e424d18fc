"""
Conversion between loosely typed Python values and LDAP attributes.

Outgoing values are coerced into :py:class:`AttributeValue` objects, which
know how to marshal themselves into the ``list[bytes]`` python-ldap expects.
Incoming search results are converted into case-insensitive entry
dictionaries by :py:func:`to_entry`.
"""

from collections.abc import Collection, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from case_insensitive_dict import CaseInsensitiveDict

from .exceptions import ConfigError

#: The key under which :py:func:`to_entry` stores the DN of the entry.
DN_KEY: str = "dn"


def is_multi_valued(value: Any) -> bool:
    """
    Return ``True`` if ``value`` should become several attribute values.

    Strings and byte strings are collections too, but they are always a single
    value.  Mappings are treated as a single (odd) value as well.
    """
    return isinstance(value, Collection) and not isinstance(
        value, (str, bytes, bytearray, Mapping)
    )


def to_bytes(value: Any) -> bytes:
    """
    Marshal one attribute value into the bytes python-ldap sends on the wire.

    Args:
        value: the value to marshal

    Returns:
        ``value`` as bytes.  ``str`` is encoded as UTF-8, booleans use the
        LDAP Boolean syntax (``TRUE``/``FALSE``) and anything else is
        converted with ``str()`` first.

    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, bytearray):
        return bytes(value)
    if isinstance(value, bool):
        return b"TRUE" if value else b"FALSE"
    return str(value).encode("utf-8")


@dataclass(frozen=True)
class AttributeValue:
    """
    A named, possibly multi-valued, attribute.

    An attribute with no values is allowed; whether it makes sense is up to the
    operation and the server.

    Args:
        name: the attribute name
        values: the attribute values, in order

    Raises:
        ConfigError: ``name`` is empty

    """

    name: str
    values: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        if not self.name:
            msg = "Attribute name may not be empty"
            raise ConfigError(msg)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values)

    def to_bytes(self) -> list[bytes]:
        """
        Return our values marshalled for python-ldap.
        """
        return [to_bytes(value) for value in self.values]


def coerce(name: str, value: Any) -> AttributeValue:
    """
    Convert ``value`` into an :py:class:`AttributeValue` named ``name``.

    If ``value`` is a collection (list, tuple, set, ...) each element becomes
    one value, in iteration order.  ``None`` means "no values".  Anything else
    is a single value.  Values are not validated here: the server has the
    final word.

    Args:
        name: the attribute name
        value: the value or values

    Returns:
        The coerced attribute.

    """
    if value is None:
        return AttributeValue(name)
    if is_multi_valued(value):
        return AttributeValue(name, tuple(value))
    return AttributeValue(name, (value,))


def coerce_all(attributes: Mapping[str, Any]) -> list[AttributeValue]:
    """
    Coerce every entry of ``attributes``, keeping the mapping's order.
    """
    return [coerce(name, value) for name, value in attributes.items()]


def _decode(value: bytes) -> str | bytes:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        # jpegPhoto, userCertificate and friends
        return value


def to_entry(dn: str, data: Mapping[str, list[bytes]]) -> CaseInsensitiveDict:
    """
    Convert one python-ldap search result into an entry dictionary.

    The entry maps attribute names (case-insensitively, as LDAP does) to their
    values.  Single valued attributes map to the value itself, multi-valued
    attributes to a list of values.  Values that are valid UTF-8 are decoded to
    ``str``, others are left as ``bytes``.  The DN is stored under ``"dn"``.

    Args:
        dn: the DN of the entry
        data: the attribute dictionary returned by python-ldap

    Returns:
        The entry.

    """
    entry: CaseInsensitiveDict = CaseInsensitiveDict()
    entry[DN_KEY] = dn
    for name, raw in data.items():
        values = [_decode(v) for v in raw]
        entry[name] = values[0] if len(values) == 1 else values
    return entry
