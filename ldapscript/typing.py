"""
ldapscript type definitions.

Type aliases for the python-ldap data structures that the facade builds and
consumes, using Python 3.10+ type hinting conventions.
"""

from collections.abc import Callable, Mapping
from typing import Any

DeleteModListEntry = tuple[int, str, None]
ModifyModListEntry = tuple[int, str, list[bytes]]
ModList = list[DeleteModListEntry | ModifyModListEntry]
AddModList = list[tuple[str, list[bytes]]]
LDAPData = tuple[str, dict[str, list[bytes]]]
AttributeMap = Mapping[str, Any]
EntryCallback = Callable[[Any], Any]
