"""
LDAP result type definitions.

Type aliases for the python-ldap search data we consume, the count-prefixed
raw entry shape, and the normalized entries we hand back to callers.
"""

from collections.abc import Mapping
from typing import Any

LDAPData = tuple[str, dict[str, list[bytes]]]
RawEntry = Mapping[str | int, Any]
CleanEntry = dict[str | int, Any]
PagedResponse = dict[str, Any]
