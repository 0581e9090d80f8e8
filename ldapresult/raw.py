"""
The raw LDAP entry shape.

python-ldap hands us search data as ``(dn, attrs)`` tuples.  The rest of this
package works on a count-prefixed layout instead: every level carries a
``"count"`` key followed by that many integer-indexed elements, attribute
names appear as string elements, and each attribute's values live under its
name as another count-prefixed mapping whose last slot repeats the entry's dn.

Because that layout is schema-free, this module also provides a tagged form
of it (:py:class:`SubEntry`, :py:class:`Attribute` and
:py:class:`AttributeValues`) so the normalizer can dispatch on node type
instead of testing for keys.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .typing import LDAPData, RawEntry


@dataclass(frozen=True)
class AttributeValues:
    """
    The raw value slots of one attribute, sentinel slot included.
    """

    slots: tuple[Any, ...] = ()

    @property
    def count(self) -> int:
        return len(self.slots)

    @property
    def values(self) -> tuple[Any, ...]:
        """
        The real values: every slot but the trailing sentinel.

        A single slot cannot be told apart from a sentinel-only array, so it
        is always taken to be one genuine value.
        """
        if self.count == 1:
            return self.slots
        return self.slots[: max(self.count - 1, 0)]


@dataclass(frozen=True)
class Attribute:
    """An attribute name element together with its value slots."""

    name: str
    values: AttributeValues


@dataclass(frozen=True)
class SubEntry:
    """
    One level of the raw shape: its elements in index order, plus the dn of
    the entry if this level is a directory entry.

    ``None`` elements are kept so that the tagged form mirrors the raw shape
    index for index; the normalizer drops them.
    """

    elements: tuple["Attribute | SubEntry | None", ...] = ()
    dn: str | None = None


RawNode = Attribute | SubEntry


def _slot(raw: RawEntry, index: int) -> Any:
    """
    Fetch element ``index`` from a count-prefixed mapping.

    Shapes loaded from JSON carry string keys, so ``"0"`` is tried when ``0``
    is missing.
    """
    if index in raw:
        return raw[index]
    return raw.get(str(index))


def parse_values(raw_values: RawEntry) -> AttributeValues:
    """
    Convert a count-prefixed value array into :py:class:`AttributeValues`.

    Args:
        raw_values: the mapping found under an attribute name

    Returns:
        The value slots, sentinel included.

    """
    count = int(raw_values["count"])
    return AttributeValues(tuple(_slot(raw_values, i) for i in range(count)))


def parse_raw_entry(raw: RawEntry) -> SubEntry:
    """
    Convert a count-prefixed mapping into the tagged :py:class:`SubEntry` form.

    Args:
        raw: a count-prefixed mapping, either a whole search response or a
            single entry

    Returns:
        The equivalent tagged tree.

    """
    elements: list[RawNode | None] = []
    for i in range(int(raw["count"])):
        element = _slot(raw, i)
        if element is None:
            elements.append(None)
        elif isinstance(element, Mapping):
            elements.append(parse_raw_entry(element))
        else:
            elements.append(Attribute(element, parse_values(raw[element])))
    return SubEntry(tuple(elements), dn=raw.get("dn"))


def _decode(value: Any, encoding: str | None, errors: str) -> Any:
    """
    Decode a byte value, leaving it as bytes if it isn't text in ``encoding``.

    Binary attributes such as ``objectGUID`` or ``jpegPhoto`` come back
    unchanged instead of raising :py:exc:`UnicodeDecodeError`.
    """
    if encoding is None or not isinstance(value, bytes):
        return value
    try:
        return value.decode(encoding, errors)
    except UnicodeDecodeError:
        return value


def build_raw_entry(
    dn: str,
    attrs: Mapping[str, list[bytes]],
    encoding: str | None = "utf-8",
    errors: str = "strict",
    lowercase: bool = True,
) -> dict[str | int, Any]:
    """
    Lay out one python-ldap entry in the count-prefixed shape.

    Attribute names that collide once lowercased have their values merged in
    the order python-ldap returned them.

    Args:
        dn: the distinguished name of the entry
        attrs: the attribute dictionary python-ldap returned for it

    Keyword Args:
        encoding: codec used to decode byte values; ``None`` keeps bytes
            (values that do not decode stay bytes)
        errors: error handler for decoding
        lowercase: whether to lowercase attribute names

    Returns:
        A count-prefixed mapping for the entry.

    """
    merged: dict[str, list[Any]] = {}
    for name, values in attrs.items():
        key = name.lower() if lowercase else name
        merged.setdefault(key, []).extend(
            _decode(value, encoding, errors) for value in values
        )
    entry: dict[str | int, Any] = {"count": len(merged), "dn": dn}
    for index, (name, values) in enumerate(merged.items()):
        entry[index] = name
        # The dn rides along as the trailing sentinel slot
        slots = [*values, dn]
        raw_values: dict[str | int, Any] = {"count": len(slots)}
        raw_values.update(enumerate(slots))
        entry[name] = raw_values
    return entry


def build_raw_entries(
    data: Iterable[LDAPData | tuple[Any, Any]],
    encoding: str | None = "utf-8",
    errors: str = "strict",
    lowercase: bool = True,
) -> dict[str | int, Any]:
    """
    Lay out python-ldap search data in the count-prefixed shape.

    Search references (entries whose second member is a list of referral
    URLs rather than an attribute dictionary) are not entries and are
    skipped.

    Args:
        data: the ``rdata`` list from ``result3``

    Keyword Args:
        encoding: codec used to decode byte values; ``None`` keeps bytes
            (values that do not decode stay bytes)
        errors: error handler for decoding
        lowercase: whether to lowercase attribute names

    Returns:
        A count-prefixed mapping with one element per entry.

    """
    raw: dict[str | int, Any] = {"count": 0}
    for dn, attrs in data:
        if not isinstance(attrs, Mapping):
            continue
        raw[raw["count"]] = build_raw_entry(
            dn, attrs, encoding=encoding, errors=errors, lowercase=lowercase
        )
        raw["count"] += 1
    return raw
