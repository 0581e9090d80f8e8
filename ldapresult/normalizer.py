"""
Normalization of raw LDAP entries.

This module turns the count-prefixed raw entry shape (see
:py:mod:`ldapresult.raw`) into plain nested dictionaries:

* single-valued attributes become scalars,
* multi-valued attributes become lists, minus the trailing sentinel slot,
* sub-entries are keyed by their dn, or appended under the next integer key
  when they have no dn or their dn is already taken,
* ``None`` elements vanish.
"""

import logging
from collections.abc import Mapping

from .raw import Attribute, SubEntry, parse_raw_entry
from .typing import CleanEntry, RawEntry

logger = logging.getLogger(__name__)


class EntryNormalizer:
    """
    Recursive, side-effect free conversion of raw entries into clean ones.
    """

    @classmethod
    def normalize(cls, raw_entry: RawEntry | SubEntry) -> CleanEntry:
        """
        Normalize a raw entry.

        Args:
            raw_entry: a count-prefixed mapping, or its tagged
                :py:class:`~ldapresult.raw.SubEntry` form

        Returns:
            The clean entry.

        """
        if isinstance(raw_entry, Mapping):
            raw_entry = parse_raw_entry(raw_entry)
        return cls._normalize(raw_entry)

    @classmethod
    def _normalize(cls, entry: SubEntry) -> CleanEntry:
        clean: CleanEntry = {}
        position = 0
        for element in entry.elements:
            if element is None:
                continue
            if isinstance(element, SubEntry):
                subtree = cls._normalize(element)
                # First dn wins; later duplicates are appended, never overwrite
                if element.dn and element.dn not in clean:
                    clean[element.dn] = subtree
                else:
                    clean[position] = subtree
                    position += 1
            elif isinstance(element, Attribute):
                cls._store_attribute(clean, element)
        return clean

    @staticmethod
    def _store_attribute(clean: CleanEntry, attribute: Attribute) -> None:
        values = attribute.values.values
        if not values:
            logger.debug(
                "ldapresult.normalize.no-values attribute=%s", attribute.name
            )
            return
        if len(values) == 1:
            clean[attribute.name] = values[0]
        else:
            clean[attribute.name] = list(values)


def normalize(raw_entry: RawEntry | SubEntry) -> CleanEntry:
    """Shortcut for :py:meth:`EntryNormalizer.normalize`."""
    return EntryNormalizer.normalize(raw_entry)


clean_entry = normalize
