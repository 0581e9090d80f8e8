"""
Post-processing for LDAP search results.

:class:`ResultHandle` wraps one in-flight python-ldap search and turns its
response into clean, nested Python data.
"""

from .client import DirectoryClient, ErrorInfo, LdapClient, SearchResult
from .normalizer import EntryNormalizer, clean_entry, normalize
from .results import ResultHandle, SessionError

__all__ = [
    "DirectoryClient",
    "EntryNormalizer",
    "ErrorInfo",
    "LdapClient",
    "ResultHandle",
    "SearchResult",
    "SessionError",
    "clean_entry",
    "normalize",
]
