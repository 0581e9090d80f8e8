"""
The directory client primitives that :py:class:`~ldapresult.results.ResultHandle`
delegates to.

:py:class:`DirectoryClient` describes the primitives; :py:class:`LdapClient`
implements them on top of python-ldap, where the session is an
``ldap.ldapobject.LDAPObject`` and the result is a :py:class:`SearchResult`
wrapping the message id returned by ``search_ext``.
"""

import logging
import weakref
from collections import namedtuple
from collections.abc import Mapping
from typing import Any, Protocol

from ldap.controls import SimplePagedResultsControl

from ldapresult import ldap

from .conf import ResultSettings
from .raw import build_raw_entries
from .typing import LDAPData

logger = logging.getLogger(__name__)

#: What a session reports about its most recent failure
ErrorInfo = namedtuple("ErrorInfo", ["result", "desc", "info"])

NO_ERROR = ErrorInfo(0, "Success", "")


class DirectoryClient(Protocol):
    """
    The raw result primitives of a directory client.

    None of these translate failures: each returns whatever its underlying
    call produced, sentinels included.
    """

    def fetch_all_entries(self, session: Any, result: Any) -> Mapping | None:
        """Return every entry in the count-prefixed shape, or ``None`` on failure."""

    def count_entries(self, session: Any, result: Any) -> int:
        """Return the number of entries in ``result``."""

    def paged_control_response(self, session: Any, result: Any) -> tuple[Any, Any]:
        """Return the ``(cookie, estimated)`` pair of the paged results control."""

    def parse_reference(self, session: Any, result: Any) -> list[str] | None:
        """Return the referral URLs in ``result``."""

    def sort_entries(self, session: Any, result: Any, field: str) -> bool:
        """Sort the entries in ``result`` by ``field``."""

    def release_result(self, result: Any) -> None:
        """Free ``result``."""

    def last_error_of(self, session: Any) -> ErrorInfo:
        """Describe the most recent failure on ``session``."""


class SearchResult:
    """
    One python-ldap search, identified by its message id.

    The response is collected with ``result3`` the first time it is needed
    and kept until :py:meth:`LdapClient.release_result` drops it.

    Args:
        msgid: the message id returned by ``search_ext``
        session: the connection the search was issued on, used to abandon
            the search if it is released before its response is read

    """

    def __init__(self, msgid: int, session: Any) -> None:
        self.msgid = msgid
        self.session = session
        #: ``True`` once ``result3`` has been called for this search
        self.collected: bool = False
        #: ``True`` if collecting the response raised ``ldap.LDAPError``
        self.failed: bool = False
        #: ``True`` once the result has been released
        self.released: bool = False
        self.rdata: list[Any] = []
        self.serverctrls: list[Any] = []

    @property
    def entries(self) -> list[LDAPData]:
        """The ``(dn, attrs)`` entries of the response, references excluded."""
        return [item for item in self.rdata if isinstance(item[1], Mapping)]

    @property
    def references(self) -> list[list[str]]:
        """The referral URL lists of the search references in the response."""
        return [item[1] for item in self.rdata if isinstance(item[1], list)]

    def __repr__(self) -> str:
        return (
            f"<SearchResult msgid={self.msgid} collected={self.collected} "
            f"failed={self.failed} released={self.released}>"
        )


class LdapClient:
    """
    :py:class:`DirectoryClient` over python-ldap.

    python-ldap reports failures by raising, so the error raised while
    collecting a result is remembered per session and handed back by
    :py:meth:`last_error_of`.  Errors are held weakly by session, so a
    closed connection takes its error with it.

    Raises:
        ImproperlyConfigured: the ``LDAPRESULT_*`` settings are invalid

    """

    def __init__(self) -> None:
        ResultSettings.validate()
        self.logger = logger
        self._last_errors: weakref.WeakKeyDictionary[Any, ErrorInfo] = (
            weakref.WeakKeyDictionary()
        )

    # -----------------------
    # Helpers
    # -----------------------

    def _record_error(self, session: Any, error: ldap.LDAPError) -> None:  # type: ignore[name-defined]
        details = error.args[0] if error.args else {}
        if not isinstance(details, dict):
            details = {"desc": str(details)}
        info = ErrorInfo(
            details.get("result", -1),
            details.get("desc", type(error).__name__),
            details.get("info", ""),
        )
        self._last_errors[session] = info

    def _collect(self, session: Any, result: SearchResult) -> bool:
        """
        Read the response for ``result`` if we haven't yet.

        Returns:
            ``True`` if the response is available, ``False`` if the result
            was released or collecting it failed.

        """
        if result.released:
            return False
        if not result.collected:
            result.collected = True
            try:
                _, rdata, _, serverctrls = session.result3(
                    result.msgid, all=1, timeout=ResultSettings.get_result_timeout()
                )
            except ldap.LDAPError as e:  # type: ignore[attr-defined]
                self.logger.warning(
                    "ldapresult.fetch.failed msgid=%s error=%s", result.msgid, e
                )
                self._record_error(session, e)
                result.failed = True
                return False
            self._last_errors.pop(session, None)
            result.rdata = list(rdata or [])
            result.serverctrls = list(serverctrls or [])
            self.logger.debug(
                "ldapresult.fetch.success msgid=%s entries=%d references=%d",
                result.msgid,
                len(result.entries),
                len(result.references),
            )
        return not result.failed

    # -----------------------
    # Primitives
    # -----------------------

    def fetch_all_entries(
        self, session: Any, result: SearchResult
    ) -> dict[str | int, Any] | None:
        """
        Lay out every entry of ``result`` in the count-prefixed shape.

        Args:
            session: the python-ldap connection the search was issued on
            result: the search

        Returns:
            The count-prefixed mapping, or ``None`` if the response could not
            be collected.

        """
        if not self._collect(session, result):
            return None
        return build_raw_entries(
            result.entries,
            encoding=ResultSettings.get_value_encoding(),
            errors=ResultSettings.get_decode_errors(),
            lowercase=ResultSettings.get_lowercase_attributes(),
        )

    def count_entries(self, session: Any, result: SearchResult) -> int:
        """
        Count the entries in ``result``.

        Returns:
            The number of entries, or ``-1`` if the response could not be
            collected.

        """
        if not self._collect(session, result):
            return -1
        return len(result.entries)

    def paged_control_response(
        self, session: Any, result: SearchResult
    ) -> tuple[Any, Any]:
        """
        Look up the paged results control the server sent back.

        Returns:
            ``(cookie, size)`` from the control; ``size`` is the server's
            estimate of the total result count.  ``(None, None)`` if there is
            no such control.

        """
        if not self._collect(session, result):
            return None, None
        for control in result.serverctrls:
            if control.controlType == SimplePagedResultsControl.controlType:
                return control.cookie, getattr(control, "size", None)
        return None, None

    def parse_reference(self, session: Any, result: SearchResult) -> list[str] | None:
        """
        Extract the referral URLs from the search references in ``result``.

        Returns:
            The URLs in the order the server sent them, or ``None`` if there
            are no references.

        """
        if not self._collect(session, result):
            return None
        referrals = [url for urls in result.references for url in urls]
        return referrals or None

    def sort_entries(self, session: Any, result: SearchResult, field: str) -> bool:
        """
        Sort the collected entries of ``result`` by the first value of
        ``field``.

        The comparison is case-sensitive on the raw values and the attribute
        name is matched case-insensitively.  Entries lacking the attribute
        sort first; ties keep their original order.

        Returns:
            ``True`` on success, ``False`` if ``field`` is empty or the
            response could not be collected.

        """
        if not field:
            return False
        if not self._collect(session, result):
            return False
        attribute = field.lower()

        def get_sort_key(item: Any) -> tuple[int, Any]:
            """Get sort key value, handling missing attributes."""
            _, attrs = item
            for name, values in attrs.items():
                if name.lower() == attribute and values:
                    return (1, values[0])
            return (0, b"")

        entries = sorted(result.entries, key=get_sort_key)
        references = [
            item for item in result.rdata if not isinstance(item[1], Mapping)
        ]
        result.rdata = entries + references
        return True

    def release_result(self, result: SearchResult) -> None:
        """
        Free ``result``: abandon the search if its response was never read and
        drop any collected data.  Never raises.
        """
        if result.released:
            return
        result.released = True
        if not result.collected:
            try:
                result.session.abandon_ext(result.msgid)
            except ldap.LDAPError as e:  # type: ignore[attr-defined]
                self.logger.warning(
                    "ldapresult.release.abandon-failed msgid=%s error=%s",
                    result.msgid,
                    e,
                )
        result.rdata = []
        result.serverctrls = []
        self.logger.debug("ldapresult.release msgid=%s", result.msgid)

    def last_error_of(self, session: Any) -> ErrorInfo:
        """
        Describe the most recent failure on ``session``.

        Prefers the error recorded while collecting a result; otherwise asks
        the session for its result code and diagnostic message.
        """
        if session in self._last_errors:
            return self._last_errors[session]
        try:
            code = session.get_option(ldap.OPT_RESULT_CODE)  # type: ignore[attr-defined]
            message = session.get_option(ldap.OPT_DIAGNOSTIC_MESSAGE)  # type: ignore[attr-defined]
        except (ValueError, ldap.LDAPError):  # type: ignore[attr-defined]
            return NO_ERROR
        if not code:
            return NO_ERROR
        return ErrorInfo(code, "LDAP error", message or "")
