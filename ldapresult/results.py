"""
LDAP result handles.

A :py:class:`ResultHandle` owns one search result for as long as the caller
needs it and releases it exactly once.  Use it as a context manager so the
result is released on every exit path::

    msgid = connection.search_ext(basedn, ldap.SCOPE_SUBTREE, "(uid=*)")
    with ResultHandle(connection, SearchResult(msgid, session=connection)) as handle:
        entries = handle.get_entries()
"""

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from .client import DirectoryClient, ErrorInfo, LdapClient
from .normalizer import EntryNormalizer
from .typing import CleanEntry, PagedResponse

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """
    Raised when the directory client fails to fetch a result's entries.

    Args:
        error: what the session reported about the failure

    """

    def __init__(self, error: ErrorInfo) -> None:
        self.error = error
        super().__init__(str(self))

    @property
    def result(self) -> Any:
        return self.error.result

    @property
    def desc(self) -> str:
        return self.error.desc

    @property
    def info(self) -> str:
        return self.error.info

    def __str__(self) -> str:
        msg = f"{self.error.desc} ({self.error.result})"
        if self.error.info:
            msg = f"{msg}: {self.error.info}"
        return msg


def needs_result(func: Callable) -> Callable:
    """
    Decorator to refuse operations on a handle whose result has been released.

    Args:
        func: The method to wrap.

    Returns:
        The wrapped method.

    """

    @wraps(func)
    def wrapper(self, *args, **kwargs) -> Any:
        if self.released:
            msg = f"{func.__name__}() called on a released result handle"
            raise ResultHandle.Released(msg)
        return func(self, *args, **kwargs)

    return wrapper


class ResultHandle:
    """
    Read-only access to one directory search result.

    The session is shared and outlives the handle; the result belongs to the
    handle alone.  Every operation but :py:meth:`get_entries` hands back the
    client's raw answer untouched, so a negative :py:meth:`count_entries` or
    an empty paging response is for the caller to interpret.

    Args:
        session: the directory session the search was issued on
        result: the search result to own

    Keyword Args:
        client: the primitives to delegate to; defaults to
            :py:class:`~ldapresult.client.LdapClient`

    """

    class Released(Exception):
        """Raised when an operation is attempted after :py:meth:`release`."""

    def __init__(
        self,
        session: Any,
        result: Any,
        client: DirectoryClient | None = None,
    ) -> None:
        self.logger = logger
        self.session = session
        self.result = result
        self.client: DirectoryClient = client if client is not None else LdapClient()
        self.released: bool = False

    def __enter__(self) -> "ResultHandle":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self.released else "held"
        return f"<ResultHandle result={self.result!r} {state}>"

    def release(self) -> None:
        """
        Release the result.  Safe to call more than once; never raises.
        """
        if self.released:
            return
        self.released = True
        try:
            self.client.release_result(self.result)
        except Exception:
            self.logger.exception("ldapresult.handle.release-failed")

    @needs_result
    def count_entries(self) -> int:
        """
        Count the entries in the result.

        Returns:
            The client's count, unmodified.

        """
        return self.client.count_entries(self.session, self.result)

    @needs_result
    def paged_result_response(self) -> PagedResponse:
        """
        Retrieve the paging cookie and the server's estimate of the result size.

        Returns:
            A dict with ``cookie`` and ``estimated`` keys, populated from the
            client whether or not it found a paging control.

        """
        cookie, estimated = self.client.paged_control_response(
            self.session, self.result
        )
        return {"cookie": cookie, "estimated": estimated}

    @needs_result
    def parse_reference(self) -> list[str] | None:
        """
        Extract the referrals from the result.

        Returns:
            The referral URLs, or ``None``.

        """
        return self.client.parse_reference(self.session, self.result)

    @needs_result
    def sort(self, by: str) -> bool:
        """
        Sort the result's entries on the client side.

        Args:
            by: the attribute to sort by

        Returns:
            The client's success indicator.

        """
        return self.client.sort_entries(self.session, self.result, by)

    @needs_result
    def get_entries(self) -> CleanEntry:
        """
        Fetch every entry in the result and normalize them.

        Raises:
            SessionError: the client could not fetch the entries

        Returns:
            The normalized entries, keyed by dn.

        """
        raw = self.client.fetch_all_entries(self.session, self.result)
        if raw is None:
            error = self.client.last_error_of(self.session)
            self.logger.warning(
                "ldapresult.handle.get_entries.failed result=%s error=%s",
                self.result,
                error,
            )
            raise SessionError(error)
        return EntryNormalizer.normalize(raw)
