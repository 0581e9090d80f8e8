"""
Configuration for LDAP result handling.

All settings live in Django settings under the ``LDAPRESULT_`` prefix and fall
back to sensible defaults when absent.
"""

import codecs
from typing import Any

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


class ResultSettings:
    """
    Read and validate the ``LDAPRESULT_*`` Django settings.

    Every accessor reads settings at call time, so ``override_settings`` in
    tests takes effect without clearing any cache.
    """

    @classmethod
    def _get_config(cls, name: str, default: Any) -> Any:
        """
        Return ``settings.LDAPRESULT_<name>``, or ``default`` if the project
        doesn't set it.
        """
        return getattr(settings, "LDAPRESULT_" + name, default)

    @classmethod
    def get_value_encoding(cls) -> str | None:
        """Encoding used to decode attribute values; ``None`` keeps bytes."""
        return cls._get_config("VALUE_ENCODING", "utf-8")

    @classmethod
    def get_decode_errors(cls) -> str:
        """Error handler passed to :py:meth:`bytes.decode`."""
        return cls._get_config("DECODE_ERRORS", "strict")

    @classmethod
    def get_lowercase_attributes(cls) -> bool:
        """Whether attribute names are lowercased in the raw entry shape."""
        return bool(cls._get_config("LOWERCASE_ATTRIBUTES", True))

    @classmethod
    def get_result_timeout(cls) -> float:
        """Seconds to wait in ``result3``; ``-1`` waits forever."""
        return cls._get_config("RESULT_TIMEOUT", -1)

    @classmethod
    def validate(cls) -> None:
        """
        Validate the ``LDAPRESULT_*`` settings for consistency.

        Raises:
            ImproperlyConfigured: If any setting is invalid

        """
        encoding = cls.get_value_encoding()
        if encoding is not None:
            try:
                codecs.lookup(encoding)
            except LookupError as e:
                msg = f"LDAPRESULT_VALUE_ENCODING ({encoding}) is not a known codec"
                raise ImproperlyConfigured(msg) from e

        errors = cls.get_decode_errors()
        try:
            codecs.lookup_error(errors)
        except LookupError as e:
            msg = f"LDAPRESULT_DECODE_ERRORS ({errors}) is not a known error handler"
            raise ImproperlyConfigured(msg) from e

        timeout = cls.get_result_timeout()
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            msg = f"LDAPRESULT_RESULT_TIMEOUT ({timeout!r}) must be a number"
            raise ImproperlyConfigured(msg)
        if timeout != -1 and timeout <= 0:
            msg = f"LDAPRESULT_RESULT_TIMEOUT ({timeout}) must be -1 or positive"
            raise ImproperlyConfigured(msg)
