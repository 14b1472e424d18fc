"""
Per-call LDAP connection handling.

:py:class:`DirectorySession` is the only place in ldapscript that opens an
LDAP connection.  Each session owns exactly one connection for the duration
of one facade call, and releases it exactly once no matter how the call ends.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from types import TracebackType
from typing import TypeVar

from ldapscript import ldap

from .settings import ConnectionSettings

logger = logging.getLogger("ldapscript")

T = TypeVar("T")


def _check_file(path: str, label: str) -> None:
    _path = Path(path)
    if not _path.exists():
        msg = f"{label} file does not exist: {path}"
        raise OSError(msg)
    if not _path.is_file():
        msg = f"{label} file is not a file: {path}"
        raise OSError(msg)


class DirectorySession:
    """
    Owns one short-lived LDAP connection.

    Use it as a context manager::

        with DirectorySession(settings) as connection:
            connection.search_s(...)

    or hand it a function to run against the open connection with
    :py:meth:`perform`.

    Args:
        settings: how to connect and bind

    """

    def __init__(self, settings: ConnectionSettings) -> None:
        self.settings = settings
        self._connection: ldap.ldapobject.LDAPObject | None = None  # type: ignore[name-defined]

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def connection(self) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
        """
        The open connection.

        Raises:
            RuntimeError: the session is not open

        """
        if self._connection is None:
            msg = "DirectorySession is not open"
            raise RuntimeError(msg)
        return self._connection

    def _configure(self, connection: ldap.ldapobject.LDAPObject) -> None:  # type: ignore[name-defined]
        settings = self.settings
        if settings.follow_referrals:
            connection.set_option(ldap.OPT_REFERRALS, 1)  # type: ignore[attr-defined]
        else:
            connection.set_option(ldap.OPT_REFERRALS, 0)  # type: ignore[attr-defined]
        connection.set_option(ldap.OPT_NETWORK_TIMEOUT, float(settings.timeout))  # type: ignore[attr-defined]
        if settings.sizelimit:
            connection.set_option(ldap.OPT_SIZELIMIT, int(settings.sizelimit))  # type: ignore[attr-defined]
        if settings.tls_verify == "always":
            connection.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_DEMAND)  # type: ignore[attr-defined]
        else:
            connection.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_NEVER)  # type: ignore[attr-defined]
        if settings.tls_ca_certfile:
            connection.set_option(ldap.OPT_X_TLS_CACERTFILE, settings.tls_ca_certfile)  # type: ignore[attr-defined]
        if settings.tls_certfile:
            connection.set_option(ldap.OPT_X_TLS_CERTFILE, settings.tls_certfile)  # type: ignore[attr-defined]
        if settings.tls_keyfile:
            connection.set_option(ldap.OPT_X_TLS_KEYFILE, settings.tls_keyfile)  # type: ignore[attr-defined]
        # Must come after the other TLS options so that they take effect
        connection.set_option(ldap.OPT_X_TLS_NEWCTX, 0)  # type: ignore[attr-defined]

    def open(self) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
        """
        Connect, and bind unless the settings say to stay anonymous.

        If anything goes wrong after the connection object has been created,
        it is released before the exception propagates.

        Raises:
            RuntimeError: the session is already open
            OSError: a configured TLS certificate or key file is missing
            ldap.LDAPError: connecting, StartTLS or binding failed

        Returns:
            The open connection.

        """
        if self._connection is not None:
            msg = "DirectorySession is already open"
            raise RuntimeError(msg)
        settings = self.settings
        if settings.tls_ca_certfile:
            _check_file(settings.tls_ca_certfile, "CA Certificate")
        if settings.tls_certfile:
            _check_file(settings.tls_certfile, "TLS Certificate")
        if settings.tls_keyfile:
            _check_file(settings.tls_keyfile, "TLS Key")
        logger.debug(
            "ldapscript.session.open url=%s anonymous=%s",
            settings.url,
            settings.anonymous,
        )
        self._connection = ldap.initialize(settings.url)  # type: ignore[attr-defined]
        try:
            self._configure(self._connection)
            if settings.use_starttls:
                self._connection.start_tls_s()
            if not settings.anonymous:
                self._connection.simple_bind_s(settings.bind_user, settings.bind_password)
        except Exception:
            self.close()
            raise
        return self._connection

    def close(self) -> None:
        """
        Release the connection.

        Safe to call more than once; only the first call after :py:meth:`open`
        does anything.  A failure to unbind is logged and otherwise ignored, so
        that it can never hide the outcome of the operation itself.
        """
        connection, self._connection = self._connection, None
        if connection is None:
            return
        logger.debug("ldapscript.session.close url=%s", self.settings.url)
        try:
            connection.unbind_s()
        except Exception:
            logger.warning(
                "ldapscript.session.close.failed url=%s", self.settings.url, exc_info=True
            )

    def __enter__(self) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def perform(self, operation: Callable[[ldap.ldapobject.LDAPObject], T]) -> T:  # type: ignore[name-defined]
        """
        Open a connection, run ``operation`` against it and close it again.

        Exceptions raised by ``operation`` propagate unchanged.

        Args:
            operation: called once with the open connection

        Returns:
            Whatever ``operation`` returned.

        """
        with self as connection:
            return operation(connection)


def perform_with_connection(
    settings: ConnectionSettings,
    operation: Callable[[ldap.ldapobject.LDAPObject], T],  # type: ignore[name-defined]
) -> T:
    """
    Run ``operation`` against a fresh connection described by ``settings``.

    See :py:meth:`DirectorySession.perform`.
    """
    return DirectorySession(settings).perform(operation)
