"""
Connection settings for the :py:class:`~ldapscript.client.LDAP` facade.

A :py:class:`ConnectionSettings` is fixed when the facade is created and is
consumed only by :py:class:`~ldapscript.session.DirectorySession` when it
opens a connection.  It can be built directly, from a server configuration
dictionary in the same layout Django projects use for
``settings.LDAP_SERVERS``, or from Django settings themselves.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .exceptions import ConfigError

#: The URL used when none is given: anonymous LDAP on localhost.
DEFAULT_URL: str = "ldap://localhost:389/"

#: Accepted values for :py:attr:`ConnectionSettings.tls_verify`.
TLS_VERIFY_CHOICES: tuple[str, ...] = ("never", "always")

#: Keys accepted by :py:meth:`ConnectionSettings.from_dict`.
CONFIG_KEYS: tuple[str, ...] = (
    "url",
    "user",
    "password",
    "use_starttls",
    "tls_verify",
    "tls_ca_certfile",
    "tls_certfile",
    "tls_keyfile",
    "timeout",
    "sizelimit",
    "follow_referrals",
)


@dataclass(frozen=True)
class ConnectionSettings:
    """
    Everything needed to open and bind one LDAP connection.

    Keyword Args:
        url: the LDAP URL of the server
        anonymous: if ``True``, don't bind at all
        bind_user: the DN to bind as when ``anonymous`` is ``False``
        bind_password: the password for ``bind_user``
        use_starttls: negotiate TLS with StartTLS after connecting
        tls_verify: ``"never"`` or ``"always"``: whether to require a valid
            server certificate
        tls_ca_certfile: path to a CA certificate bundle
        tls_certfile: path to a client certificate
        tls_keyfile: path to the key for ``tls_certfile``
        timeout: network timeout in seconds
        sizelimit: client side size limit for searches
        follow_referrals: chase referrals returned by the server

    Raises:
        ConfigError: a non-anonymous bind is missing the user or password, or
            ``tls_verify`` is not one of :py:data:`TLS_VERIFY_CHOICES`

    """

    url: str = DEFAULT_URL
    anonymous: bool = True
    bind_user: str | None = None
    bind_password: str | None = None
    use_starttls: bool = False
    tls_verify: str = "never"
    tls_ca_certfile: str | None = None
    tls_certfile: str | None = None
    tls_keyfile: str | None = None
    timeout: float = 15.0
    sizelimit: int | None = None
    follow_referrals: bool = False

    def __post_init__(self) -> None:
        if not self.anonymous and (self.bind_user is None or self.bind_password is None):
            msg = "A non-anonymous bind needs both bind_user and bind_password"
            raise ConfigError(msg)
        if self.tls_verify not in TLS_VERIFY_CHOICES:
            msg = f"Invalid tls_verify value: {self.tls_verify}"
            raise ConfigError(msg)

    def __repr__(self) -> str:
        return (
            f"ConnectionSettings(url={self.url!r}, anonymous={self.anonymous!r}, "
            f"bind_user={self.bind_user!r})"
        )

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "ConnectionSettings":
        """
        Build settings from a server configuration dictionary, e.g.::

            {
                "url": "ldap://ldap.example.com",
                "user": "cn=admin,dc=example,dc=com",
                "password": "secret",
                "use_starttls": True,
                "tls_verify": "always",
                "timeout": 15.0,
            }

        If ``user`` is present the connection binds as that user, otherwise it
        is anonymous.

        Args:
            config: the configuration dictionary

        Raises:
            ConfigError: ``config`` has a key we don't know about, or describes
                invalid settings

        Returns:
            The new settings.

        """
        for key in config:
            if key not in CONFIG_KEYS:
                msg = f"unknown connection setting: {key}"
                raise ConfigError(msg)
        kwargs: dict[str, Any] = {
            key: config[key]
            for key in CONFIG_KEYS
            if key in config and key not in ("user", "password")
        }
        if config.get("user") is not None:
            kwargs["anonymous"] = False
            kwargs["bind_user"] = config["user"]
            kwargs["bind_password"] = config.get("password")
        if "timeout" in kwargs:
            kwargs["timeout"] = float(kwargs["timeout"])
        if kwargs.get("sizelimit") is not None:
            kwargs["sizelimit"] = int(kwargs["sizelimit"])
        return cls(**kwargs)

    @classmethod
    def from_django(cls, server: str = "default", key: str = "read") -> "ConnectionSettings":
        """
        Build settings from ``settings.LDAP_SERVERS[server][key]`` in the
        current Django project.

        Keyword Args:
            server: the name of the server in ``settings.LDAP_SERVERS``
            key: which connection of that server to use, usually ``"read"`` or
                ``"write"``

        Raises:
            ConfigError: the server or key is not configured

        Returns:
            The new settings.

        """
        from django.conf import settings  # noqa: PLC0415

        try:
            config = settings.LDAP_SERVERS[server][key]
        except (AttributeError, KeyError) as exc:
            msg = f'settings.LDAP_SERVERS["{server}"]["{key}"] is not configured'
            raise ConfigError(msg) from exc
        return cls.from_dict(config)
