"""
Validated Nostr relay URL.

Parses, normalizes and validates WebSocket relay URLs (``ws://`` or
``wss://``). Relay addresses reach this service from two places: the
configured default set and the relay hints embedded in user-supplied
``nprofile`` identifiers. Because the gateway opens outbound connections to
every address it is given, only public clearnet hosts are accepted: local,
private and reserved IP addresses as well as overlay hostnames are rejected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from ipaddress import IPv4Network, IPv6Network, ip_address, ip_network
from typing import ClassVar

from rfc3986 import uri_reference
from rfc3986.exceptions import UnpermittedComponentError, ValidationError
from rfc3986.validators import Validator

from .constants import NetworkType


@dataclass(frozen=True, slots=True)
class Relay:
    """Immutable representation of a clearnet Nostr relay.

    The scheme is always normalized to ``wss`` (TLS required on the public
    internet) and the default port is omitted.

    Attributes:
        url: Fully normalized URL including scheme.
        network: Always ``NetworkType.CLEARNET`` on a constructed instance.
        host: Hostname or IP address (brackets stripped for IPv6).
        port: Explicit port number, or ``None`` when using the default.
        path: URL path component, or ``None``.

    Raises:
        ValueError: If the URL is malformed, uses an unsupported scheme,
            resolves to a local/private address, names an overlay network
            host, or contains null bytes.

    Examples:
        ```python
        relay = Relay("wss://relay.damus.io/")
        relay.url       # 'wss://relay.damus.io'
        Relay("ws://relay.example.com:443").url   # 'wss://relay.example.com'
        Relay("ws://abc.onion")                    # ValueError
        ```
    """

    raw_url: str = field(repr=False)

    url: str = field(init=False)
    network: NetworkType = field(init=False)
    host: str = field(init=False)
    port: int | None = field(init=False)
    path: str | None = field(init=False)

    _PORT_WSS: ClassVar[int] = 443

    _NETWORK_TLDS: ClassVar[dict[str, NetworkType]] = {
        ".onion": NetworkType.TOR,
        ".i2p": NetworkType.I2P,
        ".loki": NetworkType.LOKI,
    }

    # IANA private/reserved IP ranges.
    _LOCAL_NETWORKS: ClassVar[list[IPv4Network | IPv6Network]] = [
        ip_network("0.0.0.0/8"),
        ip_network("10.0.0.0/8"),
        ip_network("100.64.0.0/10"),
        ip_network("127.0.0.0/8"),
        ip_network("169.254.0.0/16"),
        ip_network("172.16.0.0/12"),
        ip_network("192.0.0.0/24"),
        ip_network("192.0.2.0/24"),
        ip_network("192.168.0.0/16"),
        ip_network("198.18.0.0/15"),
        ip_network("198.51.100.0/24"),
        ip_network("203.0.113.0/24"),
        ip_network("224.0.0.0/4"),
        ip_network("240.0.0.0/4"),
        ip_network("255.255.255.255/32"),
        ip_network("::1/128"),
        ip_network("::/128"),
        ip_network("::ffff:0:0/96"),
        ip_network("64:ff9b::/96"),
        ip_network("2001:db8::/32"),
        ip_network("fc00::/7"),
        ip_network("fe80::/10"),
        ip_network("ff00::/8"),
    ]

    def __post_init__(self) -> None:
        if not isinstance(self.raw_url, str):
            raise TypeError(f"raw_url must be a str, got {type(self.raw_url).__name__}")
        if "\x00" in self.raw_url:
            raise ValueError("Relay URL contains null bytes")

        uri = uri_reference(self.raw_url.strip()).normalize()
        validator = (
            Validator()
            .require_presence_of("scheme", "host")
            .allow_schemes("ws", "wss")
            .check_validity_of("scheme", "host", "port", "path")
        )
        try:
            validator.validate(uri)
        except UnpermittedComponentError:
            raise ValueError("Invalid scheme: must be ws or wss") from None
        except ValidationError as e:
            raise ValueError(f"Invalid URL: {e}") from None

        if uri.query or uri.fragment:
            raise ValueError("Relay URL must not contain a query string or fragment")

        host = uri.host.strip("[]")
        network = self._detect_network(host)
        if network == NetworkType.LOCAL:
            raise ValueError("Local addresses not allowed")
        if network == NetworkType.UNKNOWN:
            raise ValueError(f"Invalid host: '{host}'")
        if network != NetworkType.CLEARNET:
            raise ValueError(f"Unsupported {network} relay: {host}")

        port = int(uri.port) if uri.port else None
        path = uri.path or ""
        while "//" in path:
            path = path.replace("//", "/")
        path = path.rstrip("/") or None

        formatted_host = f"[{host}]" if ":" in host else host
        netloc = f"{formatted_host}:{port}" if port and port != self._PORT_WSS else formatted_host

        object.__setattr__(self, "url", f"wss://{netloc}{path or ''}")
        object.__setattr__(self, "network", network)
        object.__setattr__(self, "host", host)
        object.__setattr__(self, "port", port)
        object.__setattr__(self, "path", path)

    @staticmethod
    def _detect_network(host: str) -> NetworkType:
        """Classify a hostname into a network type."""
        if not host:
            return NetworkType.UNKNOWN

        host_bare = host.lower().strip("[]")

        for tld, network in Relay._NETWORK_TLDS.items():
            if host_bare.endswith(tld):
                return network

        if host_bare in ("localhost", "localhost.localdomain"):
            return NetworkType.LOCAL

        try:
            ip = ip_address(host_bare)
        except ValueError:
            pass
        else:
            is_local = any(ip in net for net in Relay._LOCAL_NETWORKS)
            return NetworkType.LOCAL if is_local else NetworkType.CLEARNET

        if "." not in host_bare:
            return NetworkType.UNKNOWN

        labels = host_bare.split(".")
        valid = all(
            label and not label.startswith("-") and not label.endswith("-") for label in labels
        )
        return NetworkType.CLEARNET if valid else NetworkType.UNKNOWN


def is_public_host(host: str) -> bool:
    """Whether *host* (hostname or IP literal) is a public clearnet address.

    Uses the classification [Relay][nostrcard.models.relay.Relay] applies to
    relay URLs: ``localhost``, overlay hostnames and loopback, private,
    link-local or reserved IP addresses are not public.
    """
    return Relay._detect_network(host) == NetworkType.CLEARNET
