"""
Server address parsing for memcached client configuration.
"""

import re
from typing import List, Optional, Tuple

from cache_shared.errors import CacheConfigurationError

Endpoint = Tuple[str, int]

_SEPARATORS = re.compile(r"[\s,]+")


def clean(value: Optional[str]) -> Optional[str]:
    """Strip value, returning None when nothing is left."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def has_text(value: Optional[str]) -> bool:
    return clean(value) is not None


def parse_address(address: str) -> Endpoint:
    """Parse a single ``host:port`` (or ``[ipv6]:port``) endpoint."""
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port:
        raise CacheConfigurationError(
            f"Malformed memcached address '{address}', expected host:port",
            details={"address": address}
        )

    if host.startswith("["):
        if not host.endswith("]") or len(host) == 2:
            raise CacheConfigurationError(
                f"Malformed memcached address '{address}'",
                details={"address": address}
            )
        host = host[1:-1]
    elif ":" in host:
        raise CacheConfigurationError(
            f"IPv6 memcached address '{address}' must be written as [host]:port",
            details={"address": address}
        )

    try:
        port_number = int(port)
    except ValueError:
        port_number = -1
    if not 0 < port_number < 65536:
        raise CacheConfigurationError(
            f"Invalid port in memcached address '{address}'",
            details={"address": address, "port": port}
        )

    return host, port_number


def parse_addresses(servers: Optional[str]) -> List[Endpoint]:
    """
    Parse a whitespace and/or comma delimited list of memcached endpoints.

    Order is preserved; it determines the hash ring layout of the client.
    An empty list is a configuration error.
    """
    servers = clean(servers)
    if servers is None:
        raise CacheConfigurationError("No memcached servers configured")

    endpoints = [parse_address(token) for token in _SEPARATORS.split(servers) if token]
    if not endpoints:
        raise CacheConfigurationError(
            "No memcached servers configured",
            details={"servers": servers}
        )
    return endpoints


def format_address(endpoint: Endpoint) -> str:
    host, port = endpoint
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
