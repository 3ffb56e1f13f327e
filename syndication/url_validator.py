"""
URL Validator - keep the puller away from internal network targets.

Subscriptions are user supplied, so before every fetch the URL is checked
against loopback, private, link-local and metadata addresses.
"""

import ipaddress
import socket
from urllib.parse import urlparse

from .exceptions import BlockedURLError

BLOCKED_IP_RANGES = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("100.64.0.0/10"),
    ipaddress.ip_network("255.255.255.255/32"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("::/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]

BLOCKED_HOSTNAMES = {
    "localhost",
    "localhost.localdomain",
    "ip6-localhost",
    "ip6-loopback",
    "metadata",
    "metadata.google.internal",
    "kubernetes.default",
    "kubernetes.default.svc",
}

BLOCKED_SUFFIXES = (".local", ".internal", ".localhost")

ALLOWED_SCHEMES = {"http", "https"}


def is_ip_blocked(ip_str: str) -> bool:
    """Check if an IP address is in a blocked range."""
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped:
        ip = ip.ipv4_mapped
    return any(ip in network for network in BLOCKED_IP_RANGES)


def validate_url(url: str, resolve_dns: bool = True) -> str:
    """
    Validate a subscription URL before it is fetched.

    Args:
        url: The URL to validate
        resolve_dns: Whether to resolve the hostname and check every address

    Returns:
        The URL unchanged

    Raises:
        BlockedURLError: If the URL targets a blocked scheme, host or address
    """
    try:
        parsed = urlparse(url)
        port = parsed.port
    except ValueError as e:
        raise BlockedURLError(f"Invalid URL format: {e}")

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise BlockedURLError(f"URL scheme '{parsed.scheme}' is not allowed. Use http or https.")

    if not parsed.hostname:
        raise BlockedURLError("URL must include a hostname")

    hostname = parsed.hostname.lower().rstrip(".")

    if hostname in BLOCKED_HOSTNAMES:
        raise BlockedURLError(f"Access to '{hostname}' is not allowed")

    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        if hostname.endswith(BLOCKED_SUFFIXES):
            raise BlockedURLError(f"Access to '{hostname}' is not allowed")
    else:
        if is_ip_blocked(str(ip)):
            raise BlockedURLError(f"Access to IP address '{ip}' is not allowed")
        return url

    if resolve_dns:
        try:
            addrinfo = socket.getaddrinfo(hostname, port or 80, proto=socket.IPPROTO_TCP)
        except (socket.gaierror, UnicodeError):
            # Resolution failures surface at fetch time
            return url
        for _, _, _, _, sockaddr in addrinfo:
            if is_ip_blocked(sockaddr[0]):
                raise BlockedURLError(
                    f"Hostname '{hostname}' resolves to blocked IP address '{sockaddr[0]}'"
                )

    return url
