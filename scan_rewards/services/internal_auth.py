from __future__ import annotations

import ipaddress
import secrets
from functools import lru_cache

from fastapi import Request

INTERNAL_TOKEN_HEADER = "X-Internal-Token"

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


def is_valid_internal_token(*, expected_token: str, received_token: str | None) -> bool:
    if not expected_token or not received_token:
        return False
    return secrets.compare_digest(expected_token, received_token)


def is_internal_request_authenticated(request: Request, *, expected_token: str) -> bool:
    return is_valid_internal_token(
        expected_token=expected_token,
        received_token=request.headers.get(INTERNAL_TOKEN_HEADER),
    )


def _network_for_entry(entry: str) -> IPNetwork:
    if "/" in entry:
        return ipaddress.ip_network(entry, strict=False)
    host = ipaddress.ip_address(entry)
    suffix = 32 if host.version == 4 else 128
    return ipaddress.ip_network(f"{entry}/{suffix}", strict=False)


@lru_cache(maxsize=32)
def parse_allowlist(allowlist: str) -> tuple[IPNetwork, ...]:
    """Parse a comma-separated list of hosts and CIDR ranges.

    Malformed entries are skipped, so a typo narrows access instead of
    widening it.
    """
    networks: list[IPNetwork] = []
    for raw_entry in allowlist.split(","):
        entry = raw_entry.strip()
        if not entry:
            continue
        try:
            networks.append(_network_for_entry(entry))
        except ValueError:
            continue
    return tuple(networks)


def _parse_ip(value: str | None) -> str | None:
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        return str(ipaddress.ip_address(candidate))
    except ValueError:
        return None


def is_client_ip_allowed(*, client_ip: str | None, allowlist: str) -> bool:
    parsed = _parse_ip(client_ip)
    if parsed is None:
        return False

    networks = parse_allowlist(allowlist)
    if not networks:
        return False

    address = ipaddress.ip_address(parsed)
    return any(address in network for network in networks)


def extract_client_ip(request: Request, *, trusted_proxies: str = "") -> str | None:
    client_host = _parse_ip(request.client.host if request.client is not None else None)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if not forwarded_for:
        return client_host

    # Only a trusted proxy may speak for the original caller.
    if not is_client_ip_allowed(client_ip=client_host, allowlist=trusted_proxies):
        return client_host
    return _parse_ip(forwarded_for.split(",", maxsplit=1)[0])
