from __future__ import annotations

import socket


def get_local_ip() -> str:
    """Get the primary LAN IP by opening a UDP socket (no traffic sent)."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("10.255.255.255", 1))
            return s.getsockname()[0]
    except OSError:
        return "127.0.0.1"


def split_addresses(raw: str) -> list[str]:
    """Split a comma separated list like '10.0.0.0/8, 192.168.0.0/16'."""
    return [part.strip() for part in raw.split(",") if part.strip()]
