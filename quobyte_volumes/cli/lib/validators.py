"""
Input validation functions.
"""

import ipaddress
import re
import socket
from typing import Optional, Tuple


_HOSTNAME_LABEL = re.compile(r"^(?!-)[a-zA-Z0-9-]{1,63}(?<!-)$")

_TRUE_VALUES = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_VALUES = {"0", "f", "F", "FALSE", "false", "False"}


def validate_name(name: str) -> None:
    """
    Validate a volume name.

    Args:
        name: Name to validate

    Raises:
        ValueError: If name is invalid
    """
    if not name:
        raise ValueError("Name cannot be empty")

    if len(name) < 1 or len(name) > 64:
        raise ValueError("Name must be between 1 and 64 characters")

    # Allow alphanumeric, dots, underscores, hyphens
    if not re.match(r'^[a-zA-Z0-9][a-zA-Z0-9._-]*$', name):
        raise ValueError("Name must start with alphanumeric and contain only alphanumeric, dots, underscores, or hyphens")


def validate_hostname(host: str) -> None:
    """
    Validate the syntax of a DNS hostname (RFC 1123).

    Raises:
        ValueError: If hostname is invalid
    """
    if not host or len(host) > 253:
        raise ValueError(f"Invalid hostname length: {host!r}")

    labels = host.rstrip(".").split(".")
    for label in labels:
        if not _HOSTNAME_LABEL.match(label):
            raise ValueError(f"Invalid hostname: {host!r}")


def is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def validate_network_address(host: str) -> None:
    """
    Validate that `host` is an IP literal or a resolvable hostname.

    Raises:
        ValueError: If host is malformed or cannot be resolved
    """
    if is_ip_address(host):
        return

    validate_hostname(host)
    try:
        socket.getaddrinfo(host, None)
    except (socket.gaierror, UnicodeError) as e:
        raise ValueError(f"Unresolvable address {host!r}: {e}")


def split_host_port(address: str) -> Tuple[str, int]:
    """
    Split a `host:port` (or `[v6]:port`) address.

    Raises:
        ValueError: If the address is not in host:port form
    """
    address = address.strip()
    if address.startswith("["):
        end = address.find("]")
        if end < 0 or address[end + 1 : end + 2] != ":":
            raise ValueError(f"Invalid address {address!r}: expected [host]:port")
        host, port_raw = address[1:end], address[end + 2 :]
    else:
        if address.count(":") != 1:
            raise ValueError(f"Invalid address {address!r}: expected host:port")
        host, port_raw = address.split(":")

    if not host:
        raise ValueError(f"Invalid address {address!r}: missing host")
    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"Invalid address {address!r}: port must be a number")
    if port < 1 or port > 65535:
        raise ValueError(f"Invalid address {address!r}: port must be between 1 and 65535")
    return host, port


def validate_registry_address(address: str) -> None:
    """
    Validate a single Quobyte registry address (e.g., "quobyte-1:7861").

    Raises:
        ValueError: If the address is malformed or the host cannot be resolved
    """
    host, _ = split_host_port(address)
    validate_network_address(host)


def validate_registries(registries: str) -> None:
    """
    Validate a comma-separated list of registry addresses.

    Raises:
        ValueError: If the list is empty or any address is invalid
    """
    if not registries.strip():
        raise ValueError("Registry list cannot be empty")
    for address in registries.split(","):
        validate_registry_address(address)


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """
    Parse a boolean option value.

    Accepts 1/t/T/TRUE/true/True and 0/f/F/FALSE/false/False. An unset or
    empty value yields `default`.

    Raises:
        ValueError: If the value is not a recognized boolean spelling
    """
    if value is None or value == "":
        return default
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value: {value!r}")
