"""Rule notations and IPv4 range arithmetic.

A rule is written in one of three notations, tried in this order:

  - bare address   '192.168.0.10'              -> the enclosing /31
  - CIDR           '192.168.0.0/24'
  - address/mask   '192.168.0.0/255.255.255.0'

Classification happens first and returns a tagged ``Notation``; the numeric
conversion only ever sees strings the grammar has already accepted.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from netacl.errors import EvaluationError, InvalidNotationError, MalformedMaskError
from netacl.Policy.RuleActionEnum import RuleActionEnum as Action

MAX_ADDRESS = 0xFFFFFFFF
BARE_ADDRESS_PREFIX = 31

_OCTET = r"(?:25[0-5]|2[0-4][0-9]|1[0-9]{2}|[1-9]?[0-9])"
_QUAD = rf"{_OCTET}(?:\.{_OCTET}){{3}}"
_PREFIX = r"(?:[0-9]|[1-2][0-9]|3[0-2])"

_ADDRESS_RE = re.compile(rf"^{_QUAD}$")
_CIDR_RE = re.compile(rf"^({_QUAD})/({_PREFIX})$")
_ADDRESS_MASK_RE = re.compile(rf"^({_QUAD})/({_QUAD})$")


class NotationKind(Enum):
    BARE_ADDRESS = "address"
    CIDR         = "cidr"
    ADDRESS_MASK = "address/mask"
    INVALID      = "invalid"


@dataclass(frozen=True)
class Notation:
    raw: Any
    kind: NotationKind
    address: str = ""
    suffix: str = ""


def classify_notation(raw: Any) -> Notation:
    """Match ``raw`` against the three rule grammars, in precedence order."""
    if not isinstance(raw, str):
        return Notation(raw, NotationKind.INVALID)

    text = raw.strip()
    if _ADDRESS_RE.match(text):
        return Notation(raw, NotationKind.BARE_ADDRESS, address=text)

    m = _CIDR_RE.match(text)
    if m:
        return Notation(raw, NotationKind.CIDR, address=m.group(1), suffix=m.group(2))

    m = _ADDRESS_MASK_RE.match(text)
    if m:
        return Notation(raw, NotationKind.ADDRESS_MASK, address=m.group(1), suffix=m.group(2))

    return Notation(raw, NotationKind.INVALID)


# ---------------------------------------------------------------------------
# Address conversion
# ---------------------------------------------------------------------------

def _quad_to_int(quad: str) -> int:
    value = 0
    for octet in quad.split("."):
        value = (value << 8) | int(octet)
    return value


def int_to_address(value: int) -> str:
    if not 0 <= value <= MAX_ADDRESS:
        raise ValueError(f"{value} is outside the IPv4 address space")
    return ".".join(str((value >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def address_to_int(value: str | int) -> int:
    """Convert a candidate address (dotted quad or 32-bit int) to an int.

    Raises EvaluationError for anything that is not a valid IPv4 address.
    """
    if isinstance(value, bool):
        raise EvaluationError(value)
    if isinstance(value, int):
        if 0 <= value <= MAX_ADDRESS:
            return value
        raise EvaluationError(value)
    if isinstance(value, str):
        text = value.strip()
        if _ADDRESS_RE.match(text):
            return _quad_to_int(text)
    raise EvaluationError(value)


def prefix_to_mask(prefix_length: int) -> int:
    return (MAX_ADDRESS << (32 - prefix_length)) & MAX_ADDRESS


def mask_to_prefix(mask: int) -> int:
    """Prefix length of a contiguous subnet mask; ValueError otherwise."""
    host_bits = ~mask & MAX_ADDRESS
    # contiguous masks leave host_bits of the form 0b0..01..1
    if host_bits & (host_bits + 1):
        raise ValueError(f"{int_to_address(mask)} is not a contiguous mask")
    return 32 - host_bits.bit_length()


# ---------------------------------------------------------------------------
# Ranges and rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NetworkRange:
    """An IPv4 block: a network base address plus a prefix length."""

    base_address: int
    prefix_length: int
    inclusive_host_count: bool = True

    def __post_init__(self) -> None:
        if not 0 <= self.prefix_length <= 32:
            raise ValueError(f"Prefix length {self.prefix_length} is not in [0, 32]")
        if not 0 <= self.base_address <= MAX_ADDRESS:
            raise ValueError(f"Base address {self.base_address} is outside the IPv4 address space")
        if self.base_address & ~self.netmask & MAX_ADDRESS:
            raise ValueError(
                f"{int_to_address(self.base_address)} has host bits set for /{self.prefix_length}"
            )

    @classmethod
    def from_address(
        cls, address: int, prefix_length: int, inclusive_host_count: bool = True
    ) -> NetworkRange:
        """Build the block of ``prefix_length`` that contains ``address``."""
        if not 0 <= prefix_length <= 32:
            raise ValueError(f"Prefix length {prefix_length} is not in [0, 32]")
        return cls(address & prefix_to_mask(prefix_length), prefix_length, inclusive_host_count)

    @property
    def netmask(self) -> int:
        return prefix_to_mask(self.prefix_length)

    @property
    def broadcast_address(self) -> int:
        return self.base_address | (~self.netmask & MAX_ADDRESS)

    @property
    def _excludes_edges(self) -> bool:
        # /31 and /32 have no network or broadcast address to reserve
        return not self.inclusive_host_count and self.prefix_length < 31

    @property
    def low_address(self) -> int:
        return self.base_address + 1 if self._excludes_edges else self.base_address

    @property
    def high_address(self) -> int:
        return self.broadcast_address - 1 if self._excludes_edges else self.broadcast_address

    @property
    def address_count(self) -> int:
        return self.high_address - self.low_address + 1

    def contains(self, address: int) -> bool:
        return self.low_address <= address <= self.high_address

    def __str__(self) -> str:
        return f"{int_to_address(self.base_address)}/{self.prefix_length}"


def matches(network: NetworkRange, address: int) -> bool:
    return network.contains(address)


@dataclass(frozen=True)
class Rule:
    action: Action
    range: NetworkRange
    notation: str = ""

    @property
    def address_count(self) -> int:
        return self.range.address_count

    def matches(self, address: int) -> bool:
        return self.range.contains(address)

    def __str__(self) -> str:
        return f"{self.action.value} {self.range}"


def parse_range(raw: Any) -> NetworkRange:
    """Turn a rule notation into its NetworkRange.

    Raises InvalidNotationError when no grammar matches, and
    MalformedMaskError for an address/mask pair with a non-contiguous mask.
    """
    notation = classify_notation(raw)

    if notation.kind is NotationKind.BARE_ADDRESS:
        return NetworkRange.from_address(_quad_to_int(notation.address), BARE_ADDRESS_PREFIX)

    if notation.kind is NotationKind.CIDR:
        return NetworkRange.from_address(_quad_to_int(notation.address), int(notation.suffix))

    if notation.kind is NotationKind.ADDRESS_MASK:
        try:
            prefix_length = mask_to_prefix(_quad_to_int(notation.suffix))
        except ValueError:
            raise MalformedMaskError(raw, notation.suffix) from None
        return NetworkRange.from_address(_quad_to_int(notation.address), prefix_length)

    raise InvalidNotationError(raw)


def parse_rule(raw: Any, action: Action) -> Rule:
    network = parse_range(raw)
    return Rule(action=action, range=network, notation=raw.strip())


def is_valid_notation(raw: Any) -> bool:
    try:
        parse_range(raw)
    except (InvalidNotationError, MalformedMaskError):
        return False
    return True
