"""
Permission bitmask for role-based access control.

Permissions are a 32-bit unsigned mask grouped by category:

- bits 0-7: user management
- bits 8-15: app management
- bits 16-23: system and configuration
- bits 24-31: RBAC and security

Roles store the mask as a signed 32-bit integer column, so every value
entering ``Permission`` is normalized to its unsigned 32-bit form. Bits that
have no name are carried through untouched and reported as ``PERMISSION_<i>``.
"""
from __future__ import annotations

from enum import Enum
from typing import ClassVar, Final, Iterable

PERMISSION_WIDTH: Final[int] = 32
PERMISSION_MASK: Final[int] = (1 << PERMISSION_WIDTH) - 1


class PermissionName(str, Enum):
    USER_READ = "USER_READ"
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    USER_DISABLE = "USER_DISABLE"

    APP_READ = "APP_READ"
    APP_CREATE = "APP_CREATE"
    APP_UPDATE = "APP_UPDATE"
    APP_DELETE = "APP_DELETE"
    APP_SECRET_ROTATE = "APP_SECRET_ROTATE"

    TOKEN_REVOKE = "TOKEN_REVOKE"
    AUDIT_READ = "AUDIT_READ"
    CONFIG_UPDATE = "CONFIG_UPDATE"
    KEY_MANAGE = "KEY_MANAGE"

    ROLE_MANAGE = "ROLE_MANAGE"
    PERMISSION_MANAGE = "PERMISSION_MANAGE"
    SESSION_MANAGE = "SESSION_MANAGE"
    MFA_MANAGE = "MFA_MANAGE"


# Declaration order is the reporting order.
KNOWN_PERMISSIONS: Final[tuple[tuple[int, PermissionName], ...]] = (
    (1 << 0, PermissionName.USER_READ),
    (1 << 1, PermissionName.USER_CREATE),
    (1 << 2, PermissionName.USER_UPDATE),
    (1 << 3, PermissionName.USER_DELETE),
    (1 << 4, PermissionName.USER_DISABLE),
    (1 << 8, PermissionName.APP_READ),
    (1 << 9, PermissionName.APP_CREATE),
    (1 << 10, PermissionName.APP_UPDATE),
    (1 << 11, PermissionName.APP_DELETE),
    (1 << 12, PermissionName.APP_SECRET_ROTATE),
    (1 << 16, PermissionName.TOKEN_REVOKE),
    (1 << 18, PermissionName.AUDIT_READ),
    (1 << 19, PermissionName.CONFIG_UPDATE),
    (1 << 20, PermissionName.KEY_MANAGE),
    (1 << 24, PermissionName.ROLE_MANAGE),
    (1 << 25, PermissionName.PERMISSION_MANAGE),
    (1 << 26, PermissionName.SESSION_MANAGE),
    (1 << 27, PermissionName.MFA_MANAGE),
)

_BIT_BY_NAME: Final[dict[str, int]] = {
    name.value: bit for bit, name in KNOWN_PERMISSIONS
}


class Permission:
    """Immutable 32-bit permission mask.

    Supports ``|`` (union), ``&`` (intersection) and ``contains`` (every bit
    of the other mask is set in this one). No mask is ever rejected.
    """

    __slots__ = ("_bits",)

    USER_READ: ClassVar[Permission]
    USER_CREATE: ClassVar[Permission]
    USER_UPDATE: ClassVar[Permission]
    USER_DELETE: ClassVar[Permission]
    USER_DISABLE: ClassVar[Permission]
    APP_READ: ClassVar[Permission]
    APP_CREATE: ClassVar[Permission]
    APP_UPDATE: ClassVar[Permission]
    APP_DELETE: ClassVar[Permission]
    APP_SECRET_ROTATE: ClassVar[Permission]
    TOKEN_REVOKE: ClassVar[Permission]
    AUDIT_READ: ClassVar[Permission]
    CONFIG_UPDATE: ClassVar[Permission]
    KEY_MANAGE: ClassVar[Permission]
    ROLE_MANAGE: ClassVar[Permission]
    PERMISSION_MANAGE: ClassVar[Permission]
    SESSION_MANAGE: ClassVar[Permission]
    MFA_MANAGE: ClassVar[Permission]

    def __init__(self, bits: int = 0) -> None:
        self._bits = int(bits) & PERMISSION_MASK

    @property
    def bits(self) -> int:
        return self._bits

    @classmethod
    def empty(cls) -> Permission:
        return cls(0)

    @classmethod
    def all_known(cls) -> Permission:
        return cls.from_bits_known(PERMISSION_MASK)

    @classmethod
    def from_bits_known(cls, bits: int) -> Permission:
        """Keep only the named bits of ``bits``."""
        _, recognized = names_from_bits(bits)
        return cls(recognized)

    @classmethod
    def from_name(cls, name: str) -> Permission | None:
        """Exact, case-sensitive lookup of a single named permission."""
        bit = _BIT_BY_NAME.get(name)
        if bit is None:
            return None
        return cls(bit)

    @classmethod
    def union(cls, masks: Iterable[Permission | int]) -> Permission:
        bits = 0
        for mask in masks:
            bits |= int(mask)
        return cls(bits)

    def contains(self, other: Permission | int) -> bool:
        other_bits = int(other) & PERMISSION_MASK
        return self._bits & other_bits == other_bits

    def contains_name(self, name: str) -> bool:
        required = Permission.from_name(name)
        if required is None:
            return False
        return self.contains(required)

    def is_empty(self) -> bool:
        return self._bits == 0

    def names(self) -> list[str]:
        names, _ = names_from_bits(self._bits)
        return names

    def __or__(self, other: Permission | int) -> Permission:
        return Permission(self._bits | int(other))

    __ror__ = __or__

    def __and__(self, other: Permission | int) -> Permission:
        return Permission(self._bits & int(other))

    __rand__ = __and__

    def __int__(self) -> int:
        return self._bits

    __index__ = __int__

    def __bool__(self) -> bool:
        return self._bits != 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Permission):
            return self._bits == other._bits
        if isinstance(other, int):
            return self._bits == other & PERMISSION_MASK
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._bits)

    def __repr__(self) -> str:
        names = self.names()
        label = "|".join(names) if names else "0"
        return f"Permission({label}, bits={self._bits:#010x})"


for _bit, _name in KNOWN_PERMISSIONS:
    setattr(Permission, _name.value, Permission(_bit))
del _bit, _name


def names_from_bits(bits: int) -> tuple[list[str], int]:
    """Return the known names set in ``bits`` and the mask they cover.

    Names follow table order; unknown bits are left out of both results.
    """
    bits = int(bits) & PERMISSION_MASK
    names: list[str] = []
    recognized = 0
    for bit, name in KNOWN_PERMISSIONS:
        if bits & bit:
            names.append(name.value)
            recognized |= bit
    return names, recognized


def describe_bits(bits: int) -> tuple[list[str], list[str]]:
    """Return ``(known_names, all_names)`` for reporting.

    ``all_names`` is ``known_names`` followed by ``PERMISSION_<i>`` for every
    unknown set bit, lowest bit first.
    """
    bits = int(bits) & PERMISSION_MASK
    known_names, recognized = names_from_bits(bits)
    all_names = list(known_names)
    unknown = bits & ~recognized
    for index in range(PERMISSION_WIDTH):
        if unknown & (1 << index):
            all_names.append(f"PERMISSION_{index}")
    return known_names, all_names


def _validate_table() -> None:
    seen_bits = 0
    seen_names: set[str] = set()
    for bit, name in KNOWN_PERMISSIONS:
        if bit <= 0 or bit & (bit - 1) or bit > PERMISSION_MASK:
            raise ValueError(f"Permission {name.value} must map to a single 32-bit flag")
        if bit & seen_bits:
            raise ValueError(f"Permission bit {bit:#x} is assigned twice")
        if name.value in seen_names:
            raise ValueError(f"Permission name {name.value} is declared twice")
        seen_bits |= bit
        seen_names.add(name.value)
    if seen_names != {member.value for member in PermissionName}:
        raise ValueError("Every PermissionName must appear in KNOWN_PERMISSIONS")


_validate_table()
