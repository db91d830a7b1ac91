"""Permission lattice: total order over module access levels."""
from typing import Mapping

from app.models.module import PermissionLevel

RANKS: Mapping[PermissionLevel, int] = {
    PermissionLevel.NONE: 0,
    PermissionLevel.READ: 1,
    PermissionLevel.WRITE: 2,
    PermissionLevel.ADMIN: 3,
}


def rank(level: PermissionLevel | str) -> int:
    """Numeric rank of a level. Unknown levels raise ``ValueError``."""
    return RANKS[PermissionLevel(level)]


def satisfies(have: PermissionLevel | str, need: PermissionLevel | str) -> bool:
    """True when ``have`` is at least ``need``."""
    return rank(have) >= rank(need)
