"""Role hierarchy and allow-list checks used for authorization.

Two styles of check coexist:

* Route gating uses allow-lists: the caller must hold at least one of the
  named roles (``has_any_role`` / ``check_roles``).
* User administration compares integer levels: the caller's highest level
  against the level of the target role or the target user's highest level.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from livo.core.errors import Forbidden

ROLE_LEVELS: Mapping[str, int] = MappingProxyType(
    {
        "superadmin": 9,
        "coordinator": 4,
        "admin": 3,
        "admin-retur": 3,
        "finance": 3,
        "warehouse": 3,
        "picker": 2,
        "outbound": 2,
        "qc-ribbon": 2,
        "qc-online": 2,
        "mb-ribbon": 2,
        "mb-online": 2,
        "packing": 2,
        "guest": 1,
    }
)

ROLE_DESCRIPTIONS: Mapping[str, str] = MappingProxyType(
    {
        "superadmin": "Super administrator with full authority over the system",
        "coordinator": "Coordinator with high-level management access",
        "admin": "Administrator with mid-level management access",
        "admin-retur": "Returns administrator with mid-level management access",
        "finance": "Finance role with financial management access",
        "warehouse": "Warehouse staff with stock management access",
        "picker": "Picker with access to order item picking",
        "outbound": "Outbound role with shipment input access",
        "qc-ribbon": "Quality control for Ribbon products",
        "qc-online": "Quality control for Online products",
        "mb-ribbon": "Product checker for Ribbon products",
        "mb-online": "Product checker for Online products",
        "packing": "Packing station staff",
        "guest": "Guest with limited access",
    }
)

# Allow-lists for coarse route gating.
USER_MANAGEMENT_ROLES = ("superadmin", "coordinator")
PRODUCT_MANAGEMENT_ROLES = ("superadmin", "admin", "coordinator", "finance")
ORDER_MANAGEMENT_ROLES = ("superadmin", "admin", "coordinator", "picker")
SUPERADMIN_ROLES = ("superadmin",)
ADMIN_ROLES = ("superadmin", "coordinator", "admin")
FINANCE_ROLES = ("superadmin", "coordinator", "finance")
PICKER_ROLES = ("superadmin", "coordinator", "picker")
OUTBOUND_ROLES = ("superadmin", "coordinator", "outbound")
QC_RIBBON_ROLES = ("superadmin", "coordinator", "qc-ribbon")
QC_ONLINE_ROLES = ("superadmin", "coordinator", "qc-online")
MB_RIBBON_ROLES = ("superadmin", "coordinator", "mb-ribbon")
MB_ONLINE_ROLES = ("superadmin", "coordinator", "mb-online")
PACKING_ROLES = ("superadmin", "coordinator", "packing")


class RoleHierarchy:
    """Read-only mapping from role name to authority level (higher = more authority)."""

    def __init__(self, levels: Mapping[str, int] = ROLE_LEVELS) -> None:
        self._levels: Mapping[str, int] = MappingProxyType(dict(levels))

    def __contains__(self, role_name: object) -> bool:
        return role_name in self._levels

    @property
    def role_names(self) -> list[str]:
        return list(self._levels)

    def level_of(self, role_name: str) -> int | None:
        """Return the level of a role, or None when the role is unknown."""
        return self._levels.get(role_name)

    def max_level(self, role_names: Iterable[str]) -> int:
        """Highest level among role_names; unknown names contribute 0."""
        return max((self._levels.get(name, 0) for name in role_names), default=0)

    def can_assign(self, actor_max_level: int, target_role: str) -> bool:
        """
        True when an actor at actor_max_level may assign or remove target_role.

        A role at the actor's own level is assignable; unknown roles never are.
        """
        target_level = self.level_of(target_role)
        if target_level is None:
            return False
        return actor_max_level >= target_level

    def can_update_user(self, actor_max_level: int, target_max_level: int) -> bool:
        """Password/profile updates are allowed on users at or below the actor's level."""
        return actor_max_level >= target_max_level

    def can_delete_user(self, actor_max_level: int, target_max_level: int) -> bool:
        """Deletion requires strictly more authority than the target."""
        return actor_max_level > target_max_level


default_hierarchy = RoleHierarchy()


def has_any_role(caller_roles: Iterable[str], required: Iterable[str]) -> bool:
    """Allow-list check: True if the caller holds at least one required role."""
    return not set(caller_roles).isdisjoint(required)


def check_roles(caller_roles: Iterable[str], required: Iterable[str]) -> None:
    """Raise Forbidden unless the caller holds at least one required role."""
    if not has_any_role(caller_roles, required):
        raise Forbidden()
