# smartpark/actor.py
"""Identity of whoever is calling the core, as resolved by the upstream auth gateway."""

from dataclasses import dataclass

from smartpark.constants import ActorRole


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: str = ActorRole.USER.value

    @property
    def is_admin(self) -> bool:
        return self.role in (ActorRole.ADMIN.value, ActorRole.SYSTEM.value)

    def can_manage(self, owner_id: str) -> bool:
        return self.is_admin or self.user_id == owner_id


# Used by the maintenance worker when it closes overdue bookings
SYSTEM_ACTOR = Actor(user_id="system", role=ActorRole.SYSTEM.value)
