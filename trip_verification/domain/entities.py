"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Trip``: enforces valid lifecycle transitions
  (PENDING -> VERIFIED | DISPUTED, both terminal).
- ``Trip.is_participant`` encapsulates the driver-or-passenger rule used
  by confirmation and dispute.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .enums import TRIP_TRANSITIONS, TripStatus
from .errors import InvalidStateTransition

# Column widths for identities and token contract principals
IDENTITY_MAX_LENGTH = 128
CONTRACT_MAX_LENGTH = 256


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Trip:
    id: int
    driver: str
    passengers: list[str]
    route: str
    start_time: int
    timestamp: int
    end_time: int = 0
    distance: int = 0
    congestion_index: int = 0
    gps_verified: bool = False
    status: TripStatus = TripStatus.PENDING
    reward: int = 0
    confirmations: int = 0
    confirmed_by: list[str] = field(default_factory=list)
    disputed: bool = False
    dispute_reason: str = ""

    @property
    def passenger_count(self) -> int:
        return len(self.passengers)

    @property
    def quorum(self) -> int:
        """Confirmations needed before the driver may verify."""
        return self.passenger_count // 2

    def is_participant(self, identity: str) -> bool:
        return identity == self.driver or identity in self.passengers

    def transition_to(self, new_status: TripStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = TRIP_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {self.status.value} to {new_status.value}"
            )
        self.status = new_status

    # Mutators below assume the engine already checked its preconditions.

    def record_oracle_data(
        self, *, gps_valid: bool, distance: int, congestion: int, end_time: int
    ) -> None:
        self.end_time = end_time
        self.distance = distance
        self.congestion_index = congestion
        self.gps_verified = gps_valid

    def add_confirmation(self, identity: str) -> None:
        self.confirmations += 1
        if identity not in self.confirmed_by:
            self.confirmed_by = [*self.confirmed_by, identity]

    def mark_verified(self, reward: int, at: int) -> None:
        self.transition_to(TripStatus.VERIFIED)
        self.reward = reward
        self.timestamp = at

    def mark_disputed(self, reason: str) -> None:
        self.transition_to(TripStatus.DISPUTED)
        self.disputed = True
        self.dispute_reason = reason


@dataclass
class OracleSubmission:
    trip_id: int
    oracle: str
    gps_valid: bool
    distance: int
    congestion: int
    submit_time: int


@dataclass(frozen=True)
class MintRecord:
    trip_id: int
    token_contract: str
    amount: int
    driver: str
    passengers: tuple[str, ...]
