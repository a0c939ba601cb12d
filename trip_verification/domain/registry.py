"""
Configuration registry.

Holds the mutable parameters the lifecycle engine reads on every call.
Every setter is gated on the admin identity; the admin itself can not be
changed from here.
"""

from __future__ import annotations

from dataclasses import dataclass

from .enums import ErrorCode
from .errors import TripVerificationError
from .rewards import RewardSchedule


@dataclass
class Configuration:
    admin: str
    trusted_oracle: str
    token_contract: str
    base_reward_rate: int = 10
    congestion_multiplier: int = 2
    max_trips: int = 100_000
    next_trip_id: int = 0

    @property
    def reward_schedule(self) -> RewardSchedule:
        return RewardSchedule(self.base_reward_rate, self.congestion_multiplier)

    @property
    def capacity_exhausted(self) -> bool:
        return self.next_trip_id >= self.max_trips

    def allocate_trip_id(self) -> int:
        trip_id = self.next_trip_id
        self.next_trip_id += 1
        return trip_id

    # ── Admin-gated setters ───────────────────────────────────────────

    def require_admin(self, caller: str) -> None:
        if caller != self.admin:
            raise TripVerificationError(
                ErrorCode.NOT_AUTHORIZED, "Only the admin may change configuration"
            )

    def set_trusted_oracle(self, caller: str, oracle: str) -> None:
        self.require_admin(caller)
        self.trusted_oracle = oracle

    def set_token_contract(self, caller: str, contract: str) -> None:
        self.require_admin(caller)
        self.token_contract = contract

    def set_base_reward_rate(self, caller: str, rate: int) -> None:
        self.require_admin(caller)
        _require_positive("base_reward_rate", rate)
        self.base_reward_rate = rate

    def set_congestion_multiplier(self, caller: str, multiplier: int) -> None:
        self.require_admin(caller)
        _require_positive("congestion_multiplier", multiplier)
        self.congestion_multiplier = multiplier

    def set_max_trips(self, caller: str, max_trips: int) -> None:
        self.require_admin(caller)
        _require_positive("max_trips", max_trips)
        if max_trips < self.next_trip_id:
            raise TripVerificationError(
                ErrorCode.INVALID_PARAMETER,
                f"max_trips can not drop below the {self.next_trip_id} trips already created",
            )
        self.max_trips = max_trips


def _require_positive(name: str, value: int) -> None:
    if value <= 0:
        raise TripVerificationError(
            ErrorCode.INVALID_PARAMETER, f"{name} must be strictly positive"
        )
