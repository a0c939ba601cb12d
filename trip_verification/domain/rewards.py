"""
Reward Engine
=============

Formula
-------
Base   = Distance x Passengers x Base_Reward_Rate
Bonus  = Base x (Congestion_Index / 100) x Congestion_Multiplier
Reward = Base + Bonus

Arithmetic
----------
All inputs are integers and the result is in whole token units.  The bonus
is evaluated as ``Base x Congestion_Index x Congestion_Multiplier // 100``:
the products are exact and the single floor division is the only rounding
step, so ``Reward == floor(Base + Bonus)`` for every input.

Complexity: O(1) per reward calculation.
"""

from __future__ import annotations

from dataclasses import dataclass

CONGESTION_SCALE = 100


def compute_reward(
    distance: int,
    passenger_count: int,
    congestion_index: int,
    base_reward_rate: int,
    congestion_multiplier: int,
) -> int:
    base = distance * passenger_count * base_reward_rate
    bonus = base * congestion_index * congestion_multiplier // CONGESTION_SCALE
    return base + bonus


@dataclass(frozen=True)
class RewardSchedule:
    """Consistent rate / multiplier pair read from one configuration snapshot."""

    base_reward_rate: int
    congestion_multiplier: int

    def compute(
        self, distance: int, passenger_count: int, congestion_index: int
    ) -> int:
        return compute_reward(
            distance,
            passenger_count,
            congestion_index,
            self.base_reward_rate,
            self.congestion_multiplier,
        )
