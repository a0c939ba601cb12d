"""Unit tests for the reward engine and the configuration registry."""

import pytest

from tests.conftest import ADMIN, OUTSIDER, make_configuration, raises_code
from trip_verification.domain.enums import ErrorCode
from trip_verification.domain.rewards import RewardSchedule, compute_reward


class TestComputeReward:
    def test_single_passenger_scenario(self):
        # 50*1*10 + 50*1*10 * 0.8 * 2
        assert compute_reward(50, 1, 80, 10, 2) == 1300

    def test_two_passenger_scenario(self):
        # base 1000, bonus 1000 * 0.8 * 2
        assert compute_reward(50, 2, 80, 10, 2) == 2600

    def test_three_passengers_half_congestion(self):
        assert compute_reward(100, 3, 50, 10, 2) == 100 * 3 * 10 + 3000 * 50 * 2 // 100

    def test_no_congestion_is_base_only(self):
        assert compute_reward(7, 3, 0, 10, 2) == 210

    def test_full_congestion(self):
        assert compute_reward(1, 1, 100, 10, 3) == 10 + 30

    def test_fractional_bonus_is_floored(self):
        # base 1, bonus 1 * 33 * 1 / 100 = 0.33
        assert compute_reward(1, 1, 33, 1, 1) == 1

    def test_zero_distance_gives_zero(self):
        assert compute_reward(0, 4, 90, 10, 2) == 0

    def test_deterministic(self):
        assert compute_reward(123, 7, 41, 13, 5) == compute_reward(123, 7, 41, 13, 5)


class TestRewardSchedule:
    def test_matches_function(self):
        schedule = RewardSchedule(base_reward_rate=20, congestion_multiplier=3)
        assert schedule.compute(10, 2, 25) == compute_reward(10, 2, 25, 20, 3)

    def test_configuration_snapshot(self):
        config = make_configuration(base_reward_rate=4, congestion_multiplier=5)
        assert config.reward_schedule == RewardSchedule(4, 5)


class TestConfigurationRegistry:
    def test_admin_sets_base_reward_rate(self):
        config = make_configuration()
        config.set_base_reward_rate(ADMIN, 20)
        assert config.base_reward_rate == 20

    def test_non_admin_rejected_without_change(self):
        config = make_configuration()
        with raises_code(ErrorCode.NOT_AUTHORIZED):
            config.set_base_reward_rate(OUTSIDER, 20)
        assert config.base_reward_rate == 10

    @pytest.mark.parametrize("value", [0, -5])
    def test_non_positive_rate_rejected(self, value):
        config = make_configuration()
        with raises_code(ErrorCode.INVALID_PARAMETER):
            config.set_base_reward_rate(ADMIN, value)
        assert config.base_reward_rate == 10

    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_multiplier_rejected(self, value):
        config = make_configuration()
        with raises_code(ErrorCode.INVALID_PARAMETER):
            config.set_congestion_multiplier(ADMIN, value)
        assert config.congestion_multiplier == 2

    def test_authorization_checked_before_value(self):
        config = make_configuration()
        with raises_code(ErrorCode.NOT_AUTHORIZED):
            config.set_congestion_multiplier(OUTSIDER, 0)

    def test_trusted_oracle_and_token_contract(self):
        config = make_configuration()
        config.set_trusted_oracle(ADMIN, "ST7NEWORACLE")
        config.set_token_contract(ADMIN, "ST7.other-token")
        assert config.trusted_oracle == "ST7NEWORACLE"
        assert config.token_contract == "ST7.other-token"

    def test_max_trips_can_not_drop_below_created(self):
        config = make_configuration(next_trip_id=5)
        with raises_code(ErrorCode.INVALID_PARAMETER):
            config.set_max_trips(ADMIN, 4)
        config.set_max_trips(ADMIN, 5)
        assert config.capacity_exhausted

    def test_allocate_trip_id_is_sequential(self):
        config = make_configuration()
        assert [config.allocate_trip_id() for _ in range(3)] == [0, 1, 2]
        assert config.next_trip_id == 3
