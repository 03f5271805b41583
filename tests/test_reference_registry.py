"""
tests/test_reference_registry.py

One owner-recorded reference per period, strictly increasing periods.
"""

import pytest

from confidentialcast.core.exceptions import InvalidPrice, OnlyOwner, PriceAlreadyUpdated
from confidentialcast.core.models import UINT64_MAX, NotificationType

from conftest import ALICE, OWNER, START_PERIOD


class TestRecord:

    def test_record_stores_value_for_current_period(self, runtime, clock):
        result = runtime.record_reference(OWNER, 63500)

        record = runtime.get_reference(START_PERIOD)
        assert record.exists
        assert record.value == 63500
        assert record.recorded_at == clock.now()

        assert result.notification.name == NotificationType.REFERENCE_RECORDED
        assert result.notification["period"] == START_PERIOD
        assert result.notification["value"] == "63500"
        assert result.notification["timestamp"] == clock.now()

    def test_zero_value_rejected(self, runtime):
        with pytest.raises(InvalidPrice):
            runtime.record_reference(OWNER, 0)
        assert not runtime.get_reference(START_PERIOD).exists

    def test_value_above_uint64_rejected(self, runtime):
        with pytest.raises(InvalidPrice):
            runtime.record_reference(OWNER, UINT64_MAX + 1)

    def test_uint64_max_accepted(self, runtime):
        runtime.record_reference(OWNER, UINT64_MAX)
        assert runtime.get_reference(START_PERIOD).value == UINT64_MAX

    def test_second_record_same_period_rejected(self, runtime):
        runtime.record_reference(OWNER, 63500)
        with pytest.raises(PriceAlreadyUpdated):
            runtime.record_reference(OWNER, 64000)
        assert runtime.get_reference(START_PERIOD).value == 63500

    def test_next_period_accepted(self, runtime, next_period):
        runtime.record_reference(OWNER, 63500)
        next_period()
        runtime.record_reference(OWNER, 64000)

        assert runtime.get_reference(START_PERIOD).value == 63500
        assert runtime.get_reference(START_PERIOD + 1).value == 64000

    def test_skipped_periods_stay_empty(self, runtime, next_period):
        runtime.record_reference(OWNER, 63500)
        next_period(3)
        runtime.record_reference(OWNER, 64000)

        for period in (START_PERIOD + 1, START_PERIOD + 2):
            assert not runtime.get_reference(period).exists
        assert runtime.get_reference(START_PERIOD + 3).exists

    def test_owner_check_runs_before_value_check(self, runtime):
        with pytest.raises(OnlyOwner):
            runtime.record_reference(ALICE, 0)


class TestReadAccessors:

    def test_absent_period_reads_as_zero_record(self, runtime):
        record = runtime.get_reference(42)
        assert record.value == 0
        assert record.recorded_at == 0
        assert not record.exists

    def test_latest_before_any_record(self, runtime):
        assert runtime.get_latest_reference() == (0, 0, 0)

    def test_latest_tracks_most_recent(self, runtime, clock, next_period):
        runtime.record_reference(OWNER, 63500)
        next_period(2)
        runtime.record_reference(OWNER, 61000)

        assert runtime.get_latest_reference() == (START_PERIOD + 2, 61000, clock.now())
