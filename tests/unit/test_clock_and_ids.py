"""Tests for the injectable clock, epoch conversion and record id generation."""

from datetime import datetime, timedelta, timezone

import pytest

from carbon_kernel.domain.clock import DeterministicClock, SystemClock, to_epoch_ms
from carbon_kernel.domain.ids import RecordIdGenerator
from carbon_kernel.domain.ledger import StaticIdentity


class TestDeterministicClock:

    def test_default_time(self):
        clock = DeterministicClock()
        assert clock.now() == datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_now_is_stable_until_advanced(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()
        before = clock.now()
        clock.advance(1.5)
        assert clock.now() - before == timedelta(milliseconds=1500)

    def test_tick(self):
        clock = DeterministicClock()
        start = clock.now()
        assert clock.tick() == start + timedelta(seconds=1)

    def test_set_time_resets_advance(self):
        clock = DeterministicClock()
        clock.advance(60)
        target = datetime(2030, 6, 1, tzinfo=timezone.utc)
        clock.set_time(target)
        assert clock.now_utc() == target


class TestSystemClock:

    def test_returns_aware_utc(self):
        now = SystemClock().now_utc()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)


class TestEpochMillis:

    def test_epoch_is_zero(self):
        assert to_epoch_ms(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0

    def test_default_clock_time(self):
        assert to_epoch_ms(DeterministicClock().now()) == 1_704_110_400_000

    def test_millisecond_precision_is_exact(self):
        moment = datetime(2024, 1, 1, 12, 0, 0, 999_000, tzinfo=timezone.utc)
        assert to_epoch_ms(moment) == 1_704_110_400_999

    def test_non_utc_offset(self):
        plus_two = timezone(timedelta(hours=2))
        assert to_epoch_ms(datetime(1970, 1, 1, 2, 0, tzinfo=plus_two)) == 0


class TestRecordIdGenerator:

    def test_same_transaction_same_ids(self):
        first = RecordIdGenerator("tx-000000000001")
        second = RecordIdGenerator("tx-000000000001")
        assert first.next_id("auction") == second.next_id("auction")
        assert first.next_id("auction") == second.next_id("auction")

    def test_ordinal_distinguishes_ids(self):
        gen = RecordIdGenerator("tx-000000000001")
        assert gen.next_id("sale") != gen.next_id("sale")

    def test_transactions_never_collide(self):
        ids = {RecordIdGenerator(f"tx-{n:012d}").next_id("proposal") for n in range(200)}
        assert len(ids) == 200

    def test_issued_tracks_order(self):
        gen = RecordIdGenerator("tx-1")
        a = gen.next_id("proposal")
        b = gen.next_id("sale")
        assert gen.issued == (a, b)


class TestStaticIdentity:

    def test_returns_identity(self):
        assert StaticIdentity("x509::alice").current_caller_identity() == "x509::alice"

    def test_empty_identity_rejected(self):
        with pytest.raises(ValueError):
            StaticIdentity("")
