"""Tests for account_guard.py - login throttling decisions."""

from datetime import UTC, datetime, timedelta

import pytest

from hardstore.core.domain.auth import (
    AccountSecurityState,
    DecisionKind,
    LockoutPolicy,
    Role,
)
from hardstore.services.account_guard import evaluate

NOW = datetime(2026, 3, 1, 9, 0, 0, tzinfo=UTC)


def make_record(
    failed_attempts: int = 0,
    cooldown_until: datetime | None = None,
    last_failed_at: datetime | None = None,
) -> AccountSecurityState:
    return AccountSecurityState(
        user_id="u1",
        username="alice",
        role=Role.STAFF,
        password_hash="$argon2id$placeholder",
        failed_attempts=failed_attempts,
        last_failed_at=last_failed_at,
        cooldown_until=cooldown_until,
    )


def apply(record: AccountSecurityState, decision) -> AccountSecurityState:
    """Persist a decision the way a store would."""
    if decision.mutation is None:
        return record
    return record.model_copy(update=decision.mutation.model_dump())


class TestWrongPassword:
    """Failures below the first threshold → DENY."""

    @pytest.mark.parametrize(
        "before,after,remaining",
        [(0, 1, 4), (1, 2, 3)],
    )
    def test_deny_counts_attempts(self, before, after, remaining):
        decision = evaluate(make_record(failed_attempts=before), False, NOW)

        assert decision.kind == DecisionKind.DENY
        assert decision.attempts_so_far == after
        assert decision.attempts_remaining == remaining
        assert decision.mutation.failed_attempts == after
        assert decision.mutation.last_failed_at == NOW
        assert decision.mutation.cooldown_until is None

    def test_third_failure_locks_for_one_minute(self):
        decision = evaluate(make_record(failed_attempts=2), False, NOW)

        assert decision.kind == DecisionKind.LOCKED
        assert decision.reason == "3 failed attempts"
        assert decision.cooldown_until == NOW + timedelta(minutes=1)
        assert decision.remaining_seconds == 60
        assert decision.mutation.failed_attempts == 3
        assert decision.mutation.cooldown_until == NOW + timedelta(minutes=1)

    def test_fifth_failure_locks_for_five_minutes(self):
        decision = evaluate(make_record(failed_attempts=4), False, NOW)

        assert decision.kind == DecisionKind.LOCKED
        assert decision.reason == "5 failed attempts"
        assert decision.cooldown_until == NOW + timedelta(minutes=5)
        assert decision.remaining_seconds == 300
        assert decision.mutation.failed_attempts == 5

    def test_failures_past_five_do_not_escalate(self):
        """>= comparison: the sixth failure still uses the 5-minute tier."""
        decision = evaluate(make_record(failed_attempts=5), False, NOW)

        assert decision.kind == DecisionKind.LOCKED
        assert decision.cooldown_until == NOW + timedelta(minutes=5)
        assert decision.mutation.failed_attempts == 6

    def test_elapsed_cooldown_is_ignored(self):
        """An expired cooldown reads as absent; the failure is counted."""
        record = make_record(failed_attempts=3, cooldown_until=NOW - timedelta(seconds=1))

        decision = evaluate(record, False, NOW)

        assert decision.kind == DecisionKind.DENY
        assert decision.attempts_so_far == 4
        assert decision.attempts_remaining == 1

    def test_fourth_failure_after_short_cooldown_denies(self):
        """The short tier fires once; the next failure counts 3 → 4."""
        record = make_record(
            failed_attempts=3, cooldown_until=NOW, last_failed_at=NOW - timedelta(minutes=1)
        )

        decision = evaluate(record, False, NOW + timedelta(seconds=1))

        assert decision.kind == DecisionKind.DENY
        assert decision.attempts_so_far == 4
        assert decision.attempts_remaining == 1
        assert decision.mutation.failed_attempts == 4
        assert decision.mutation.cooldown_until is None

    def test_cooldown_ending_exactly_now_is_elapsed(self):
        record = make_record(failed_attempts=3, cooldown_until=NOW)

        decision = evaluate(record, True, NOW)

        assert decision.kind == DecisionKind.ALLOW


class TestCorrectPassword:
    """Success resets all throttling fields."""

    @pytest.mark.parametrize("failed_attempts", [0, 1, 2, 3, 4])
    def test_allow_resets(self, failed_attempts):
        record = make_record(
            failed_attempts=failed_attempts,
            last_failed_at=NOW - timedelta(minutes=10),
        )

        decision = evaluate(record, True, NOW)

        assert decision.kind == DecisionKind.ALLOW
        assert decision.mutation.failed_attempts == 0
        assert decision.mutation.last_failed_at is None
        assert decision.mutation.cooldown_until is None


class TestActiveCooldown:
    """While locked, every attempt short-circuits without mutation."""

    @pytest.mark.parametrize("password_is_correct", [True, False])
    def test_locked_regardless_of_password(self, password_is_correct):
        record = make_record(failed_attempts=3, cooldown_until=NOW + timedelta(seconds=45))

        decision = evaluate(record, password_is_correct, NOW)

        assert decision.kind == DecisionKind.LOCKED
        assert decision.remaining_seconds == 45
        assert decision.mutation is None
        assert decision.reason is None

    def test_remaining_seconds_decreases(self):
        """Repeated attempts during cooldown never touch the counter."""
        record = make_record(failed_attempts=3, cooldown_until=NOW + timedelta(seconds=60))
        previous = None

        for step in range(0, 60, 7):
            decision = evaluate(record, False, NOW + timedelta(seconds=step))
            record = apply(record, decision)

            assert decision.kind == DecisionKind.LOCKED
            assert record.failed_attempts == 3
            if previous is not None:
                assert decision.remaining_seconds < previous
            previous = decision.remaining_seconds

    def test_remaining_strictly_decreases_below_one_second(self):
        """remaining_seconds moves in whole seconds; remaining is exact."""
        record = make_record(failed_attempts=3, cooldown_until=NOW + timedelta(seconds=60))

        first = evaluate(record, False, NOW + timedelta(milliseconds=100))
        second = evaluate(record, False, NOW + timedelta(milliseconds=400))

        assert first.remaining_seconds == second.remaining_seconds == 60
        assert second.remaining < first.remaining
        assert second.remaining == timedelta(seconds=59, milliseconds=600)

    def test_new_lock_reports_full_duration(self):
        decision = evaluate(make_record(failed_attempts=2), False, NOW)

        assert decision.remaining == timedelta(minutes=1)

    def test_remaining_seconds_rounds_up(self):
        record = make_record(
            failed_attempts=3, cooldown_until=NOW + timedelta(seconds=59, milliseconds=1)
        )

        decision = evaluate(record, False, NOW)

        assert decision.remaining_seconds == 60


class TestLockoutSequence:
    """Consecutive failures walk through both tiers."""

    def test_progressive_lockout(self):
        record = make_record()
        now = NOW

        # Attempts 1, 2
        for expected_remaining in (4, 3):
            decision = evaluate(record, False, now)
            record = apply(record, decision)
            assert decision.kind == DecisionKind.DENY
            assert decision.attempts_remaining == expected_remaining

        # Attempt 3 → 1-minute lock
        decision = evaluate(record, False, now)
        record = apply(record, decision)
        assert decision.kind == DecisionKind.LOCKED
        assert decision.remaining_seconds == 60

        # Attempt 4 during the lock → still locked, no increment
        now += timedelta(seconds=30)
        decision = evaluate(record, False, now)
        record = apply(record, decision)
        assert decision.kind == DecisionKind.LOCKED
        assert record.failed_attempts == 3

        # After the lock: the counter continues 3 → 4
        now += timedelta(seconds=31)
        decision = evaluate(record, False, now)
        record = apply(record, decision)
        assert decision.kind == DecisionKind.DENY
        assert decision.attempts_so_far == 4
        assert decision.attempts_remaining == 1

        # Fifth cumulative failure → 5-minute lock
        decision = evaluate(record, False, now)
        record = apply(record, decision)
        assert decision.kind == DecisionKind.LOCKED
        assert decision.reason == "5 failed attempts"
        assert record.cooldown_until == now + timedelta(minutes=5)


class TestCustomPolicy:
    def test_thresholds_come_from_policy(self):
        policy = LockoutPolicy(
            max_failed_attempts=10,
            short_threshold=2,
            short_seconds=10,
            long_threshold=4,
            long_seconds=120,
        )

        deny = evaluate(make_record(failed_attempts=0), False, NOW, policy)
        short = evaluate(make_record(failed_attempts=1), False, NOW, policy)
        long = evaluate(make_record(failed_attempts=3), False, NOW, policy)

        assert deny.attempts_remaining == 9
        assert short.remaining_seconds == 10
        assert short.reason == "2 failed attempts"
        assert long.remaining_seconds == 120
