"""Login attempt throttling (AccountGuard).

Pure decision function over an account's security fields. No I/O: the
caller persists Decision.mutation atomically before answering the client.

Order of checks:
1. Active cooldown → LOCKED (counter untouched)
2. Correct password → ALLOW (counter, last failure and cooldown cleared)
3. Wrong password → counter + 1, then tiers from the most severe down:
   long_threshold → LOCKED (long cooldown)
   short_threshold reached by this failure → LOCKED (short cooldown)
   otherwise → DENY
"""

from datetime import datetime, timedelta

from hardstore.core.domain.auth import (
    AccountMutation,
    AccountSecurityState,
    Decision,
    DecisionKind,
    LockoutPolicy,
    seconds_until,
)

DEFAULT_POLICY = LockoutPolicy()


def _lock(
    attempts: int, now: datetime, seconds: int, threshold: int
) -> Decision:
    cooldown_until = now + timedelta(seconds=seconds)
    return Decision(
        kind=DecisionKind.LOCKED,
        mutation=AccountMutation(
            failed_attempts=attempts,
            last_failed_at=now,
            cooldown_until=cooldown_until,
        ),
        attempts_so_far=attempts,
        cooldown_until=cooldown_until,
        remaining=timedelta(seconds=seconds),
        remaining_seconds=seconds,
        reason=f"{threshold} failed attempts",
    )


def evaluate(
    record: AccountSecurityState,
    password_is_correct: bool,
    now: datetime,
    policy: LockoutPolicy = DEFAULT_POLICY,
) -> Decision:
    """Decide the outcome of one login attempt.

    Args:
        record: Current security state of the account
        password_is_correct: Result of verifying the submitted password
        now: Evaluation time (timezone-aware)
        policy: Lockout thresholds and durations

    Returns:
        Decision with the mutation to persist (None while locked)
    """
    # Step 1: cooldown short-circuits before any counting
    cooldown_until = record.active_cooldown(now)
    if cooldown_until is not None:
        return Decision(
            kind=DecisionKind.LOCKED,
            attempts_so_far=record.failed_attempts,
            cooldown_until=cooldown_until,
            remaining=cooldown_until - now,
            remaining_seconds=seconds_until(cooldown_until, now),
        )

    # Step 2: success resets everything, even an already-zero counter
    if password_is_correct:
        return Decision(
            kind=DecisionKind.ALLOW,
            mutation=AccountMutation(
                failed_attempts=0, last_failed_at=None, cooldown_until=None
            ),
        )

    # Step 3: count the failure, then apply tiers (most severe first).
    # The short tier fires once, on the failure that reaches it; after that
    # cooldown the counter keeps climbing towards the long tier.
    attempts = record.failed_attempts + 1
    if attempts >= policy.long_threshold:
        return _lock(attempts, now, policy.long_seconds, policy.long_threshold)
    if record.failed_attempts < policy.short_threshold <= attempts:
        return _lock(attempts, now, policy.short_seconds, policy.short_threshold)

    return Decision(
        kind=DecisionKind.DENY,
        mutation=AccountMutation(
            failed_attempts=attempts, last_failed_at=now, cooldown_until=None
        ),
        attempts_so_far=attempts,
        attempts_remaining=max(0, policy.max_failed_attempts - attempts),
    )
