"""Secret access state machine tests."""

from datetime import datetime, timedelta, timezone

import pytest

from app.services.access import (
    BURNED_REASON,
    EXPIRED_REASON,
    VIEW_LIMIT_REASON,
    ExpirationOption,
    SecretState,
    calculate_expiration,
    evaluate_access,
    has_reached_view_limit,
    is_expired,
    next_state_after_grant,
    reason_for_state,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestEvaluateAccess:
    """Access decisions."""

    def test_fresh_secret_is_granted(self) -> None:
        """Grant a view of an unrestricted secret."""
        decision = evaluate_access(0, None, None, False, False, now=NOW)

        assert decision.can_view
        assert decision.state is SecretState.ACTIVE
        assert decision.reason is None

    def test_expiry_boundary(self) -> None:
        """Deny at the exact expiry instant and grant a moment before."""
        expires_at = NOW

        before = evaluate_access(
            0, None, expires_at, False, False, now=NOW - timedelta(microseconds=1)
        )
        at = evaluate_access(0, None, expires_at, False, False, now=NOW)

        assert before.can_view
        assert not at.can_view
        assert at.state is SecretState.EXPIRED
        assert at.reason == EXPIRED_REASON

    def test_view_limit_boundary(self) -> None:
        """Grant below the limit and deny at it."""
        assert evaluate_access(2, 3, None, False, True, now=NOW).can_view

        decision = evaluate_access(3, 3, None, False, True, now=NOW)

        assert decision.state is SecretState.VIEW_LIMIT_REACHED
        assert decision.reason == VIEW_LIMIT_REASON

    def test_burn_after_first_view(self) -> None:
        """Allow the first view of a burn-on-read secret only."""
        assert evaluate_access(0, None, None, True, False, now=NOW).can_view

        decision = evaluate_access(1, None, None, True, True, now=NOW)

        assert decision.state is SecretState.BURNED
        assert decision.reason == BURNED_REASON

    def test_expiry_wins_over_other_denials(self) -> None:
        """Report expiry first when several checks fail."""
        decision = evaluate_access(5, 5, NOW - timedelta(hours=1), True, True, now=NOW)

        assert decision.state is SecretState.EXPIRED

    def test_view_limit_wins_over_burn(self) -> None:
        """Report the view limit before burn-on-read."""
        decision = evaluate_access(1, 1, None, True, True, now=NOW)

        assert decision.state is SecretState.VIEW_LIMIT_REACHED

    def test_naive_expiry_is_treated_as_utc(self) -> None:
        """Compare SQLite's naive timestamps as UTC."""
        assert is_expired(NOW.replace(tzinfo=None), NOW)


class TestHelpers:
    """Smaller state helpers."""

    @pytest.mark.parametrize("max_views", [None, 0])
    def test_unbounded_views(self, max_views) -> None:
        """Never reach a missing or zero limit."""
        assert not has_reached_view_limit(1_000, max_views)

    def test_next_state_after_grant(self) -> None:
        """Close burn-on-read secrets on their granted view."""
        assert next_state_after_grant(True) is SecretState.BURNED
        assert next_state_after_grant(False) is SecretState.ACTIVE
        assert SecretState.BURNED.terminal
        assert not SecretState.ACTIVE.terminal

    def test_reason_for_state(self) -> None:
        """Return the fixed message per terminal state."""
        assert reason_for_state("expired") == EXPIRED_REASON
        assert reason_for_state(SecretState.ACTIVE) is None

    @pytest.mark.parametrize(
        ("option", "delta"),
        [
            (ExpirationOption.ONE_HOUR, timedelta(hours=1)),
            ("1d", timedelta(days=1)),
            ("7d", timedelta(days=7)),
            ("30d", timedelta(days=30)),
        ],
    )
    def test_calculate_expiration(self, option, delta) -> None:
        """Add the option's duration to the creation time."""
        assert calculate_expiration(option, now=NOW) == NOW + delta

    def test_never_expires(self) -> None:
        """Store no expiry for never or a missing option."""
        assert calculate_expiration("never", now=NOW) is None
        assert calculate_expiration(None, now=NOW) is None
