"""Tests for the renewal decision."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest

from sas_operator.models import SasGeneratorStatus
from sas_operator.utils.expiry import renewal_due_at, should_regenerate
from sas_operator.utils.timefmt import format_rfc3339

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def status_expiring_at(expiry: datetime) -> SasGeneratorStatus:
    return SasGeneratorStatus(
        token="sv=2022&sig=abc",
        target_secret="volsync-acct-backups",
        generated=format_rfc3339(expiry - timedelta(hours=48)),
        expiry=format_rfc3339(expiry),
    )


class TestShouldRegenerate:
    """Test cases for should_regenerate."""

    def test_no_status(self):
        """Test that a resource without status needs a first token."""
        assert should_regenerate(NOW, None, 24) is True

    def test_status_without_expiry(self):
        """Test that a status lacking an expiry needs a token."""
        status = SasGeneratorStatus(token="sv=2022&sig=abc")
        assert should_regenerate(NOW, status, 24) is True

    def test_unparseable_expiry_logs_warning(self, caplog):
        """Test that an unparseable expiry fails open with a warning."""
        status = SasGeneratorStatus(token="t", expiry="tomorrow-ish")

        with caplog.at_level(logging.WARNING, logger="sas_operator.utils.expiry"):
            assert should_regenerate(NOW, status, 24) is True

        assert any("Failed to parse expiry" in record.message for record in caplog.records)

    def test_far_from_expiry(self):
        """Test that a token expiring in 10h with a 1h window is kept."""
        status = status_expiring_at(NOW + timedelta(hours=10))
        assert should_regenerate(NOW, status, 1) is False

    def test_inside_renewal_window(self):
        """Test that a token inside the renewal window is renewed."""
        status = status_expiring_at(NOW + timedelta(hours=10))
        assert should_regenerate(NOW, status, 12) is True

    def test_exactly_at_renewal_boundary(self):
        """Test that renewal fires at exactly expiry minus the window."""
        status = status_expiring_at(NOW + timedelta(hours=24))
        assert should_regenerate(NOW, status, 24) is True
        assert should_regenerate(NOW - timedelta(seconds=1), status, 24) is False

    def test_already_expired(self):
        """Test that an expired token is renewed."""
        status = status_expiring_at(NOW - timedelta(minutes=1))
        assert should_regenerate(NOW, status, 1) is True

    @pytest.mark.parametrize("offset_hours", [-30, -24, -1, 0, 1, 23, 24, 25, 48])
    @pytest.mark.parametrize("renewal_hours", [1, 24])
    def test_matches_window_rule(self, offset_hours, renewal_hours):
        """Test that the decision equals now >= expiry - renewal."""
        expiry = NOW + timedelta(hours=offset_hours)
        status = status_expiring_at(expiry)
        expected = NOW >= expiry - timedelta(hours=renewal_hours)
        assert should_regenerate(NOW, status, renewal_hours) is expected


class TestRenewalDueAt:
    """Test cases for renewal_due_at."""

    def test_none_without_expiry(self):
        """Test that no due time exists without an expiry."""
        assert renewal_due_at(None, 24) is None
        assert renewal_due_at(SasGeneratorStatus(), 24) is None

    def test_due_time(self):
        """Test the due time is expiry minus the window."""
        status = status_expiring_at(NOW + timedelta(hours=48))
        assert renewal_due_at(status, 24) == NOW + timedelta(hours=24)

    def test_invalid_expiry_raises(self):
        """Test that the helper itself does not hide parse errors."""
        with pytest.raises(ValueError):
            renewal_due_at(SasGeneratorStatus(expiry="garbage"), 24)
