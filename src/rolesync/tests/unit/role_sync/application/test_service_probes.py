"""Unit tests for role sync application service probes."""

from unittest.mock import MagicMock

import structlog

from role_sync.application.observability import (
    DefaultClaimsServiceProbe,
    DefaultProfileServiceProbe,
)
from shared_kernel.observability_context import ObservationContext


def _logger():
    return MagicMock(spec=structlog.stdlib.BoundLogger)


class TestProfileServiceProbe:
    def test_role_changed_logs_both_roles(self):
        logger = _logger()
        DefaultProfileServiceProbe(logger=logger).role_changed("abc", "user", "admin")

        logger.info.assert_called_once_with(
            "profile_role_changed", profile_id="abc", old_role="user", new_role="admin"
        )

    def test_invalid_role_is_a_warning(self):
        logger = _logger()
        DefaultProfileServiceProbe(logger=logger).invalid_role_rejected("abc", "root")

        logger.warning.assert_called_once_with(
            "invalid_role_rejected", profile_id="abc", role="root"
        )

    def test_with_context_keeps_logger(self):
        logger = _logger()
        probe = DefaultProfileServiceProbe(logger=logger).with_context(
            ObservationContext(actor_id="admin-1")
        )

        probe.role_change_failed("abc", "boom")

        logger.error.assert_called_once_with(
            "profile_role_change_failed",
            profile_id="abc",
            error="boom",
            actor_id="admin-1",
        )


class TestClaimsServiceProbe:
    def test_drift_detected_is_a_warning(self):
        logger = _logger()
        DefaultClaimsServiceProbe(logger=logger).drift_detected("abc", "admin", None)

        logger.warning.assert_called_once_with(
            "claims_drift_detected",
            identity_id="abc",
            profile_role="admin",
            claims_role=None,
        )
