"""Unit tests for the order status state machine."""

import pytest

from minalesh.domain.model.order_status import OrderStatus as S
from minalesh.domain.service import order_state_machine as sm

ALLOWED = {
    (S.PENDING, S.PAID), (S.PENDING, S.CANCELLED),
    (S.PAID, S.CONFIRMED), (S.PAID, S.CANCELLED), (S.PAID, S.REFUNDED),
    (S.CONFIRMED, S.PROCESSING), (S.CONFIRMED, S.PACKED),
    (S.CONFIRMED, S.CANCELLED), (S.CONFIRMED, S.REFUNDED),
    (S.PROCESSING, S.PACKED), (S.PROCESSING, S.FULFILLED),
    (S.PROCESSING, S.CANCELLED), (S.PROCESSING, S.REFUNDED),
    (S.PACKED, S.PICKED_UP), (S.PACKED, S.SHIPPED),
    (S.PACKED, S.CANCELLED), (S.PACKED, S.REFUNDED),
    (S.PICKED_UP, S.IN_TRANSIT), (S.PICKED_UP, S.SHIPPED),
    (S.PICKED_UP, S.CANCELLED), (S.PICKED_UP, S.REFUNDED),
    (S.IN_TRANSIT, S.OUT_FOR_DELIVERY), (S.IN_TRANSIT, S.SHIPPED),
    (S.IN_TRANSIT, S.DELIVERED), (S.IN_TRANSIT, S.REFUNDED),
    (S.OUT_FOR_DELIVERY, S.DELIVERED), (S.OUT_FOR_DELIVERY, S.REFUNDED),
    (S.FULFILLED, S.SHIPPED), (S.FULFILLED, S.CANCELLED), (S.FULFILLED, S.REFUNDED),
    (S.SHIPPED, S.DELIVERED), (S.SHIPPED, S.REFUNDED),
}


@pytest.mark.parametrize("current", list(S))
@pytest.mark.parametrize("requested", list(S))
def test_every_pair_matches_the_table(current, requested):
    check = sm.validate_transition(current, requested)

    assert check.valid == ((current, requested) in ALLOWED)
    if check.valid:
        assert check.error is None
    else:
        assert f"from '{current.value}' to '{requested.value}'" in check.error


class TestTerminalStates:

    @pytest.mark.parametrize("status", [S.DELIVERED, S.CANCELLED, S.REFUNDED])
    def test_terminal(self, status):
        assert sm.is_terminal(status)
        assert sm.valid_next_statuses(status) == []
        assert "none (terminal state)" in sm.validate_transition(status, S.PENDING).error

    def test_delivered_cannot_be_refunded(self):
        assert not sm.validate_transition(S.DELIVERED, S.REFUNDED).valid

    def test_same_status_is_invalid(self):
        for status in S:
            assert not sm.validate_transition(status, status).valid


class TestTables:

    def test_error_lists_valid_targets(self):
        check = sm.validate_transition(S.PENDING, S.SHIPPED)
        assert check.error.endswith("Valid transitions: paid, cancelled")

    def test_every_non_pending_status_has_a_timestamp(self):
        assert set(sm.TIMESTAMP_FIELDS) == set(S) - {S.PENDING}

    def test_notification_stages(self):
        assert sm.notification_stage(S.OUT_FOR_DELIVERY) == "out_for_delivery"
        assert sm.notification_stage(S.PAID) is None
        assert sm.notification_stage(S.CANCELLED) is None

    def test_completed_statuses(self):
        assert sm.completed_statuses(S.PACKED) == [
            S.PENDING, S.PAID, S.CONFIRMED, S.PROCESSING, S.PACKED,
        ]
        assert sm.completed_statuses(S.CANCELLED) == [S.PENDING]
