import pytest

from food_delivery.core.exceptions import IllegalTransitionError, InvalidInputError
from food_delivery.engine import (
    ACTIVE_STATUSES,
    HISTORY_STATUSES,
    TERMINAL_STATUSES,
    OrderStatus,
    allowed_transitions,
    can_transition,
    is_active,
    is_history,
    is_terminal,
    transition,
)

LEGAL = [
    ("pending", "preparing"),
    ("preparing", "ready"),
    ("ready", "dispatch"),
    ("dispatch", "delivered"),
    ("pending", "cancelled"),
    ("preparing", "cancelled"),
    ("ready", "cancelled"),
    ("pending", "rejected"),
]


@pytest.mark.parametrize("current, requested", LEGAL)
def test_legal_transitions(current, requested):
    assert transition(current, requested) == OrderStatus(requested)
    assert can_transition(current, requested)


def test_every_other_pair_is_illegal():
    legal = {(OrderStatus(a), OrderStatus(b)) for a, b in LEGAL}
    for src in OrderStatus:
        for dst in OrderStatus:
            if (src, dst) in legal:
                continue
            with pytest.raises(IllegalTransitionError):
                transition(src, dst)


def test_dispatch_cannot_be_rejected():
    with pytest.raises(IllegalTransitionError) as excinfo:
        transition("dispatch", "rejected")
    assert excinfo.value.current == "dispatch"
    assert excinfo.value.requested == "rejected"


@pytest.mark.parametrize("terminal", ["delivered", "cancelled", "rejected"])
def test_terminal_statuses_have_no_way_out(terminal):
    assert is_terminal(terminal)
    assert allowed_transitions(terminal) == frozenset()
    with pytest.raises(IllegalTransitionError):
        transition(terminal, "pending")


def test_terminal_set():
    assert TERMINAL_STATUSES == {
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
        OrderStatus.REJECTED,
    }


def test_active_and_history_partition_all_statuses():
    assert ACTIVE_STATUSES.isdisjoint(HISTORY_STATUSES)
    assert ACTIVE_STATUSES | HISTORY_STATUSES == set(OrderStatus)
    for status in OrderStatus:
        assert is_active(status) != is_history(status)


def test_status_strings_are_case_insensitive():
    assert transition("PENDING", " Preparing ") is OrderStatus.PREPARING


def test_unknown_status_is_invalid_input():
    with pytest.raises(InvalidInputError) as excinfo:
        transition("pending", "teleported")
    assert excinfo.value.field == "status"
