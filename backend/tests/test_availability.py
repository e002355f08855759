from datetime import datetime, timezone

import pytest

from agenda.services.scheduling import book, cancel, check_availability
from agenda.services.scheduling import calendar
from agenda.services.scheduling.errors import (
    REASON_BLOCKED,
    REASON_BOOKED,
    REASON_NO_SCHEDULE,
    REASON_OUTSIDE_HOURS,
)

from conftest import ORG_ID, OTHER_ORG_ID


@pytest.fixture
def ana(db, config, make_salesperson, add_rule):
    """Mondays 09:00-12:00, blocked 10:00-10:30, booked at 09:30."""
    person = make_salesperson("Ana")
    add_rule(person, 1, "09:00", "12:00")
    calendar.add_blackout(
        db, ORG_ID, person.id, datetime(2030, 1, 7, 10, 0), datetime(2030, 1, 7, 10, 30), config
    )
    return person


def test_open_slot_is_available(db, config, ana):
    result = check_availability(db, ORG_ID, ana.id, datetime(2030, 1, 7, 9, 0), config)

    assert result.available
    assert result.as_dict() == {"available": True}


def test_day_without_rules(db, config, ana):
    result = check_availability(db, ORG_ID, ana.id, datetime(2030, 1, 8, 9, 0), config)

    assert not result.available
    assert result.reason == REASON_NO_SCHEDULE


@pytest.mark.parametrize("hour, minute", [(8, 59), (12, 0), (18, 0)])
def test_outside_rule_window(db, config, ana, hour, minute):
    result = check_availability(db, ORG_ID, ana.id, datetime(2030, 1, 7, hour, minute), config)

    assert result.reason == REASON_OUTSIDE_HOURS


@pytest.mark.parametrize("minute", [0, 15, 30])
def test_blackout_blocks_both_edges(db, config, ana, minute):
    result = check_availability(db, ORG_ID, ana.id, datetime(2030, 1, 7, 10, minute), config)

    assert result.reason == REASON_BLOCKED
    assert result.as_dict() == {"available": False, "reason": REASON_BLOCKED}


def test_booked_instant(db, config, ana):
    booked = book(db, ORG_ID, ana.id, datetime(2030, 1, 7, 9, 30), config).appointment

    result = check_availability(db, ORG_ID, ana.id, datetime(2030, 1, 7, 9, 30), config)
    assert result.reason == REASON_BOOKED

    own = check_availability(
        db, ORG_ID, ana.id, datetime(2030, 1, 7, 9, 30), config,
        exclude_appointment_id=booked.id,
    )
    assert own.available


def test_cancelled_appointment_does_not_block(db, config, ana):
    booked = book(db, ORG_ID, ana.id, datetime(2030, 1, 7, 9, 30), config).appointment
    cancel(db, ORG_ID, booked.id)

    assert check_availability(db, ORG_ID, ana.id, datetime(2030, 1, 7, 9, 30), config).available


def test_only_exact_instant_conflicts(db, config, ana):
    book(db, ORG_ID, ana.id, datetime(2030, 1, 7, 9, 0), config)

    # 09:15 overlaps the 30-minute meeting but is a different instant
    assert check_availability(db, ORG_ID, ana.id, datetime(2030, 1, 7, 9, 15), config).available


def test_aware_instant_is_converted(db, config, ana):
    # 12:00 UTC is 09:00 local
    instant = datetime(2030, 1, 7, 12, 0, tzinfo=timezone.utc)

    assert check_availability(db, ORG_ID, ana.id, instant, config).available


def test_reasons_follow_check_order(db, config, make_salesperson, add_rule):
    bia = make_salesperson("Bia")
    add_rule(bia, 1, "09:00", "10:00")
    book(db, ORG_ID, bia.id, datetime(2030, 1, 7, 9, 0), config)
    # Blackout placed over an already booked instant
    calendar.add_blackout(
        db, ORG_ID, bia.id, datetime(2030, 1, 7, 8, 0), datetime(2030, 1, 7, 9, 0), config
    )

    result = check_availability(db, ORG_ID, bia.id, datetime(2030, 1, 7, 9, 0), config)

    assert result.reason == REASON_BLOCKED


def test_other_organization_has_no_schedule(db, config, ana):
    result = check_availability(db, OTHER_ORG_ID, ana.id, datetime(2030, 1, 7, 9, 0), config)

    assert result.reason == REASON_NO_SCHEDULE
