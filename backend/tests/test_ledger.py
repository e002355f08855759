from datetime import datetime

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from agenda.database import enable_sqlite_fk
from agenda.models.generated import Appointments, Base, Salespeople
from agenda.services.scheduling import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    SlotTakenError,
    book,
    book_lead_meeting,
    cancel,
    reschedule,
)
from agenda.services.scheduling import calendar, ledger
from agenda.services.scheduling.availability import AVAILABLE
from agenda.services.scheduling.errors import REASON_BOOKED, REASON_OUTSIDE_HOURS
from agenda.services.scheduling.policy import REBOOK_CANCEL_REASON

from conftest import ORG_ID, OTHER_ORG_ID

NINE = datetime(2030, 1, 7, 9, 0)
NINE_THIRTY = datetime(2030, 1, 7, 9, 30)


@pytest.fixture
def ana(make_salesperson, add_rule):
    person = make_salesperson("Ana", share=50)
    add_rule(person, 1, "09:00", "12:00")
    return person


@pytest.fixture
def bia(make_salesperson, add_rule):
    person = make_salesperson("Bia", share=50)
    add_rule(person, 1, "09:00", "12:00")
    return person


def test_book_stores_utc_and_counts_the_lead(db, config, ana):
    result = book(db, ORG_ID, ana.id, NINE, config, lead_id="lead-1", notes="first call")

    appointment = result.appointment
    assert appointment.scheduled_at == datetime(2030, 1, 7, 12, 0)
    assert appointment.status == "scheduled"
    assert appointment.duration_minutes == config.duration_minutes
    assert appointment.notes == "first call"

    db.refresh(ana)
    assert ana.leads_received_in_cycle == 1


def test_second_booking_of_same_instant_conflicts(db, config, ana):
    book(db, ORG_ID, ana.id, NINE, config)

    with pytest.raises(ConflictError) as exc:
        book(db, ORG_ID, ana.id, NINE, config)

    assert exc.value.reason == REASON_BOOKED
    assert not isinstance(exc.value, SlotTakenError)
    db.refresh(ana)
    assert ana.leads_received_in_cycle == 1


def test_storage_race_is_caught_by_unique_index(db, config, ana, monkeypatch):
    # Both writers saw the slot as free
    monkeypatch.setattr(ledger, "check_availability", lambda *args, **kwargs: AVAILABLE)

    book(db, ORG_ID, ana.id, NINE, config, lead_id="winner")
    with pytest.raises(SlotTakenError):
        book(db, ORG_ID, ana.id, NINE, config, lead_id="loser")

    rows = db.query(Appointments).filter(Appointments.salesperson_id == ana.id).all()
    assert [r.lead_id for r in rows] == ["winner"]
    db.refresh(ana)
    assert ana.leads_received_in_cycle == 1


def test_concurrent_sessions_book_once(tmp_path, config, monkeypatch):
    engine = create_engine(f"sqlite:///{tmp_path / 'race.db'}")
    event.listen(engine, "connect", enable_sqlite_fk)
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    with Session() as setup:
        person = Salespeople(organization_id=ORG_ID, name="Ana", target_share_percent=50)
        setup.add(person)
        setup.commit()
        salesperson_id = person.id
        calendar.add_rule(setup, ORG_ID, salesperson_id, 1, "09:00", "12:00", 30)

    first, second = Session(), Session()
    real_check = ledger.check_availability
    seen = []
    second_result = []

    def check_then_let_second_session_win(*args, **kwargs):
        result = real_check(*args, **kwargs)
        seen.append(result.available)
        if len(seen) == 1:
            # first has passed the checker but not written yet
            second_result.append(book(second, ORG_ID, salesperson_id, NINE, config, lead_id="second"))
        return result

    monkeypatch.setattr(ledger, "check_availability", check_then_let_second_session_win)

    try:
        with pytest.raises(SlotTakenError):
            book(first, ORG_ID, salesperson_id, NINE, config, lead_id="first")
    finally:
        first.close()
        second.close()

    assert seen == [True, True]
    assert second_result[0].appointment.lead_id == "second"
    with Session() as verify:
        assert [a.lead_id for a in verify.query(Appointments).all()] == ["second"]
        assert verify.get(Salespeople, salesperson_id).leads_received_in_cycle == 1
    engine.dispose()


def test_different_salespeople_may_share_an_instant(db, config, ana, bia):
    book(db, ORG_ID, ana.id, NINE, config)
    book(db, ORG_ID, bia.id, NINE, config)

    assert db.query(Appointments).count() == 2


def test_booking_outside_hours_is_rejected(db, config, ana):
    with pytest.raises(ConflictError) as exc:
        book(db, ORG_ID, ana.id, datetime(2030, 1, 7, 13, 0), config)

    assert exc.value.reason == REASON_OUTSIDE_HOURS
    assert db.query(Appointments).count() == 0


def test_unknown_or_foreign_salesperson(db, config, ana):
    with pytest.raises(NotFoundError):
        book(db, ORG_ID, 999, NINE, config)
    with pytest.raises(NotFoundError):
        book(db, OTHER_ORG_ID, ana.id, NINE, config)


def test_non_positive_duration(db, config, ana):
    with pytest.raises(InvalidInputError):
        book(db, ORG_ID, ana.id, NINE, config, duration_minutes=0)


def test_cancel_is_idempotent_and_keeps_counter(db, config, ana):
    appointment = book(db, ORG_ID, ana.id, NINE, config).appointment

    cancelled, changed = cancel(db, ORG_ID, appointment.id, reason="lead asked")
    assert changed is True
    assert cancelled.status == "cancelled"
    assert cancelled.cancel_reason == "lead asked"

    again, changed = cancel(db, ORG_ID, appointment.id)
    assert changed is False
    assert again.cancel_reason == "lead asked"

    db.refresh(ana)
    assert ana.leads_received_in_cycle == 1


def test_cancelled_slot_can_be_booked_again(db, config, ana):
    first = book(db, ORG_ID, ana.id, NINE, config).appointment
    cancel(db, ORG_ID, first.id)

    second = book(db, ORG_ID, ana.id, NINE, config).appointment

    assert second.id != first.id
    assert second.status == "scheduled"


def test_cancel_unknown_appointment(db):
    with pytest.raises(NotFoundError):
        cancel(db, ORG_ID, 12345)


def test_reschedule_moves_the_appointment(db, config, ana):
    appointment = book(db, ORG_ID, ana.id, NINE, config).appointment

    moved = reschedule(db, ORG_ID, appointment.id, NINE_THIRTY, config)

    assert moved.scheduled_at == datetime(2030, 1, 7, 12, 30)
    assert book(db, ORG_ID, ana.id, NINE, config).appointment.scheduled_at == datetime(2030, 1, 7, 12, 0)


def test_reschedule_to_own_instant_is_a_no_op(db, config, ana):
    appointment = book(db, ORG_ID, ana.id, NINE, config).appointment

    assert reschedule(db, ORG_ID, appointment.id, NINE, config).scheduled_at == appointment.scheduled_at


def test_reschedule_onto_taken_instant(db, config, ana):
    book(db, ORG_ID, ana.id, NINE, config)
    other = book(db, ORG_ID, ana.id, NINE_THIRTY, config).appointment

    with pytest.raises(ConflictError) as exc:
        reschedule(db, ORG_ID, other.id, NINE, config)

    assert exc.value.reason == REASON_BOOKED
    db.refresh(other)
    assert other.scheduled_at == datetime(2030, 1, 7, 12, 30)


def test_reschedule_cancelled_appointment(db, config, ana):
    appointment = book(db, ORG_ID, ana.id, NINE, config).appointment
    cancel(db, ORG_ID, appointment.id)

    with pytest.raises(InvalidInputError):
        reschedule(db, ORG_ID, appointment.id, NINE_THIRTY, config)


def test_update_appointment_status_and_notes(db, config, ana):
    appointment = book(db, ORG_ID, ana.id, NINE, config).appointment

    updated = ledger.update_appointment(db, ORG_ID, appointment.id, notes="bring contract", status="confirmed")

    assert (updated.status, updated.notes) == ("confirmed", "bring contract")
    with pytest.raises(InvalidInputError):
        ledger.update_appointment(db, ORG_ID, appointment.id, status="cancelled")


def test_cancelled_appointment_cannot_be_reopened(db, config, ana):
    appointment = book(db, ORG_ID, ana.id, NINE, config).appointment
    cancel(db, ORG_ID, appointment.id)

    with pytest.raises(InvalidInputError):
        ledger.update_appointment(db, ORG_ID, appointment.id, status="scheduled")


# ── Lead booking policy ─────────────────────────────────────────────────


def test_policy_uses_allocator_when_salesperson_missing(db, config, ana, bia):
    first = book_lead_meeting(db, ORG_ID, NINE, config, lead_id="lead-1")
    second = book_lead_meeting(db, ORG_ID, NINE, config, lead_id="lead-2")

    assert first.appointment.salesperson_id == ana.id
    assert second.appointment.salesperson_id == bia.id


def test_policy_without_active_salespeople(db, config, make_salesperson):
    make_salesperson("Away", active=False)

    with pytest.raises(ConflictError) as exc:
        book_lead_meeting(db, ORG_ID, NINE, config, lead_id="lead-1")

    assert exc.value.reason == "no active salesperson available"


def test_rebooking_with_another_salesperson_cancels_previous(db, config, ana, bia):
    old = book_lead_meeting(db, ORG_ID, NINE, config, salesperson_id=ana.id, lead_id="lead-1").appointment

    result = book_lead_meeting(db, ORG_ID, NINE_THIRTY, config, salesperson_id=bia.id, lead_id="lead-1")

    assert [a.id for a in result.replaced] == [old.id]
    db.refresh(old)
    assert old.status == "cancelled"
    assert old.cancel_reason == REBOOK_CANCEL_REASON
    # Counters are never given back
    db.refresh(ana)
    assert ana.leads_received_in_cycle == 1


def test_second_meeting_with_same_salesperson_is_kept(db, config, ana):
    first = book_lead_meeting(db, ORG_ID, NINE, config, salesperson_id=ana.id, lead_id="lead-1").appointment

    result = book_lead_meeting(db, ORG_ID, NINE_THIRTY, config, salesperson_id=ana.id, lead_id="lead-1")

    assert result.replaced == []
    db.refresh(first)
    assert first.status == "scheduled"


def test_failed_rebooking_keeps_previous_appointment(db, config, ana, bia):
    old = book_lead_meeting(db, ORG_ID, NINE, config, salesperson_id=ana.id, lead_id="lead-1").appointment
    book(db, ORG_ID, bia.id, NINE_THIRTY, config, lead_id="lead-2")

    with pytest.raises(ConflictError):
        book_lead_meeting(db, ORG_ID, NINE_THIRTY, config, salesperson_id=bia.id, lead_id="lead-1")

    db.refresh(old)
    assert old.status == "scheduled"
