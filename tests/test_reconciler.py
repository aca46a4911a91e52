"""
Tests for the check-in reconciler: payment gate, idempotence, races
"""

import threading
import pytest
from datetime import datetime, timedelta

from app.exceptions import EventClosed, NotCheckedIn, NotFound, PaymentNotConfirmed, StoreConflict, WrongEvent
from app.services.reconciler import CheckInReconciler, coupons_owed
from app.services.repositories import (
    EventInfo, RegistrantInfo, RSVPRecord, SqlAttendanceStore, SqlRegistrantDirectory
)
from app.services.scan_intake import ScanIntake
from fakes import InMemoryAttendanceStore, InMemoryRegistrantDirectory

TOKEN = "JTM-EVENT:evt1:user7:1700000000"
DOORS_OPEN = datetime(2030, 9, 7, 17, 45)

def sql_flow(db_session, clock=lambda: DOORS_OPEN, **kwargs):
    store = SqlAttendanceStore(db_session)
    intake = ScanIntake(store, SqlRegistrantDirectory(db_session))
    return intake, CheckInReconciler(store, clock=clock, **kwargs)

def memory_flow(payment_confirmed=True, checked_in=False, guest_count=2):
    store = InMemoryAttendanceStore(
        events=[EventInfo(id="evt1", title="Onam Celebration", date=datetime(2030, 9, 7, 17, 0), location="Community Hall")],
        records=[RSVPRecord(
            id="rsvp1", event_id="evt1", user_id="user7", guest_count=guest_count,
            payment_confirmed=payment_confirmed, checked_in=checked_in,
            checked_in_at=DOORS_OPEN if checked_in else None
        )],
    )
    directory = InMemoryRegistrantDirectory([
        RegistrantInfo(id="user7", name="Priya Nair", email="priya.nair@example.com")
    ])
    return store, directory

# -------- Scenarios against the SQL store --------

def test_unconfirmed_payment_is_refused(db_session, gala):
    intake, reconciler = sql_flow(db_session)
    candidate = intake.resolve_by_token(TOKEN, expected_event_id="evt1")
    
    with pytest.raises(PaymentNotConfirmed) as exc_info:
        reconciler.check_in(candidate, food_token_given=True)
    
    assert exc_info.value.details["rsvp_id"] == "rsvp1"
    record = SqlAttendanceStore(db_session).get("rsvp1")
    assert record.checked_in is False
    assert record.checked_in_at is None
    assert record.food_token_given is False

def test_first_then_second_scan(db_session, gala, confirm_payment):
    confirm_payment("rsvp1")
    intake, reconciler = sql_flow(db_session)
    
    first = reconciler.check_in(
        intake.resolve_by_token(TOKEN, expected_event_id="evt1"),
        food_token_given=True,
        notes="Wristbands x3"
    )
    
    assert first.success is True
    assert first.already_checked_in is False
    assert first.coupons_owed == 3
    assert first.checked_in_at == DOORS_OPEN
    assert first.food_token_given is True
    assert first.registrant.name == "Priya Nair"
    assert first.event.title == "Onam Celebration"
    
    later = CheckInReconciler(SqlAttendanceStore(db_session), clock=lambda: DOORS_OPEN + timedelta(minutes=20))
    second = later.check_in(intake.resolve_by_token(TOKEN, expected_event_id="evt1"), food_token_given=False, notes="rescan")
    
    assert second.success is True
    assert second.already_checked_in is True
    assert second.coupons_owed == 3
    assert second.checked_in_at == DOORS_OPEN
    assert second.food_token_given is True
    assert second.notes == "Wristbands x3"
    
    record = SqlAttendanceStore(db_session).get("rsvp1")
    assert record.checked_in is True
    assert record.checked_in_at == DOORS_OPEN
    assert record.notes == "Wristbands x3"

def test_manual_check_in_by_email(db_session, gala):
    intake, reconciler = sql_flow(db_session)
    
    result = reconciler.check_in(intake.resolve_by_email("evt1", "arjun.menon@example.com"))
    
    assert result.success is True
    assert result.already_checked_in is False
    assert result.coupons_owed == 1
    assert result.food_token_given is False
    assert result.registrant.email == "arjun.menon@example.com"

def test_manual_entry_with_unknown_email(db_session, gala):
    intake, _ = sql_flow(db_session)
    
    with pytest.raises(NotFound):
        intake.resolve_by_email("evt1", "stranger@example.com")

def test_race_between_two_devices_on_sql_store(session_factory, gala):
    """Both devices read the RSVP before either writes"""
    device_a, device_b = session_factory(), session_factory()
    intake_a, reconciler_a = sql_flow(device_a)
    intake_b, reconciler_b = sql_flow(device_b, clock=lambda: DOORS_OPEN + timedelta(seconds=2))
    
    candidate_a = intake_a.resolve_by_email("evt1", "arjun.menon@example.com")
    candidate_b = intake_b.resolve_by_email("evt1", "arjun.menon@example.com")
    
    result_a = reconciler_a.check_in(candidate_a, food_token_given=True, notes="device A")
    result_b = reconciler_b.check_in(candidate_b, food_token_given=False, notes="device B")
    
    assert result_a.already_checked_in is False
    assert result_b.already_checked_in is True
    assert result_b.checked_in_at == DOORS_OPEN
    assert result_b.notes == "device A"
    
    record = SqlAttendanceStore(session_factory()).get("rsvp2")
    assert record.notes == "device A"
    assert record.food_token_given is True

def test_inspect_does_not_check_in(db_session, gala):
    intake, reconciler = sql_flow(db_session)
    
    result = reconciler.inspect(intake.resolve_by_token(TOKEN, expected_event_id="evt1"))
    
    assert result.success is True
    assert result.already_checked_in is False
    assert result.payment_confirmed is False
    assert result.coupons_owed == 3
    assert SqlAttendanceStore(db_session).get("rsvp1").checked_in is False

def test_check_in_closed_after_event(db_session, gala, confirm_payment):
    confirm_payment("rsvp1")
    late = datetime(2030, 9, 7, 17, 0) + timedelta(hours=7)
    intake, reconciler = sql_flow(db_session, clock=lambda: late, close_after_hours=6)
    
    with pytest.raises(EventClosed):
        reconciler.check_in(intake.resolve_by_token(TOKEN, expected_event_id="evt1"))
    
    assert SqlAttendanceStore(db_session).get("rsvp1").checked_in is False

def test_check_in_open_within_window(db_session, gala, confirm_payment):
    confirm_payment("rsvp1")
    intake, reconciler = sql_flow(db_session, close_after_hours=6)
    
    result = reconciler.check_in(intake.resolve_by_token(TOKEN, expected_event_id="evt1"))
    assert result.already_checked_in is False

def test_food_token_after_check_in(db_session, gala):
    intake, reconciler = sql_flow(db_session)
    reconciler.check_in(intake.resolve_by_email("evt1", "arjun.menon@example.com"), notes="early arrival")
    
    later = CheckInReconciler(SqlAttendanceStore(db_session), clock=lambda: DOORS_OPEN + timedelta(hours=1))
    result = later.record_food_token(intake.resolve_by_rsvp("evt1", "rsvp2"))
    
    assert result.already_checked_in is True
    assert result.food_token_given is True
    assert result.checked_in_at == DOORS_OPEN
    assert result.notes == "early arrival"
    
    record = SqlAttendanceStore(db_session).get("rsvp2")
    assert record.checked_in is True
    assert record.checked_in_at == DOORS_OPEN
    assert record.food_token_given is True
    assert record.notes == "early arrival"

def test_food_token_updates_notes_when_given(db_session, gala):
    intake, reconciler = sql_flow(db_session)
    reconciler.check_in(intake.resolve_by_email("evt1", "arjun.menon@example.com"))
    
    result = reconciler.record_food_token(intake.resolve_by_rsvp("evt1", "rsvp2"), notes="veg plate")
    
    assert result.notes == "veg plate"
    assert SqlAttendanceStore(db_session).get("rsvp2").notes == "veg plate"

def test_food_token_refused_before_check_in(db_session, gala):
    intake, reconciler = sql_flow(db_session)
    
    with pytest.raises(NotCheckedIn) as exc_info:
        reconciler.record_food_token(intake.resolve_by_rsvp("evt1", "rsvp2"))
    
    assert exc_info.value.code == "not_checked_in"
    record = SqlAttendanceStore(db_session).get("rsvp2")
    assert record.checked_in is False
    assert record.checked_in_at is None
    assert record.food_token_given is False

def test_food_token_lookup_checks_event(db_session, gala):
    intake, _ = sql_flow(db_session)
    
    with pytest.raises(WrongEvent):
        intake.resolve_by_rsvp("evt1", "rsvp3")
    with pytest.raises(NotFound):
        intake.resolve_by_rsvp("evt1", "rsvp404")

# -------- Properties against the in-memory store --------

@pytest.mark.parametrize("checked_in", [False, True])
@pytest.mark.parametrize("guest_count", [0, 3])
def test_payment_gate_regardless_of_state(checked_in, guest_count):
    store, directory = memory_flow(payment_confirmed=False, checked_in=checked_in, guest_count=guest_count)
    candidate = ScanIntake(store, directory).resolve_by_token(TOKEN, expected_event_id="evt1")
    
    with pytest.raises(PaymentNotConfirmed):
        CheckInReconciler(store).check_in(candidate, food_token_given=True)
    
    assert store.writes == 0

@pytest.mark.parametrize("guest_count", [0, 1, 2, 7])
def test_coupons_owed_is_registrant_plus_guests(guest_count):
    store, directory = memory_flow(guest_count=guest_count)
    intake = ScanIntake(store, directory)
    reconciler = CheckInReconciler(store)
    
    first = reconciler.check_in(intake.resolve_by_token(TOKEN, expected_event_id="evt1"))
    second = reconciler.check_in(intake.resolve_by_token(TOKEN, expected_event_id="evt1"))
    
    assert first.coupons_owed == 1 + guest_count
    assert second.coupons_owed == 1 + guest_count
    assert coupons_owed(store.get("rsvp1")) == 1 + guest_count

def test_sequential_check_ins_write_once():
    store, directory = memory_flow()
    intake = ScanIntake(store, directory)
    reconciler = CheckInReconciler(store, clock=lambda: DOORS_OPEN)
    
    first = reconciler.check_in(intake.resolve_by_token(TOKEN), food_token_given=True, notes="first")
    second = reconciler.check_in(intake.resolve_by_token(TOKEN), food_token_given=False, notes="second")
    
    assert store.writes == 1
    assert first.already_checked_in is False
    assert second.already_checked_in is True
    assert second.checked_in_at == first.checked_in_at
    assert second.food_token_given is True
    assert store.get("rsvp1").notes == "first"

@pytest.mark.parametrize("devices", [2, 5, 16])
def test_concurrent_check_ins_transition_exactly_once(devices):
    store, directory = memory_flow()
    barrier = threading.Barrier(devices)
    results, errors = [], []
    lock = threading.Lock()
    
    def scan(device):
        try:
            candidate = ScanIntake(store, directory).resolve_by_token(TOKEN, expected_event_id="evt1")
            barrier.wait()  # every device holds a stale, not-checked-in snapshot
            result = CheckInReconciler(store).check_in(
                candidate, food_token_given=device % 2 == 0, notes=f"device {device}"
            )
            with lock:
                results.append(result)
        except Exception as e:
            with lock:
                errors.append(e)
    
    threads = [threading.Thread(target=scan, args=(i,)) for i in range(devices)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    
    assert errors == []
    first = [r for r in results if not r.already_checked_in]
    repeats = [r for r in results if r.already_checked_in]
    assert len(first) == 1
    assert len(repeats) == devices - 1
    assert store.writes == 1
    
    winner = first[0]
    final = store.get("rsvp1")
    assert final.notes == winner.notes
    assert final.food_token_given == winner.food_token_given
    for result in repeats:
        assert result.checked_in_at == winner.checked_in_at
        assert result.notes == winner.notes
        assert result.coupons_owed == 3

class AlwaysConflictingStore(InMemoryAttendanceStore):
    def transactional_update(self, rsvp_id, patch, expected=None):
        raise StoreConflict("RSVP was modified concurrently", rsvp_id=rsvp_id)

def test_conflict_without_check_in_is_reported():
    _, directory = memory_flow()
    store = AlwaysConflictingStore(
        events=[EventInfo(id="evt1", title="Onam Celebration", date=datetime(2030, 9, 7, 17, 0))],
        records=[RSVPRecord(id="rsvp1", event_id="evt1", user_id="user7", payment_confirmed=True)],
    )
    candidate = ScanIntake(store, directory).resolve_by_token(TOKEN)
    
    with pytest.raises(StoreConflict) as exc_info:
        CheckInReconciler(store).check_in(candidate)
    
    assert exc_info.value.code == "store_conflict"
