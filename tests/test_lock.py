import datetime

from database.crud.crud_event import build_event_with_slots
from roster.lock import event_start, is_locked, lock_instant

from helpers import EVENT_DATE, EVENT_START, EVENT_TIME


def make_event(lock_offset_minutes):
    return build_event_with_slots(
        event_id=1, guild_id=1, owner_id=1, title="Siege", comp_name="ZvZ",
        date=EVENT_DATE, time=EVENT_TIME, roles=[], lock_offset_minutes=lock_offset_minutes,
    )


class TestLockWindow:
    def test_event_start_is_utc(self):
        assert event_start(EVENT_DATE, EVENT_TIME) == EVENT_START

    def test_lock_instant(self):
        assert lock_instant(make_event(30)) == EVENT_START - datetime.timedelta(minutes=30)

    def test_locked_inside_window(self):
        assert is_locked(make_event(30), EVENT_START - datetime.timedelta(minutes=20))

    def test_unlocked_before_window(self):
        assert not is_locked(make_event(30), EVENT_START - datetime.timedelta(minutes=40))

    def test_not_locked_at_exact_instant(self):
        assert not is_locked(make_event(30), EVENT_START - datetime.timedelta(minutes=30))

    def test_zero_offset_locks_after_start(self):
        event = make_event(0)
        assert not is_locked(event, EVENT_START)
        assert is_locked(event, EVENT_START + datetime.timedelta(seconds=1))

    def test_no_offset_never_locks(self):
        event = make_event(None)
        assert lock_instant(event) is None
        assert not is_locked(event, EVENT_START + datetime.timedelta(days=30))
