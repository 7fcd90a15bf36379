"""Unit tests for session identity and expiry."""
import uuid
from datetime import timedelta

from telemetry_tracker.session import SessionManager
from telemetry_tracker.storage import InMemoryTrackingStorage

from conftest import T0, FailingStorage


class TestSessionManager:
    """Tests for SessionManager."""

    def test_fresh_storage_starts_new_session(self, storage):
        """Test first start with no persisted session creates one."""
        manager = SessionManager(storage, timeout_seconds=60)
        transition = manager.recover_or_start(T0)
        assert transition is not None
        assert transition.old_id is None
        assert uuid.UUID(transition.new_id)
        assert manager.session_id == transition.new_id
        assert storage.get_previous_session_id() == transition.new_id
        assert storage.get_last_event_time() == T0

    def test_resumes_live_persisted_session(self, storage):
        """Test a persisted, unexpired session is resumed."""
        storage.set_previous_session_id("persisted")
        storage.set_last_event_time(T0)
        manager = SessionManager(storage, timeout_seconds=60)
        assert manager.recover_or_start(T0 + timedelta(seconds=30)) is None
        assert manager.session_id == "persisted"

    def test_expired_persisted_session_rotates(self, storage):
        storage.set_previous_session_id("persisted")
        storage.set_last_event_time(T0)
        manager = SessionManager(storage, timeout_seconds=60)
        transition = manager.recover_or_start(T0 + timedelta(seconds=61))
        assert transition.old_id == "persisted"
        assert transition.new_id != "persisted"

    def test_persisted_id_without_time_rotates(self, storage):
        storage.set_previous_session_id("persisted")
        manager = SessionManager(storage, timeout_seconds=60)
        transition = manager.recover_or_start(T0)
        assert transition.old_id == "persisted"

    def test_expiry_boundary(self, storage):
        """Test expiry is strictly greater than the timeout."""
        manager = SessionManager(storage, timeout_seconds=60)
        manager.recover_or_start(T0)
        assert not manager.is_expired(T0 + timedelta(seconds=60))
        assert manager.is_expired(T0 + timedelta(seconds=61))

    def test_check_expiry_rotates_once(self, storage):
        """Test T + S + 1 rotates; the rotation resets the clock."""
        manager = SessionManager(storage, timeout_seconds=60)
        first = manager.recover_or_start(T0).new_id
        later = T0 + timedelta(seconds=61)
        transition = manager.check_expiry(later)
        assert transition.old_id == first
        assert manager.session_id == transition.new_id
        assert manager.check_expiry(later) is None

    def test_touch_extends_session(self, storage):
        manager = SessionManager(storage, timeout_seconds=60)
        manager.recover_or_start(T0)
        manager.touch(T0 + timedelta(seconds=50))
        assert manager.check_expiry(T0 + timedelta(seconds=100)) is None
        assert storage.get_last_event_time() == T0 + timedelta(seconds=50)

    def test_expiry_survives_restart(self):
        """Test a new manager on the same storage sees the persisted time."""
        storage = InMemoryTrackingStorage()
        first = SessionManager(storage, timeout_seconds=60)
        session_id = first.recover_or_start(T0).new_id
        first.touch(T0 + timedelta(seconds=10))

        second = SessionManager(storage, timeout_seconds=60)
        assert second.session_id == session_id
        assert second.last_event_time == T0 + timedelta(seconds=10)
        transition = second.check_expiry(T0 + timedelta(seconds=71))
        assert transition.old_id == session_id

    def test_unreadable_storage_starts_fresh(self):
        manager = SessionManager(FailingStorage(), timeout_seconds=60)
        assert manager.session_id is None
        transition = manager.recover_or_start(T0)
        assert transition.old_id is None
        assert manager.session_id == transition.new_id

    def test_rotation_survives_write_failure(self):
        """Test a failed persist still rotates and returns the transition."""
        failing = FailingStorage(failing=False)
        manager = SessionManager(failing, timeout_seconds=60)
        first = manager.recover_or_start(T0).new_id
        failing.failing = True
        transition = manager.check_expiry(T0 + timedelta(seconds=61))
        assert transition.old_id == first
        assert manager.session_id == transition.new_id
        failing.failing = False
        assert failing.get_previous_session_id() == first

    def test_touch_survives_write_failure(self):
        manager = SessionManager(FailingStorage(), timeout_seconds=60)
        manager.recover_or_start(T0)
        manager.touch(T0 + timedelta(seconds=30))
        assert manager.last_event_time == T0 + timedelta(seconds=30)
