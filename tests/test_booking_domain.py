"""
Тесты для доменной модели контекста бронирования.
"""

from datetime import datetime, time

import pytest

from roomify.booking.domain import (
    AvailabilityService,
    Booking,
    BookingApproved,
    BookingCancelled,
    BookingCheckedIn,
    BookingCheckedOut,
    BookingCreated,
    BookingPolicy,
    BookingRejected,
    Room,
    User,
)
from roomify.booking.infrastructure import InMemoryBookingRepository
from roomify.shared_kernel import (
    AuthorizationError,
    BlockOutWindow,
    BookingStatus,
    InvalidTransitionError,
    RoomStatus,
    RoomType,
    RoomUnavailableError,
    TimeRange,
    UserRole,
)


def period(start_hour: int, end_hour: int, day: int = 1) -> TimeRange:
    return TimeRange(
        start=datetime(2024, 1, day, start_hour), end=datetime(2024, 1, day, end_hour)
    )


@pytest.fixture
def room() -> Room:
    return Room(
        id="room-1",
        name="Conference Room A",
        type=RoomType.CONFERENCE,
        capacity=20,
        equipment={"Projector"},
        department="Computer Science",
    )


@pytest.fixture
def student() -> User:
    return User(id="user1", role=UserRole.STUDENT, department="Computer Science")


@pytest.fixture
def faculty() -> User:
    return User(id="fac1", role=UserRole.FACULTY, department="Computer Science")


@pytest.fixture
def booking(room, student) -> Booking:
    return Booking.create(room=room, requester=student, title="Sync", period=period(10, 11))


class TestRoom:
    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            Room(name="Broken", type=RoomType.LAB, capacity=0, department="X")


class TestBookingLifecycle:
    """Тесты переходов состояний бронирования."""

    def test_create_booking(self, booking):
        """Новая заявка создается в статусе pending с событием BookingCreated."""
        assert booking.status == BookingStatus.PENDING
        assert booking.approved_by is None
        events = booking.pull_domain_events()
        assert len(events) == 1
        assert isinstance(events[0], BookingCreated)
        assert events[0].requester_id == "user1"
        assert booking.pull_domain_events() == []

    def test_create_in_maintenance_room_fails(self, room, student):
        room.status = RoomStatus.MAINTENANCE

        with pytest.raises(RoomUnavailableError):
            Booking.create(room=room, requester=student, title="Sync", period=period(10, 11))

    def test_create_during_block_out_fails(self, room, student):
        """5 января 2024 - пятница, аудитория закрыта с 14 до 18."""
        room.block_out_hours = [BlockOutWindow(start=time(14), end=time(18), days={4})]

        with pytest.raises(RoomUnavailableError):
            Booking.create(
                room=room, requester=student, title="Lab", period=period(15, 16, day=5)
            )

    def test_approve(self, booking):
        booking.pull_domain_events()
        moment = datetime(2023, 12, 31, 12, 0)

        booking.approve("fac1", at=moment)

        assert booking.status == BookingStatus.APPROVED
        assert booking.approved_by == "fac1"
        assert booking.approved_at == moment
        events = booking.pull_domain_events()
        assert [type(e) for e in events] == [BookingApproved]

    def test_reject(self, booking):
        booking.pull_domain_events()

        booking.reject("fac1")

        assert booking.status == BookingStatus.REJECTED
        assert booking.approved_by == "fac1"
        assert [type(e) for e in booking.pull_domain_events()] == [BookingRejected]

    @pytest.mark.parametrize("first", ["approve", "reject"])
    def test_review_only_from_pending(self, booking, first):
        getattr(booking, first)("fac1")
        booking.pull_domain_events()

        with pytest.raises(InvalidTransitionError):
            booking.approve("fac1")
        with pytest.raises(InvalidTransitionError):
            booking.reject("fac1")
        assert booking.pull_domain_events() == []

    def test_cancel_pending_and_approved(self, room, student, booking):
        booking.cancel()
        assert booking.status == BookingStatus.CANCELLED

        other = Booking.create(room=room, requester=student, title="B", period=period(12, 13))
        other.approve("fac1")
        other.cancel(cancelled_by="user1")
        assert other.status == BookingStatus.CANCELLED
        assert isinstance(other.pull_domain_events()[-1], BookingCancelled)

    def test_cancel_terminal_raises(self, booking):
        booking.cancel()

        with pytest.raises(InvalidTransitionError):
            booking.cancel()
        with pytest.raises(InvalidTransitionError):
            booking.approve("fac1")

    def test_check_in_and_out(self, booking):
        booking.approve("fac1")
        booking.pull_domain_events()

        booking.record_check_in("fac1", at=datetime(2024, 1, 1, 10, 2))
        booking.record_check_out("fac1", at=datetime(2024, 1, 1, 10, 58))

        assert booking.check_in.verified_by == "fac1"
        assert booking.check_out.time == datetime(2024, 1, 1, 10, 58)
        assert booking.status == BookingStatus.APPROVED
        assert [type(e) for e in booking.pull_domain_events()] == [
            BookingCheckedIn,
            BookingCheckedOut,
        ]

    def test_check_in_requires_approval(self, booking):
        with pytest.raises(InvalidTransitionError):
            booking.record_check_in("fac1")

    def test_check_out_requires_check_in(self, booking):
        booking.approve("fac1")

        with pytest.raises(InvalidTransitionError):
            booking.record_check_out("fac1")

    def test_double_check_in_rejected(self, booking):
        booking.approve("fac1")
        booking.record_check_in("fac1")

        with pytest.raises(InvalidTransitionError):
            booking.record_check_in("fac1")

    def test_cancel_after_check_out_rejected(self, booking):
        booking.approve("fac1")
        booking.record_check_in("fac1")
        booking.record_check_out("fac1")

        with pytest.raises(InvalidTransitionError):
            booking.cancel()

    def test_cancel_after_check_in_allowed(self, booking):
        booking.approve("fac1")
        booking.record_check_in("fac1")

        booking.cancel()

        assert booking.status == BookingStatus.CANCELLED


class TestBookingPolicy:
    """Тесты ролевых проверок."""

    @pytest.mark.parametrize("role", [UserRole.FACULTY, UserRole.ADMIN, UserRole.HOD])
    def test_reviewers(self, role):
        BookingPolicy.ensure_can_review(User(role=role, department="CS"))

    def test_student_cannot_review(self, student):
        with pytest.raises(AuthorizationError):
            BookingPolicy.ensure_can_review(student)
        with pytest.raises(AuthorizationError):
            BookingPolicy.ensure_can_verify(student)

    def test_cancel_rights(self, booking, student, faculty):
        stranger = User(id="user2", role=UserRole.STUDENT, department="Math")

        BookingPolicy.ensure_can_cancel(student, booking)
        BookingPolicy.ensure_can_cancel(faculty, booking)
        with pytest.raises(AuthorizationError):
            BookingPolicy.ensure_can_cancel(stranger, booking)


class TestAvailabilityService:
    """Тесты проверки доступности."""

    @pytest.fixture
    def repository(self) -> InMemoryBookingRepository:
        return InMemoryBookingRepository()

    def _add(self, repository, room, student, hours, status=BookingStatus.APPROVED):
        booking = Booking.create(
            room=room, requester=student, title="Existing", period=period(*hours)
        )
        booking.status = status
        repository.add(booking)
        return booking

    def test_only_approved_bookings_block(self, repository, room, student):
        service = AvailabilityService(repository)
        for status in (BookingStatus.PENDING, BookingStatus.REJECTED, BookingStatus.CANCELLED):
            self._add(repository, room, student, (10, 11), status=status)

        assert service.is_room_available(room.id, period(10, 11))

        self._add(repository, room, student, (10, 11))
        assert not service.is_room_available(room.id, period(10, 11))

    def test_touching_interval_is_available(self, repository, room, student):
        service = AvailabilityService(repository)
        self._add(repository, room, student, (11, 12))

        assert service.is_room_available(room.id, period(10, 11))
        assert service.is_room_available(room.id, period(12, 13))
        assert not service.is_room_available(room.id, period(10, 12))

    def test_other_rooms_do_not_block(self, repository, room, student):
        service = AvailabilityService(repository)
        self._add(repository, room, student, (10, 11))

        assert service.is_room_available("room-2", period(10, 11))

    def test_exclude_booking(self, repository, room, student):
        service = AvailabilityService(repository)
        existing = self._add(repository, room, student, (10, 11))

        assert service.is_room_available(room.id, period(10, 11), exclude_booking_id=existing.id)

    def test_status_at(self, repository, room, student):
        service = AvailabilityService(repository)
        self._add(repository, room, student, (10, 11))

        assert service.status_at(room, datetime(2024, 1, 1, 10, 30)) == RoomStatus.BOOKED
        assert service.status_at(room, datetime(2024, 1, 1, 11, 0)) == RoomStatus.AVAILABLE

        room.status = RoomStatus.MAINTENANCE
        assert service.status_at(room, datetime(2024, 1, 1, 10, 30)) == RoomStatus.MAINTENANCE

    def test_checked_out_booking_frees_room(self, repository, room, student):
        service = AvailabilityService(repository)
        booking = self._add(repository, room, student, (10, 11))
        booking.record_check_in("fac1", at=datetime(2024, 1, 1, 10))
        booking.record_check_out("fac1", at=datetime(2024, 1, 1, 10, 5))

        assert not booking.is_active(datetime(2024, 1, 1, 10, 30))
        assert service.status_at(room, datetime(2024, 1, 1, 10, 30)) == RoomStatus.AVAILABLE
