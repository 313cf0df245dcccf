"""
Тесты для проекций аналитики.
"""

from datetime import datetime

import pytest

from roomify.analytics import projections
from roomify.shared_kernel import RoomType, ValidationError


@pytest.fixture
def populated_app(app, make_request):
    """Приложение с набором бронирований в разных статусах."""
    b1 = app.bookings.create_booking(make_request())
    b2 = app.bookings.create_booking(
        make_request(
            requester_id="user2",
            start=datetime(2024, 1, 1, 13, 0),
            end=datetime(2024, 1, 1, 15, 30),
        )
    )
    app.bookings.create_booking(
        make_request(
            room_id="room-3",
            start=datetime(2024, 1, 2, 10, 30),
            end=datetime(2024, 1, 2, 11, 30),
        )
    )
    b4 = app.bookings.create_booking(
        make_request(
            room_id="room-2",
            requester_id="user2",
            start=datetime(2024, 1, 2, 9),
            end=datetime(2024, 1, 2, 10),
        )
    )
    app.bookings.approve_booking(b1.id, "fac1")
    app.bookings.approve_booking(b2.id, "hod1")
    app.bookings.reject_booking(b4.id, "fac1")
    return app


class TestAnalyticsApplicationService:
    """Тесты показателей панели аналитики."""

    def test_summary(self, populated_app):
        summary = populated_app.analytics.summary()

        assert summary.total_rooms == 5
        assert summary.available_rooms == 4
        assert summary.total_capacity == 143
        assert summary.total_bookings == 4
        assert summary.approved_bookings == 2
        assert summary.pending_bookings == 1
        assert summary.rejected_bookings == 1
        assert summary.cancelled_bookings == 0
        assert summary.upcoming_bookings == 4

    def test_summary_counts_occupied_rooms(self, populated_app, clock):
        clock.current = datetime(2024, 1, 1, 10, 30)

        assert populated_app.analytics.summary().available_rooms == 3

    def test_room_usage_against_capacity_hours(self, populated_app):
        usage = {u.room_id: u for u in populated_app.analytics.room_usage()}

        assert usage["room-1"].bookings == 2
        assert usage["room-1"].hours == 3.5
        assert usage["room-1"].utilization == pytest.approx(0.0875)
        assert usage["room-2"].hours == 0
        assert usage["room-5"].bookings == 0

    def test_room_usage_within_window(self, populated_app):
        usage = {
            u.room_id: u
            for u in populated_app.analytics.room_usage(
                datetime(2024, 1, 1), datetime(2024, 1, 2)
            )
        }

        assert usage["room-1"].utilization == pytest.approx(0.1458)
        assert usage["room-3"].bookings == 0

    def test_window_requires_both_bounds(self, populated_app):
        with pytest.raises(ValidationError):
            populated_app.analytics.room_usage(start=datetime(2024, 1, 1))

    def test_department_usage(self, populated_app):
        usage = populated_app.analytics.department_usage()

        assert [(u.department, u.bookings, u.hours) for u in usage] == [
            ("Computer Science", 3, 3.5),
            ("Mathematics", 1, 0.0),
        ]
        assert populated_app.analytics.get_department_analytics("Physics") is None

    def test_peak_hours(self, populated_app):
        hours = {h.hour: h.bookings for h in populated_app.analytics.peak_hours()}

        assert len(hours) == 24
        assert hours[10] == 2
        assert hours[11] == 1
        assert hours[13] == hours[14] == hours[15] == 1
        assert hours[9] == 0
        assert populated_app.analytics.busiest_hour() == 10

    def test_room_type_counts(self, populated_app):
        counts = {c.type: c.count for c in populated_app.analytics.room_type_counts()}

        assert counts == {
            RoomType.CLASSROOM: 2,
            RoomType.CONFERENCE: 1,
            RoomType.MEETING: 1,
            RoomType.LAB: 1,
        }

    def test_user_stats(self, populated_app):
        alice = populated_app.analytics.get_user_analytics("user1")
        bob = populated_app.analytics.get_user_analytics("user2")

        assert (alice.bookings, alice.approved, alice.pending, alice.hours) == (2, 1, 1, 1.0)
        assert (bob.bookings, bob.approved, bob.rejected, bob.hours) == (2, 1, 1, 2.5)
        assert populated_app.analytics.get_user_analytics("fac1") is None

    def test_projections_follow_state_changes(self, populated_app):
        """Показатели не кэшируются и сразу отражают изменения."""
        pending = populated_app.bookings.list_pending_approvals()[0]

        populated_app.bookings.cancel_booking(pending.id)

        assert populated_app.analytics.summary().pending_bookings == 0
        assert populated_app.analytics.summary().cancelled_bookings == 1


def test_busiest_hour_without_demand():
    assert projections.busiest_hour([]) is None
