"""
Общие фикстуры для тестов.
"""

from datetime import datetime, timedelta

import pytest

from roomify import RoomifySettings, bootstrap_app
from roomify.booking.application import CreateBookingRequest


class FakeClock:
    """Управляемые часы для тестов."""

    def __init__(self, current: datetime):
        self.current = current

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2023, 12, 20, 9, 0))


@pytest.fixture
def app(clock):
    """Приложение с тестовыми аудиториями и пользователями."""
    return bootstrap_app(RoomifySettings(seed_mock_data=True), clock=clock)


@pytest.fixture
def make_request():
    """Фабрика запросов на бронирование Conference Room A от user1."""

    def _make(
        start: datetime = datetime(2024, 1, 1, 10, 0),
        end: datetime = datetime(2024, 1, 1, 11, 0),
        room_id: str = "room-1",
        requester_id: str = "user1",
        title: str = "Project sync",
        **kwargs,
    ) -> CreateBookingRequest:
        return CreateBookingRequest(
            room_id=room_id,
            requester_id=requester_id,
            title=title,
            start=start,
            end=end,
            **kwargs,
        )

    return _make
