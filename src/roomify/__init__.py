"""
Roomify - движок бронирования аудиторий.

Доступность аудиторий, жизненный цикл бронирований и уведомления
хранятся в памяти процесса. Точка входа - roomify.bootstrap.bootstrap_app.
"""

from .bootstrap import RoomifyApp, bootstrap_app
from .config import RoomifySettings, load_settings

__version__ = "0.1.0"

__all__ = [
    "RoomifyApp",
    "RoomifySettings",
    "bootstrap_app",
    "load_settings",
]
