"""Настройки Roomify: модель pydantic и загрузка из YAML.

Пример файла:

    log_level: DEBUG
    seed_mock_data: true
    reminder_lead_minutes: 15
"""

import os
from datetime import timedelta
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator
from ruamel.yaml import YAML

CONFIG_ENV_VAR = "ROOMIFY_CONFIG"

yaml = YAML(typ="safe")


class RoomifySettings(BaseModel):
    """Параметры движка бронирования."""

    # Уровень логирования пакета roomify
    log_level: str = Field("INFO", description="Уровень логирования")
    # Заполнить хранилище тестовыми аудиториями и пользователями
    seed_mock_data: bool = Field(True, description="Загрузить тестовые данные")
    # За сколько минут до начала напоминать об одобренном бронировании
    reminder_lead_minutes: int = Field(30, ge=0)
    # Часы, относительно которых считается загрузка аудитории без явного окна
    utilization_window_hours: float = Field(40.0, gt=0)
    # Сколько последних бронирований показывать на главной панели
    recent_bookings_limit: int = Field(5, gt=0)

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Неизвестный уровень логирования: {v}")
        return level

    @property
    def reminder_lead_time(self) -> timedelta:
        return timedelta(minutes=self.reminder_lead_minutes)


def load_settings(path: Optional[Union[str, Path]] = None) -> RoomifySettings:
    """Загружает настройки из YAML. Валидирует через pydantic.

    Без пути берется файл из переменной окружения ROOMIFY_CONFIG;
    если и она не задана, возвращаются настройки по умолчанию.
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return RoomifySettings()
        path = env_path

    target = Path(path)
    if not target.exists():
        raise FileNotFoundError(f"Файл настроек не найден: {target}")

    try:
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        return RoomifySettings.model_validate(dict(raw or {}))
    except Exception as e:
        raise ValueError(
            f"Файл настроек некорректен: {target}\n"
            f"Ошибка: {e}"
        ) from e
