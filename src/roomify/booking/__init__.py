"""
Модуль контекста бронирования (Booking Context).

Отвечает за бронирование аудиторий, включая:
- Создание, одобрение, отклонение и отмену заявок
- Проверку доступности аудиторий
- Отметки о приходе и уходе
"""

from . import application, domain, infrastructure, interfaces

__all__ = [
    'domain',
    'application',
    'infrastructure',
    'interfaces',
]
