"""
Контекст уведомлений.

Хранит уведомления пользователей и формирует их
по событиям жизненного цикла бронирований.
"""

from . import application, domain, infrastructure

__all__ = [
    "domain",
    "application",
    "infrastructure",
]
