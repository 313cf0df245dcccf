"""
Контекст аналитики: проекции над бронированиями для панели показателей.
"""

from . import application, projections

__all__ = [
    "projections",
    "application",
]
