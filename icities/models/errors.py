"""Ошибки движка.

Каждая ошибка знает, к какому изображению и дате относится; контроллер
дописывает эти поля, если сервис их не знал.
"""
from __future__ import annotations

from typing import Optional


class MandalaError(Exception):
    """Базовая ошибка обработки."""

    #: True, если ошибка касается изображения целиком, а не одной даты.
    image_wide = False

    def __init__(self, message: str, image: Optional[str] = None, day: Optional[object] = None) -> None:
        super().__init__(message)
        self.message = message
        self.image = image
        self.day = day

    def attach(self, image: Optional[str] = None, day: Optional[object] = None) -> MandalaError:
        if self.image is None:
            self.image = image
        if self.day is None:
            self.day = day
        return self

    def __str__(self) -> str:
        where = []
        if self.image is not None:
            where.append(f"'{self.image}'")
        if self.day is not None:
            where.append(str(self.day))
        if not where:
            return self.message
        return f"{' '.join(where)}: {self.message}"


class ConfigError(MandalaError):
    """Некорректная конфигурация."""
    image_wide = True


class InvalidGeometry(MandalaError):
    image_wide = True


class DegenerateGeometry(MandalaError):
    image_wide = True


class OracleExhausted(MandalaError):
    """Запрошено больше байт, чем есть в дайджесте."""


class PerturbationExhausted(OracleExhausted):
    """Дайджеста не хватило на возмущение параметров фильтров."""


class UnsupportedFilter(MandalaError):
    pass


class MissingFacts(MandalaError):
    pass
