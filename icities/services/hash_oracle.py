"""Поток байт возмущения поверх SHA-1 дайджеста.

Курсор явный, поэтому исчерпание дайджеста выражается ошибкой
`OracleExhausted`, а не выходом за границы строки.
"""
from __future__ import annotations

import hashlib

from icities.models.day_model import DailyFacts
from icities.models.errors import OracleExhausted

DIGEST_SIZE = 20


class HashOracle:
    def __init__(self, seed: bytes) -> None:
        self._digest = hashlib.sha1(seed).digest()
        self._cursor = 0

    @classmethod
    def from_facts(cls, facts: DailyFacts) -> HashOracle:
        """Оракул для фактов дня: `SHA1("<viewCount>-<keyword>")`."""
        return cls(facts.seed)

    @property
    def digest(self) -> bytes:
        return self._digest

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def remaining(self) -> int:
        return DIGEST_SIZE - self._cursor

    def next_byte(self) -> int:
        """Возвращает следующий байт дайджеста и сдвигает курсор.

        Raises:
            OracleExhausted: если все 20 байт уже выданы.
        """
        if self._cursor >= DIGEST_SIZE:
            raise OracleExhausted(f"все {DIGEST_SIZE} байт дайджеста уже использованы")
        value = self._digest[self._cursor]
        self._cursor += 1
        return value
