"""Модели данных одного дня: дата, факты, результат перестановки и прогона."""
from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

_DAY_RE = re.compile(r"^[0-9]{8}$")


@dataclass(frozen=True, order=True)
class DayDate:
    """Календарная дата (григорианская), для которой строится мандала."""
    year: int
    month: int
    day: int

    @classmethod
    def parse(cls, label: str) -> DayDate:
        """Разбирает строку `YYYYMMDD`.

        Raises:
            ValueError: если строка не похожа на дату или такой даты нет.
        """
        if not _DAY_RE.match(label):
            raise ValueError(f"'{label}' не похоже на дату YYYYMMDD")
        result = cls(int(label[0:4]), int(label[4:6]), int(label[6:8]))
        result.to_date()
        return result

    @classmethod
    def from_date(cls, value: dt.date) -> DayDate:
        return cls(value.year, value.month, value.day)

    @classmethod
    def today_utc(cls) -> DayDate:
        return cls.from_date(dt.datetime.now(dt.timezone.utc).date())

    def to_date(self) -> dt.date:
        return dt.date(self.year, self.month, self.day)

    @property
    def label(self) -> str:
        return f"{self.year:04d}{self.month:02d}{self.day:02d}"

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class DailyFacts:
    """Внешние факты об изображении на дату; зерно для `HashOracle`."""
    view_count: int
    keyword: str

    def __post_init__(self) -> None:
        if self.view_count < 0:
            raise ValueError(f"view_count должен быть неотрицательным: {self.view_count}")

    @property
    def seed(self) -> bytes:
        return f"{int(self.view_count)}-{self.keyword}".encode("utf-8")


@dataclass(frozen=True)
class PermutationResult:
    """Диагностические факты выбора окна обрезки."""
    loop_x: int
    loop_y: int
    permutation_total: int
    permutation: int
    offset: int
    offset_x: int
    offset_y: int
    julian_day: int

    def as_log_extra(self) -> dict:
        return {
            "loop_x": self.loop_x,
            "loop_y": self.loop_y,
            "permutation": self.permutation,
            "offset": self.offset,
            "offset_x": self.offset_x,
            "offset_y": self.offset_y,
        }


class RunState(str, Enum):
    IDLE = "idle"
    GEOMETRY_VALIDATED = "geometry_validated"
    CROP_SELECTED = "crop_selected"
    FILTERED = "filtered"
    COMPOSED = "composed"
    WRITTEN = "written"
    FAILED = "failed"


@dataclass
class DayResult:
    """Итог обработки пары (изображение, дата)."""
    image: str
    day: DayDate
    state: RunState = RunState.IDLE
    permutation: Optional[PermutationResult] = None
    outputs: Tuple[Path, ...] = ()
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.state is RunState.WRITTEN
