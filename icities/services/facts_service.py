"""Факты дня (просмотры и ключевое слово) из YAML-истории.

Формат файла::

    facts:
      city:
        - {day: 20240101, views: 1200, keyword: harbour}
        - {day: 20240110, views: 1500, keyword: bridge}

Между записями просмотры интерполируются линейно, ключевое слово берётся из
более ранней записи. За пределами истории используется ближайшая запись.
"""
from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from icities.models.day_model import DailyFacts, DayDate
from icities.models.errors import ConfigError, MissingFacts

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FactRecord:
    ordinal: int
    view_count: int
    keyword: str


class FactsService:
    def __init__(self, history: Optional[Mapping[str, List[FactRecord]]] = None,
                 override: Optional[DailyFacts] = None) -> None:
        self._history: Dict[str, List[FactRecord]] = {
            name: sorted(records, key=lambda r: r.ordinal) for name, records in (history or {}).items()
        }
        self._override = override

    @classmethod
    def from_file(cls, path: str | Path, override: Optional[DailyFacts] = None) -> FactsService:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Файл фактов не найден: {path}")
        with open(path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"некорректный YAML в {path}: {exc}") from exc
        return cls(cls.parse_history(data), override=override)

    @staticmethod
    def parse_history(data: Any) -> Dict[str, List[FactRecord]]:
        if not isinstance(data, Mapping) or not isinstance(data.get("facts", {}), Mapping):
            raise ConfigError("файл фактов должен содержать словарь 'facts'")
        history: Dict[str, List[FactRecord]] = {}
        for name, rows in (data.get("facts") or {}).items():
            records = []
            for row in rows or ():
                try:
                    day = DayDate.parse(str(row["day"]))
                    views = row["views"]
                    keyword = row["keyword"]
                except (KeyError, TypeError, ValueError) as exc:
                    raise ConfigError(f"некорректная запись фактов {row!r}", image=str(name)) from exc
                # keyword входит в затравку оракула дословно; без кавычек YAML делает из no/on/12 bool или int
                if isinstance(views, bool) or not isinstance(views, int):
                    raise ConfigError(f"'views' должен быть целым числом {row!r}", image=str(name))
                if not isinstance(keyword, str):
                    raise ConfigError(f"'keyword' должен быть строкой (в кавычках) {row!r}", image=str(name))
                if views < 0:
                    raise ConfigError(f"отрицательное число просмотров {row!r}", image=str(name))
                records.append(FactRecord(day.to_date().toordinal(), views, keyword))
            history[str(name)] = records
        return history

    def resolve(self, name: str, day: DayDate) -> DailyFacts:
        """Факты для изображения на дату.

        Raises:
            MissingFacts: если для изображения нет ни одной записи.
        """
        if self._override is not None:
            return self._override

        records = self._history.get(name)
        if not records:
            raise MissingFacts("нет истории просмотров", image=name, day=day)

        ordinal = day.to_date().toordinal()
        keys = [r.ordinal for r in records]
        idx = bisect.bisect_left(keys, ordinal)
        if idx < len(records) and records[idx].ordinal == ordinal:
            hit = records[idx]
            return DailyFacts(hit.view_count, hit.keyword)
        if idx == 0:
            first = records[0]
            return DailyFacts(first.view_count, first.keyword)
        if idx == len(records):
            last = records[-1]
            return DailyFacts(last.view_count, last.keyword)

        before, after = records[idx - 1], records[idx]
        span = after.ordinal - before.ordinal
        delta = (after.view_count - before.view_count) * (ordinal - before.ordinal)
        views = before.view_count + delta // span
        logger.debug("interpolated views for '%s' %s: %d", name, day, views)
        return DailyFacts(views, before.keyword)

    __call__ = resolve
