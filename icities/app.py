"""Сборка запуска: конфигурация, факты, каталоги, блокировка и контроллер."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from icities.controllers.render_controller import RenderController, summarize
from icities.models.day_model import DailyFacts, DayDate, DayResult
from icities.services.config_service import load_config
from icities.services.facts_service import FactsService
from icities.services.workspace_service import DEFAULT_LOCK_FILE, prepare_destination, process_lock

logger = logging.getLogger(__name__)

PROJECT = "Imaginary Cities Image Engine"
VERSION = "0.5.0"


class ImaginaryCitiesApp:
    def __init__(
        self,
        config_path: str | Path,
        days: Sequence[DayDate],
        out_width: Optional[int] = None,
        workers: int = 1,
        save_crop: bool = False,
        wipe_destination: bool = False,
        facts_override: Optional[DailyFacts] = None,
        lock_path: str | Path = DEFAULT_LOCK_FILE,
    ) -> None:
        self.config = load_config(config_path)
        self.days = list(days) or [DayDate.today_utc()]
        self.wipe_destination = wipe_destination
        self.lock_path = Path(lock_path)

        if facts_override is None and self.config.facts_path is not None:
            facts = FactsService.from_file(self.config.facts_path)
        else:
            facts = FactsService(override=facts_override)

        self._controller = RenderController(
            config=self.config,
            facts=facts,
            out_width=out_width,
            save_crop=save_crop,
            workers=workers,
        )
        self.results: List[DayResult] = []

    def run(self) -> int:
        """Выполняет прогон; возвращает код выхода процесса.

        0 — все даты записаны или другой процесс уже работает, 1 — есть отказы.
        """
        with process_lock(self.lock_path) as acquired:
            if not acquired:
                return 0
            prepare_destination(self.config.dst_path, wipe=self.wipe_destination)
            self.results = self._controller.run(self.days)

        counts = summarize(self.results)
        logger.info("%d written, %d failed", counts["written"], counts["failed"])
        return 1 if counts["failed"] else 0
