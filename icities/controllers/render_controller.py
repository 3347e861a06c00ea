"""Контроллер прогона: оркестрация сервисов по парам (изображение, дата).

SOLID:
- SRP: класс управляет порядком стадий и изоляцией ошибок (без логики обработки изображений).
- DIP: зависит от сервисов как от ролей; конкретные реализации инкапсулированы.
Clean Code:
- Стадии компактны; тяжёлая логика вынесена в сервисы.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from PIL import Image

from icities.models.config_model import EngineConfig
from icities.models.day_model import DailyFacts, DayDate, DayResult, RunState
from icities.models.errors import MandalaError, MissingFacts
from icities.models.image_model import ImageData, ImageSpec
from icities.services.crop_service import CropService
from icities.services.filter_service import FilterService
from icities.services.hash_oracle import HashOracle
from icities.services.image_service import ImageService
from icities.services.mandala_service import MandalaService
from icities.services.permutation_service import permutation_space, select_permutation

logger = logging.getLogger(__name__)

FactsProvider = Callable[[str, DayDate], DailyFacts]


@dataclass
class RenderController:
    """Строит мандалы дня для всех изображений конфигурации.

    Ответственности:
    - Загрузка исходника один раз на изображение (`ImageService`).
    - Проверка геометрии один раз на изображение (`CropService`).
    - Прогон каждой даты от начала до конца в пуле потоков.
    - Изоляция ошибок: отказ одной даты не мешает остальным.
    """
    config: EngineConfig
    facts: Optional[FactsProvider] = None
    out_width: Optional[int] = None
    save_crop: bool = False
    workers: int = 1

    _image_service: ImageService = ImageService()
    _crop_service: CropService = CropService()
    _filter_service: FilterService = FilterService()
    _mandala_service: MandalaService = MandalaService()

    # ---- Public API ----
    def run(self, days: Iterable[DayDate]) -> List[DayResult]:
        """Обрабатывает все изображения конфигурации на все даты.

        Returns:
            Результаты в порядке конфигурации изображений и возрастания дат.
        """
        ordered_days = sorted(set(days))
        results: List[DayResult] = []
        with ThreadPoolExecutor(max_workers=max(1, self.workers)) as pool:
            pending: List[Tuple[DayResult, Optional[Future]]] = []
            for spec in self.config.image_list:
                image = self._prepare_image(spec, ordered_days, pending)
                if image is None:
                    continue
                for day in ordered_days:
                    placeholder = DayResult(spec.name, day)
                    pending.append((placeholder, pool.submit(self.render_day, image, spec, day)))

            for placeholder, future in pending:
                if future is None:
                    results.append(placeholder)
                    continue
                try:
                    results.append(future.result())
                except Exception as exc:
                    logger.exception("'%s' %s: unexpected failure", placeholder.image, placeholder.day,
                                     extra={"image": placeholder.image, "day": placeholder.day})
                    placeholder.state = RunState.FAILED
                    placeholder.error = exc
                    results.append(placeholder)
        return results

    def render_day(self, image: ImageData, spec: ImageSpec, day: DayDate,
                   facts: Optional[DailyFacts] = None) -> DayResult:
        """Полный прогон одной пары (изображение, дата).

        Состояния: IDLE -> GEOMETRY_VALIDATED -> CROP_SELECTED -> FILTERED ->
        COMPOSED -> WRITTEN; при любой ошибке движка FAILED и ни одного файла.
        Оракул каждый раз создаётся заново, поэтому повторный прогон даёт те же байты.
        """
        result = DayResult(spec.name, day)
        legacy = self.config.is_legacy(spec)
        try:
            self._crop_service.validate_geometry(spec, image.width, image.height)
            result.state = RunState.GEOMETRY_VALIDATED

            oracle = None
            if not legacy:
                if facts is None:
                    facts = self._resolve_facts(spec.name, day)
                oracle = HashOracle.from_facts(facts)

            permutation = select_permutation(spec, day, oracle, self.config.step_for(spec))
            result.permutation = permutation
            logger.info(
                "%s %s loopX %d, loopY %d, permutation %d, offset %d, offsetX %d, offsetY %d",
                spec.name, day, permutation.loop_x, permutation.loop_y, permutation.permutation,
                permutation.offset, permutation.offset_x, permutation.offset_y,
                extra={"image": spec.name, "day": day, **permutation.as_log_extra()},
            )
            out_width = self._crop_service.resolve_out_width(self.out_width, spec, self.config.out_width)
            window = self._crop_service.crop_window(image.pil_image, spec, permutation)
            window = self._crop_service.scale_to_half(window, out_width)
            result.state = RunState.CROP_SELECTED

            filtered = self._filter_service.apply_filters(window, spec.filter_list, oracle, legacy=legacy)
            result.state = RunState.FILTERED

            mandala = self._mandala_service.compose_mandala(filtered, legacy=legacy)
            result.state = RunState.COMPOSED

            result.outputs = self._write(spec, day, mandala, filtered)
            result.state = RunState.WRITTEN
        except (MandalaError, OSError) as exc:
            if isinstance(exc, MandalaError):
                exc.attach(spec.name, day)
            result.error = exc
            logger.error("'%s' %s failed in state %s: %s", spec.name, day, result.state.value, exc,
                         extra={"image": spec.name, "day": day, "state": result.state.value,
                                "error_kind": type(exc).__name__})
            result.state = RunState.FAILED
        return result

    # ---- Helpers ----
    def _prepare_image(self, spec: ImageSpec, days: List[DayDate],
                       pending: List[Tuple[DayResult, Optional[Future]]]) -> Optional[ImageData]:
        """Загружает исходник и проверяет геометрию изображения.

        Ошибка здесь касается изображения целиком: все его даты помечаются FAILED.
        """
        try:
            image = self._image_service.load_image(spec.name, self.config.src_path / spec.file_name)
            self._crop_service.validate_geometry(spec, image.width, image.height)
            permutation_space(spec.crop_width, spec.crop_height, spec.rectangle, self.config.step_for(spec))
        except (MandalaError, OSError, ValueError) as exc:
            if isinstance(exc, MandalaError):
                exc.attach(spec.name)
            logger.error("'%s' skipped: %s", spec.name, exc,
                         extra={"image": spec.name, "error_kind": type(exc).__name__})
            for day in days:
                pending.append((DayResult(spec.name, day, state=RunState.FAILED, error=exc), None))
            return None
        return image

    def _resolve_facts(self, name: str, day: DayDate) -> DailyFacts:
        if self.facts is None:
            raise MissingFacts("не задан источник фактов дня", image=name, day=day)
        return self.facts(name, day)

    def _write(self, spec: ImageSpec, day: DayDate,
               mandala: Image.Image, filtered: Image.Image) -> Tuple[Path, ...]:
        dst = self.config.dst_path
        written = [self._image_service.save_collage(
            mandala, self._image_service.collage_path(dst, spec.name, day))]
        if self.save_crop:
            try:
                written.append(self._image_service.save_crop(
                    filtered, self._image_service.crop_path(dst, spec.name, day)))
            except OSError:
                written[0].unlink(missing_ok=True)
                raise
        return tuple(written)


def summarize(results: Iterable[DayResult]) -> Dict[str, int]:
    counts = {"written": 0, "failed": 0}
    for result in results:
        counts["written" if result.ok else "failed"] += 1
    return counts
