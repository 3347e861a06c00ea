"""Глобальная конфигурация движка."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from icities.models.image_model import ImageSpec

DEFAULT_OUT_WIDTH = 1024
DEFAULT_PERMUTATION_STEP = 8


@dataclass(frozen=True)
class EngineConfig:
    """Неизменяемая конфигурация одного запуска.

    Fields:
        out_width: Общая ширина результата по умолчанию, px.
        permutation_step: Общий делитель пространства перестановок.
        legacy: Режим совместимости с ранней версией для всех изображений.
        src_path: Каталог исходных изображений.
        dst_path: Каталог результатов.
        facts_path: YAML с историей просмотров/ключевых слов (необязателен).
        image_list: Описания изображений в порядке конфигурации.
    """
    src_path: Path
    dst_path: Path
    out_width: int = DEFAULT_OUT_WIDTH
    permutation_step: int = DEFAULT_PERMUTATION_STEP
    legacy: bool = False
    facts_path: Optional[Path] = None
    image_list: Tuple[ImageSpec, ...] = field(default_factory=tuple)

    def is_legacy(self, spec: ImageSpec) -> bool:
        return self.legacy if spec.legacy is None else spec.legacy

    def step_for(self, spec: ImageSpec) -> int:
        return self.permutation_step if spec.permutation_step is None else spec.permutation_step
