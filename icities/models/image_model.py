"""Модели данных для изображений.

Принципы:
- SRP: только структура данных, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from PIL import Image

FilterSpec = Mapping[str, Any]


def freeze_filter(raw: Mapping[str, Any]) -> FilterSpec:
    """Возвращает копию описания фильтра, доступную только для чтения."""
    return MappingProxyType(dict(raw))


@dataclass(frozen=True)
class ImageSpec:
    """Статическая конфигурация одного исходного изображения.

    Fields:
        name: Идентификатор изображения (используется в имени выходного файла).
        file_name: Имя файла в каталоге исходников.
        crop_left, crop_top: Левый верхний угол области обрезки, px.
        crop_width, crop_height: Размер области обрезки, px (кратно 8).
        rectangle: Сторона квадратного окна дня, px (кратно 8).
        filter_list: Упорядоченный список фильтров.
        out_width: Переопределение ширины результата, если задано.
        permutation_step: Делитель пространства перестановок, если задан.
        legacy: Режим совместимости с ранней версией (None = глобальное значение).
    """
    name: str
    file_name: str
    crop_left: int
    crop_top: int
    crop_width: int
    crop_height: int
    rectangle: int
    filter_list: Tuple[FilterSpec, ...] = field(default_factory=tuple)
    out_width: Optional[int] = None
    permutation_step: Optional[int] = None
    legacy: Optional[bool] = None


@dataclass(frozen=True)
class ImageData:
    """Загруженный исходник в оттенках серого.

    Fields:
        name: Идентификатор изображения из конфигурации.
        path: Путь к исходному файлу.
        pil_image: Изображение PIL в режиме "L"; только для чтения.
        width: Ширина, px.
        height: Высота, px.
        size_bytes: Размер файла, если доступен.
    """
    name: str
    path: Path
    pil_image: Image.Image
    width: int
    height: int
    size_bytes: Optional[int]
