"""Проверка геометрии и вырезание окна дня.

Принципы:
- SRP: только геометрия; загрузка и перевод в оттенки серого живут в `ImageService`.
"""
from __future__ import annotations

from typing import Optional

from PIL import Image

from icities.models.day_model import PermutationResult
from icities.models.errors import InvalidGeometry
from icities.models.image_model import ImageSpec

ALIGNMENT = 8


class CropService:
    def validate_geometry(self, spec: ImageSpec, width: int, height: int) -> None:
        """Проверяет ограничения области обрезки для исходника `width × height`.

        Raises:
            InvalidGeometry: с именем нарушенного ограничения.
        """
        if spec.crop_width % ALIGNMENT != 0:
            raise InvalidGeometry(f"cropWidth must be divisible by {ALIGNMENT}", image=spec.name)
        if spec.crop_height % ALIGNMENT != 0:
            raise InvalidGeometry(f"cropHeight must be divisible by {ALIGNMENT}", image=spec.name)
        if spec.rectangle % ALIGNMENT != 0:
            raise InvalidGeometry(f"rectangle must be divisible by {ALIGNMENT}", image=spec.name)
        if spec.crop_left < 0 or spec.crop_top < 0:
            raise InvalidGeometry("cropLeft and cropTop must be >= 0", image=spec.name)
        if spec.rectangle <= 0:
            raise InvalidGeometry("rectangle must be > 0", image=spec.name)
        if spec.crop_left + spec.crop_width > width:
            raise InvalidGeometry("cropLeft + cropWidth must be <= image width", image=spec.name)
        if spec.crop_top + spec.crop_height > height:
            raise InvalidGeometry("cropTop + cropHeight must be <= image height", image=spec.name)
        if spec.rectangle > spec.crop_width:
            raise InvalidGeometry("rectangle must be <= cropWidth", image=spec.name)
        if spec.rectangle > spec.crop_height:
            raise InvalidGeometry("rectangle must be <= cropHeight", image=spec.name)

    def crop_window(self, source: Image.Image, spec: ImageSpec, permutation: PermutationResult) -> Image.Image:
        """Вырезает квадрат `rectangle × rectangle` со смещением дня. Исходник не меняется."""
        left = spec.crop_left + permutation.offset_x
        top = spec.crop_top + permutation.offset_y
        return source.crop((left, top, left + spec.rectangle, top + spec.rectangle))

    def scale_to_half(self, image: Image.Image, out_width: int) -> Image.Image:
        """Масштабирует квадратное окно до `out_width / 2` (Lanczos)."""
        side = out_width // 2
        if side <= 0:
            raise InvalidGeometry(f"outWidth слишком мал: {out_width}")
        if image.size == (side, side):
            return image.copy()
        return image.resize((side, side), Image.LANCZOS)

    @staticmethod
    def resolve_out_width(override: Optional[int], spec: ImageSpec, default: int) -> int:
        """Первое заданное значение: параметр запуска, изображение, общее по умолчанию."""
        for value in (override, spec.out_width, default):
            if value is not None:
                return int(value)
        raise InvalidGeometry("outWidth не задан", image=spec.name)
