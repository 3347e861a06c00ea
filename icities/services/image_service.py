"""Загрузка исходников с диска и запись результатов.

Принципы:
- SRP: класс отвечает только за файловый ввод-вывод изображений.
- LSP/ISP: возвращает `ImageData` с предсказуемыми полями; интерфейс узкий и конкретный.
"""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from icities.models.day_model import DayDate
from icities.models.image_model import ImageData

logger = logging.getLogger(__name__)

JPEG_QUALITY = 75
TIFF_COMPRESSION = "tiff_lzw"


class ImageService:
    def load_image(self, name: str, file_path: str | Path) -> ImageData:
        """Загружает изображение с диска и сразу переводит в оттенки серого.

        Args:
            name: Идентификатор изображения из конфигурации.
            file_path: Путь до файла изображения.

        Returns:
            `ImageData` c `PIL.Image.Image` в режиме "L", размерами и размером файла.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            ValueError: если файл не распознан как изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")

        try:
            with Image.open(path) as raw:
                pil_image = self.to_grayscale(raw)
        except UnidentifiedImageError as exc:
            raise ValueError(f"Файл не является изображением: {path}") from exc

        width, height = pil_image.size
        try:
            size_bytes: Optional[int] = path.stat().st_size
        except OSError:
            size_bytes = None

        logger.debug("loaded %s (%dx%d) for '%s'", path, width, height, name)
        return ImageData(
            name=name,
            path=path,
            pil_image=pil_image,
            width=width,
            height=height,
            size_bytes=size_bytes,
        )

    def to_grayscale(self, image: Image.Image) -> Image.Image:
        """
        Преобразование изображения в оттенки серого (8-бит, L, ITU-R 601-2).
        Альфа-канал отбрасывается, цвет прозрачных пикселей сохраняется.
        """
        if image.mode == "L":
            image.load()
            return image.copy()
        if image.mode == "LA":
            return image.getchannel("L")
        if image.mode in ("RGBA", "P"):
            image = image.convert("RGBA").convert("RGB")
        return image.convert("L")

    # ---------- Запись ----------
    @staticmethod
    def collage_path(dst_path: Path, name: str, day: DayDate) -> Path:
        return dst_path / f"{name}-collage-{day.label}.tif"

    @staticmethod
    def crop_path(dst_path: Path, name: str, day: DayDate) -> Path:
        return dst_path / f"{name}-{day.label}.jpg"

    def save_collage(self, image: Image.Image, path: Path) -> Path:
        return self._save_atomic(image, path, format="TIFF", compression=TIFF_COMPRESSION)

    def save_crop(self, image: Image.Image, path: Path) -> Path:
        return self._save_atomic(image, path, format="JPEG", quality=JPEG_QUALITY)

    def _save_atomic(self, image: Image.Image, path: Path, **params) -> Path:
        """Пишет во временный файл рядом с целевым и переименовывает.

        Частично записанный файл никогда не появляется под итоговым именем.
        """
        path = Path(path)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as fh:
                image.save(fh, **params)
            os.chmod(tmp_name, 0o640)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug("wrote %s", path)
        return path
