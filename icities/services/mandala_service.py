"""Компоновка мандалы: четыре зеркальные копии и наложение повёрнутой копии на 50%."""
from __future__ import annotations

import numpy as np
from PIL import Image, ImageOps


class MandalaService:
    def compose_quadrants(self, image: Image.Image) -> Image.Image:
        """
        Холст `2W × 2W`: оригинал в (0,0), отражение по горизонтали в (W,0),
        по вертикали в (0,W), по обеим осям в (W,W). Прямое копирование пикселей.
        """
        w, h = image.size
        canvas = Image.new("L", (w * 2, h * 2), color=0)
        canvas.paste(image, (0, 0))
        canvas.paste(ImageOps.mirror(image), (w, 0))
        canvas.paste(ImageOps.flip(image), (0, h))
        canvas.paste(ImageOps.flip(ImageOps.mirror(image)), (w, h))
        return canvas

    def compose_legacy_quadrants(self, image: Image.Image) -> Image.Image:
        """Раскладка ранней версии: h в (W,0), v в (W,W), h в (0,W)."""
        w, h = image.size
        mirrored = ImageOps.mirror(image)
        canvas = Image.new("L", (w * 2, h * 2), color=0)
        canvas.paste(image, (0, 0))
        canvas.paste(mirrored, (w, 0))
        canvas.paste(ImageOps.flip(image), (w, h))
        canvas.paste(mirrored, (0, h))
        return canvas

    def blend_rotated(self, canvas: Image.Image) -> Image.Image:
        """
        Поворачивает весь холст на 90° по часовой стрелке и накладывает на
        исходный с непрозрачностью 0.5: `(a + b + 1) // 2` (округление к ближайшему).
        """
        rotated = canvas.transpose(Image.Transpose.ROTATE_270)
        a = np.asarray(canvas, dtype=np.uint16)
        b = np.asarray(rotated, dtype=np.uint16)
        out = ((a + b + 1) // 2).astype(np.uint8)
        return Image.fromarray(out)

    def compose_mandala(self, image: Image.Image, legacy: bool = False) -> Image.Image:
        if image.size[0] != image.size[1]:
            raise ValueError(f"ожидается квадратное изображение, получено {image.size}")
        if image.mode != "L":
            image = image.convert("L")
        if legacy:
            canvas = self.compose_legacy_quadrants(image)
        else:
            canvas = self.compose_quadrants(image)
        return self.blend_rotated(canvas)
