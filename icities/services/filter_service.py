"""Фильтры окна дня и их возмущение байтами оракула.

Принципы:
- SRP: сервис знает фильтры и правило возмущения, но не геометрию и не компоновку.
- OCP: новый фильтр = метод `_filter_<type>` + запись в `FILTER_DEFAULTS`.
Clean Code:
- Каждый фильтр чистый: на вход изображение "L", на выход новое изображение.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

import numpy as np
from PIL import Image, ImageFilter

from icities.models.errors import OracleExhausted, PerturbationExhausted, UnsupportedFilter
from icities.models.image_model import FilterSpec
from icities.services.hash_oracle import HashOracle

logger = logging.getLogger(__name__)

TYPE_KEY = "type"

# Параметры по умолчанию, если в описании фильтра их нет.
FILTER_DEFAULTS: Dict[str, Dict[str, float]] = {
    "contrast": {},
    "unsharpmask": {"stddev": 2.0, "scale": 1.0},
    "gaussian": {"stddev": 1.0},
    "autolevels": {"lsat": 0.02, "usat": 0.02},
    "postlevels": {"levels": 10},
    "mosaic": {"size": 20},
    "hardinvert": {},
}

REQUIRED_PARAMS: Dict[str, tuple] = {
    "contrast": ("intensity",),
}

LEGACY_FILTERS = ("unsharpmask", "contrast")


def perturb_value(value: float, byte: int) -> float:
    """Сдвигает значение на ±0..10% по байту: старший бит = знак, `byte % 11` = проценты."""
    sign = 1 if byte & 0x80 else -1
    magnitude = byte % 11
    return value + value * sign * magnitude / 100


class FilterService:
    # ---------- Возмущение ----------
    def perturb_filter(self, spec: FilterSpec, oracle: HashOracle) -> Dict[str, Any]:
        """Возвращает рабочую копию фильтра с возмущёнными параметрами.

        Параметры обходятся в лексикографическом порядке, `type` не трогается,
        на каждый параметр уходит один байт оракула. Исходное описание не меняется.

        Raises:
            PerturbationExhausted: если оракулу не хватило байт.
        """
        working = dict(spec)
        for name in sorted(k for k in working if k != TYPE_KEY):
            try:
                byte = oracle.next_byte()
            except OracleExhausted as exc:
                raise PerturbationExhausted(
                    f"не хватает байт дайджеста для параметра '{name}' фильтра '{spec.get(TYPE_KEY)}'"
                ) from exc
            working[name] = perturb_value(float(working[name]), byte)
        return working

    # ---------- Применение ----------
    def apply(self, image: Image.Image, params: Mapping[str, Any]) -> Image.Image:
        """Применяет фильтр `params['type']` с уже готовыми параметрами."""
        kind = params.get(TYPE_KEY)
        method = getattr(self, f"_filter_{kind}", None) if isinstance(kind, str) else None
        if method is None or kind not in FILTER_DEFAULTS:
            raise UnsupportedFilter(f"неизвестный тип фильтра: {kind!r}")
        required = REQUIRED_PARAMS.get(kind, ())
        for name in required:
            if name not in params:
                raise UnsupportedFilter(f"фильтру '{kind}' нужен параметр '{name}'")
        known = set(FILTER_DEFAULTS[kind]) | set(required)
        unknown = sorted(k for k in params if k != TYPE_KEY and k not in known)
        if unknown:
            raise UnsupportedFilter(f"фильтр '{kind}' не знает параметров: {', '.join(unknown)}")
        merged = dict(FILTER_DEFAULTS[kind])
        merged.update({k: v for k, v in params.items() if k != TYPE_KEY})
        return method(self._to_gray(image), **merged)

    def apply_filters(
        self,
        image: Image.Image,
        filter_list: Iterable[FilterSpec],
        oracle: Optional[HashOracle],
        legacy: bool = False,
    ) -> Image.Image:
        """Применяет фильтры в порядке списка.

        С оракулом каждый фильтр сначала возмущается; в режиме совместимости
        (`legacy=True`, оракула нет) параметры берутся как есть и разрешены
        только `unsharpmask` и `contrast`.
        """
        result = image
        for spec in filter_list:
            if legacy:
                if spec.get(TYPE_KEY) not in LEGACY_FILTERS:
                    raise UnsupportedFilter(f"режим совместимости не знает фильтр {spec.get(TYPE_KEY)!r}")
                params: Mapping[str, Any] = spec
            else:
                if oracle is None:
                    raise ValueError("для возмущения фильтров нужен HashOracle")
                if spec.get(TYPE_KEY) not in FILTER_DEFAULTS:
                    raise UnsupportedFilter(f"неизвестный тип фильтра: {spec.get(TYPE_KEY)!r}")
                params = self.perturb_filter(spec, oracle)
            logger.debug("filter %s", params)
            result = self.apply(result, params)
        return result

    # ---------- Вспомогательные функции ----------
    def _to_gray(self, image: Image.Image) -> Image.Image:
        if image.mode == "L":
            return image
        return image.convert("L")

    def _to_image(self, arr: np.ndarray) -> Image.Image:
        out = np.clip(np.rint(arr), 0, 255).astype(np.uint8)
        return Image.fromarray(out)

    def _blur(self, image: Image.Image, stddev: float) -> Image.Image:
        if stddev <= 0:
            return image.copy()
        return image.filter(ImageFilter.GaussianBlur(radius=float(stddev)))

    # ---------- Фильтры ----------
    def _filter_contrast(self, image: Image.Image, intensity: float) -> Image.Image:
        """Умножение на `intensity` с насыщением; дробная часть отбрасывается."""
        arr = np.asarray(image, dtype=np.float64)
        out = np.clip(arr * float(intensity), 0, 255).astype(np.uint8)
        return Image.fromarray(out)

    def _filter_unsharpmask(self, image: Image.Image, stddev: float, scale: float) -> Image.Image:
        """Нерезкое маскирование: `v + (v - blur(v)) * scale`."""
        arr = np.asarray(image, dtype=np.float64)
        blurred = np.asarray(self._blur(image, stddev), dtype=np.float64)
        return self._to_image(arr + (arr - blurred) * float(scale))

    def _filter_gaussian(self, image: Image.Image, stddev: float) -> Image.Image:
        return self._blur(image, stddev)

    def _filter_autolevels(self, image: Image.Image, lsat: float, usat: float) -> Image.Image:
        """
        Растягивает гистограмму: доли `lsat` самых тёмных и `usat` самых светлых
        пикселей уходят в насыщение, остальное линейно на [0..255].
        """
        arr = np.asarray(image, dtype=np.uint8)
        total = arr.size
        if total == 0:
            return image.copy()
        hist = np.bincount(arr.flatten(), minlength=256)
        cumsum = np.cumsum(hist)
        lsat = float(np.clip(lsat, 0.0, 1.0))
        usat = float(np.clip(usat, 0.0, 1.0))
        low = int(np.searchsorted(cumsum, lsat * total, side="right"))
        high = int(np.searchsorted(cumsum, (1.0 - usat) * total, side="left"))
        low = min(low, 255)
        high = min(high, 255)
        if high <= low:
            return image.copy()
        stretched = (arr.astype(np.float64) - low) * (255.0 / (high - low))
        return self._to_image(stretched)

    def _filter_postlevels(self, image: Image.Image, levels: float) -> Image.Image:
        """Постеризация до `levels` равномерных уровней серого."""
        n = max(2, int(round(levels)))
        arr = np.asarray(image, dtype=np.int64)
        bins = np.minimum(arr * n // 256, n - 1)
        return self._to_image(bins * (255.0 / (n - 1)))

    def _filter_mosaic(self, image: Image.Image, size: float) -> Image.Image:
        """Каждый блок `size × size` заменяется своим средним."""
        s = max(1, int(round(size)))
        arr = np.asarray(image, dtype=np.float64)
        out = np.empty_like(arr)
        h, w = arr.shape
        for y in range(0, h, s):
            for x in range(0, w, s):
                block = arr[y:y + s, x:x + s]
                out[y:y + s, x:x + s] = block.mean()
        return self._to_image(out)

    def _filter_hardinvert(self, image: Image.Image) -> Image.Image:
        arr = np.asarray(image, dtype=np.uint8)
        return Image.fromarray(255 - arr)
