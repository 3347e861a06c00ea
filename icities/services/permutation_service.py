"""Выбор окна обрезки на дату.

Дата переводится в номер юлианского дня, номер дня берётся по модулю числа
перестановок, к грубому смещению добавляется дрожание из первого байта
оракула (0..7 px).
"""
from __future__ import annotations

from typing import Optional

from icities.models.config_model import DEFAULT_PERMUTATION_STEP
from icities.models.day_model import DayDate, PermutationResult
from icities.models.errors import DegenerateGeometry
from icities.models.image_model import ImageSpec
from icities.services.hash_oracle import HashOracle

JITTER_MASK = 0x07


def julian_day(year: int, month: int, day: int) -> int:
    """Номер юлианского дня (полдень) для даты пролептического григорианского календаря.

    2000-01-01 -> 2451545. Не зависит от часового пояса и времени запуска.
    """
    a = (14 - month) // 12
    y = year + 4800 - a
    m = month + 12 * a - 3
    return day + (153 * m + 2) // 5 + 365 * y + y // 4 - y // 100 + y // 400 - 32045


def _loops(crop_width: int, crop_height: int, rectangle: int):
    return crop_width - rectangle + 1, crop_height - rectangle + 1


def permutation_space(
    crop_width: int,
    crop_height: int,
    rectangle: int,
    permutation_step: int = DEFAULT_PERMUTATION_STEP,
) -> int:
    """Число перестановок `floor(loopX * loopY / step)`.

    Raises:
        DegenerateGeometry: если шаг не положителен или пространство пусто.
    """
    if permutation_step <= 0:
        raise DegenerateGeometry(f"permutationStep должен быть положительным: {permutation_step}")
    loop_x, loop_y = _loops(crop_width, crop_height, rectangle)
    total = (loop_x * loop_y) // permutation_step
    if total <= 0:
        raise DegenerateGeometry(
            f"пустое пространство перестановок: loopX={loop_x}, loopY={loop_y}, step={permutation_step}"
        )
    return total


def compute_permutation(
    crop_width: int,
    crop_height: int,
    rectangle: int,
    julian: int,
    jitter_byte: int,
    permutation_step: int = DEFAULT_PERMUTATION_STEP,
) -> PermutationResult:
    """Смещение окна внутри области обрезки.

    Args:
        crop_width, crop_height, rectangle: Уже проверенная геометрия.
        julian: Номер юлианского дня.
        jitter_byte: Первый байт оракула; используются младшие 3 бита.
        permutation_step: Делитель пространства смещений.

    Raises:
        DegenerateGeometry: если пространство перестановок пусто.
    """
    total = permutation_space(crop_width, crop_height, rectangle, permutation_step)
    loop_x, loop_y = _loops(crop_width, crop_height, rectangle)
    area = loop_x * loop_y

    permutation = julian % total
    offset = (area // total) * permutation + (jitter_byte & JITTER_MASK)
    # only reachable with permutation_step < 8
    offset %= area
    offset_x = offset % loop_x
    offset_y = (offset - offset_x) // loop_x
    return PermutationResult(
        loop_x=loop_x,
        loop_y=loop_y,
        permutation_total=total,
        permutation=permutation,
        offset=offset,
        offset_x=offset_x,
        offset_y=offset_y,
        julian_day=julian,
    )


def compute_legacy_permutation(
    crop_width: int,
    crop_height: int,
    rectangle: int,
    julian: int,
    permutation_step: int,
) -> PermutationResult:
    """Арифметика ранней версии: без дрожания, с дробным делением.

    Остаток берётся от целой части числа перестановок, смещение усекается.
    """
    permutation_space(crop_width, crop_height, rectangle, permutation_step)
    loop_x, loop_y = _loops(crop_width, crop_height, rectangle)
    area = loop_x * loop_y
    total = area / permutation_step

    permutation = julian % int(total)
    offset_float = (area / total) * permutation
    offset = int(offset_float)
    offset_x = offset % loop_x
    offset_y = int((offset_float - offset_x) / loop_x)
    return PermutationResult(
        loop_x=loop_x,
        loop_y=loop_y,
        permutation_total=int(total),
        permutation=permutation,
        offset=offset,
        offset_x=offset_x,
        offset_y=offset_y,
        julian_day=julian,
    )


def select_permutation(
    spec: ImageSpec,
    day: DayDate,
    oracle: Optional[HashOracle],
    permutation_step: int = DEFAULT_PERMUTATION_STEP,
) -> PermutationResult:
    """Смещение окна для изображения на дату.

    С оракулом потребляет ровно один байт (первый за день). Без оракула
    работает арифметика ранней версии.
    """
    julian = julian_day(day.year, day.month, day.day)
    if oracle is None:
        return compute_legacy_permutation(
            spec.crop_width, spec.crop_height, spec.rectangle, julian, permutation_step
        )
    return compute_permutation(
        spec.crop_width,
        spec.crop_height,
        spec.rectangle,
        julian,
        oracle.next_byte(),
        permutation_step,
    )
