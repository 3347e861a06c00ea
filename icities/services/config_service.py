"""Загрузка YAML-конфигурации движка.

Ключи файла в camelCase (как в исходной конфигурации проекта), модели в snake_case.
"""
from __future__ import annotations

import numbers
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from icities.models.config_model import DEFAULT_OUT_WIDTH, DEFAULT_PERMUTATION_STEP, EngineConfig
from icities.models.errors import ConfigError
from icities.models.image_model import FilterSpec, ImageSpec, freeze_filter

DEFAULT_CONFIG_NAME = "imaginary-cities.yaml"

_IMAGE_INT_KEYS = {
    "cropLeft": "crop_left",
    "cropTop": "crop_top",
    "cropWidth": "crop_width",
    "cropHeight": "crop_height",
    "rectangle": "rectangle",
}


def _int(value: Any, key: str, owner: Optional[str]) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{key}' должен быть целым числом, получено {value!r}", image=owner)
    return value


def _optional_int(raw: Mapping[str, Any], key: str, owner: Optional[str]):
    if raw.get(key) is None:
        return None
    return _int(raw[key], key, owner)


def _out_width(raw: Mapping[str, Any], owner: Optional[str]):
    value = _optional_int(raw, "outWidth", owner)
    if value is not None and (value <= 0 or value % 2):
        raise ConfigError(f"'outWidth' должен быть положительным и чётным, получено {value!r}", image=owner)
    return value


def _optional_bool(raw: Mapping[str, Any], key: str, owner: Optional[str]):
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigError(f"'{key}' должен быть true/false, получено {value!r}", image=owner)
    return value


def parse_filter(raw: Any, owner: str) -> FilterSpec:
    """Описание фильтра: строковый `type` и числовые остальные параметры."""
    if not isinstance(raw, Mapping):
        raise ConfigError(f"фильтр должен быть словарём, получено {raw!r}", image=owner)
    kind = raw.get("type")
    if not isinstance(kind, str) or not kind:
        raise ConfigError(f"у фильтра нет строкового 'type': {dict(raw)!r}", image=owner)
    for key, value in raw.items():
        if not isinstance(key, str):
            raise ConfigError(f"имя параметра фильтра '{kind}' должно быть строкой, получено {key!r}", image=owner)
        if key == "type":
            continue
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise ConfigError(f"параметр '{key}' фильтра '{kind}' должен быть числом", image=owner)
    return freeze_filter(raw)


def parse_image(raw: Any) -> ImageSpec:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"описание изображения должно быть словарём, получено {raw!r}")
    name = raw.get("name")
    if not isinstance(name, str) or not name:
        raise ConfigError(f"у изображения нет 'name': {dict(raw)!r}")
    file_name = raw.get("fileName")
    if not isinstance(file_name, str) or not file_name:
        raise ConfigError("нет 'fileName'", image=name)

    fields: Dict[str, Any] = {}
    for key, attr in _IMAGE_INT_KEYS.items():
        if key not in raw:
            raise ConfigError(f"нет '{key}'", image=name)
        fields[attr] = _int(raw[key], key, name)

    filters: List[FilterSpec] = [parse_filter(f, name) for f in raw.get("filterList") or ()]
    return ImageSpec(
        name=name,
        file_name=file_name,
        filter_list=tuple(filters),
        out_width=_out_width(raw, name),
        permutation_step=_optional_int(raw, "permutationStep", name),
        legacy=_optional_bool(raw, "legacy", name),
        **fields,
    )


def parse_config(data: Any, base_dir: Path) -> EngineConfig:
    """Строит `EngineConfig` из уже разобранного YAML; пути разрешаются от `base_dir`."""
    if not isinstance(data, Mapping):
        raise ConfigError("корень конфигурации должен быть словарём")

    images = [parse_image(item) for item in data.get("imageList") or ()]
    names = [spec.name for spec in images]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigError(f"повторяющиеся имена изображений: {', '.join(duplicates)}")

    out_width = _out_width(data, None)
    step = _optional_int(data, "permutationStep", None)
    legacy = _optional_bool(data, "legacy", None)
    facts = data.get("factsFile")

    return EngineConfig(
        src_path=base_dir / data.get("imageSrcPath", "image/src"),
        dst_path=base_dir / data.get("imageDstPath", "image/dst"),
        out_width=DEFAULT_OUT_WIDTH if out_width is None else out_width,
        permutation_step=DEFAULT_PERMUTATION_STEP if step is None else step,
        legacy=bool(legacy),
        facts_path=None if facts is None else base_dir / facts,
        image_list=tuple(images),
    )


def load_config(config_path: str | Path) -> EngineConfig:
    """Читает YAML-конфигурацию.

    Raises:
        FileNotFoundError: если файла нет.
        ConfigError: если содержимое некорректно.
    """
    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Файл конфигурации не найден: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"некорректный YAML в {path}: {exc}") from exc

    return parse_config(data, path.parent)
