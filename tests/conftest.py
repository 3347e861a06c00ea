"""Общие фикстуры: синтетические исходники и конфигурации во временных каталогах."""
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from icities.models.config_model import EngineConfig
from icities.models.day_model import DailyFacts
from icities.models.errors import OracleExhausted
from icities.models.image_model import ImageSpec, freeze_filter


class FixedOracle:
    """Оракул с заранее заданными байтами."""

    def __init__(self, values):
        self._values = list(values)
        self.drawn = 0

    def next_byte(self):
        if self.drawn >= len(self._values):
            raise OracleExhausted("fixed oracle exhausted")
        value = self._values[self.drawn]
        self.drawn += 1
        return value


def make_spec(**overrides) -> ImageSpec:
    fields = dict(
        name="city",
        file_name="city.png",
        crop_left=8,
        crop_top=16,
        crop_width=64,
        crop_height=64,
        rectangle=32,
        filter_list=(
            freeze_filter({"type": "unsharpmask", "stddev": 2, "scale": 1.5}),
            freeze_filter({"type": "contrast", "intensity": 1.1}),
        ),
    )
    fields.update(overrides)
    return ImageSpec(**fields)


@pytest.fixture
def source_rgb() -> Image.Image:
    rng = np.random.default_rng(1234)
    arr = rng.integers(0, 256, size=(120, 100, 3), dtype=np.uint8)
    return Image.fromarray(arr)


@pytest.fixture
def workspace(tmp_path: Path, source_rgb: Image.Image):
    src = tmp_path / "src"
    dst = tmp_path / "dst"
    src.mkdir()
    dst.mkdir()
    source_rgb.save(src / "city.png")
    return src, dst


@pytest.fixture
def engine_config(workspace) -> EngineConfig:
    src, dst = workspace
    return EngineConfig(src_path=src, dst_path=dst, out_width=64, image_list=(make_spec(),))


@pytest.fixture
def facts() -> DailyFacts:
    return DailyFacts(view_count=15210, keyword="lighthouse")


@pytest.fixture
def fixed_oracle():
    return FixedOracle
