"""
Тесты проверки геометрии, вырезания окна и масштабирования.
"""
import numpy as np
import pytest
from PIL import Image

from icities.models.day_model import PermutationResult
from icities.models.errors import InvalidGeometry
from icities.services.crop_service import CropService
from tests.conftest import make_spec


@pytest.fixture
def service() -> CropService:
    return CropService()


def permutation(offset_x: int, offset_y: int) -> PermutationResult:
    return PermutationResult(33, 33, 136, 0, 0, offset_x, offset_y, 0)


class TestValidateGeometry:
    def test_valid(self, service):
        service.validate_geometry(make_spec(), 100, 120)

    def test_rejects_unaligned_crop_height(self, service):
        spec = make_spec(crop_left=0, crop_top=0, crop_width=100, crop_height=96, rectangle=100)
        with pytest.raises(InvalidGeometry):
            service.validate_geometry(spec, 200, 200)

    @pytest.mark.parametrize("overrides, fragment", [
        ({"crop_height": 100}, "cropHeight"),
        ({"crop_width": 60}, "cropWidth"),
        ({"rectangle": 30}, "rectangle must be divisible"),
        ({"crop_left": 40}, "cropLeft + cropWidth"),
        ({"crop_top": 64}, "cropTop + cropHeight"),
        ({"rectangle": 72, "crop_width": 64, "crop_height": 80, "crop_top": 0}, "rectangle must be <= cropWidth"),
        ({"rectangle": 72, "crop_width": 80, "crop_height": 64, "crop_left": 0}, "rectangle must be <= cropHeight"),
    ])
    def test_names_violated_constraint(self, service, overrides, fragment):
        with pytest.raises(InvalidGeometry) as info:
            service.validate_geometry(make_spec(**overrides), 100, 120)
        assert fragment in str(info.value)
        assert info.value.image == "city"


class TestCropWindow:
    def test_extracts_offset_square(self, service):
        arr = np.arange(120 * 100, dtype=np.uint32).reshape(120, 100) % 251
        source = Image.fromarray(arr.astype(np.uint8))
        spec = make_spec()

        window = service.crop_window(source, spec, permutation(19, 2))

        assert window.size == (32, 32)
        top, left = spec.crop_top + 2, spec.crop_left + 19
        assert np.array_equal(np.asarray(window), arr[top:top + 32, left:left + 32].astype(np.uint8))

    def test_scale_to_half(self, service):
        window = Image.new("L", (32, 32), color=7)
        scaled = service.scale_to_half(window, 100)
        assert scaled.size == (50, 50)
        assert np.all(np.asarray(scaled) == 7)

    def test_resolve_out_width_first_present_wins(self):
        spec = make_spec(out_width=800)
        assert CropService.resolve_out_width(640, spec, 1024) == 640
        assert CropService.resolve_out_width(None, spec, 1024) == 800
        assert CropService.resolve_out_width(None, make_spec(), 1024) == 1024
