"""
Тесты сборки мандалы.
"""
import numpy as np
import pytest
from PIL import Image

from icities.services.mandala_service import MandalaService


@pytest.fixture
def tile() -> Image.Image:
    rng = np.random.default_rng(7)
    return Image.fromarray(rng.integers(0, 256, size=(16, 16), dtype=np.uint8))


class TestMandala:
    def test_quadrants_are_mirrors(self, tile):
        canvas = np.asarray(MandalaService().compose_quadrants(tile))
        w = 16
        q00 = canvas[:w, :w]

        assert canvas.shape == (32, 32)
        assert np.array_equal(q00, np.asarray(tile))
        assert np.array_equal(canvas[:w, w:], q00[:, ::-1])
        assert np.array_equal(canvas[w:, :w], q00[::-1, :])
        assert np.array_equal(canvas[w:, w:], q00[::-1, ::-1])

    def test_legacy_layout(self, tile):
        canvas = np.asarray(MandalaService().compose_legacy_quadrants(tile))
        w = 16
        q00 = canvas[:w, :w]

        assert np.array_equal(canvas[:w, w:], q00[:, ::-1])
        assert np.array_equal(canvas[w:, w:], q00[::-1, :])
        assert np.array_equal(canvas[w:, :w], q00[:, ::-1])

    def test_blend_with_clockwise_rotation(self, tile):
        service = MandalaService()
        canvas = service.compose_quadrants(tile)
        a = np.asarray(canvas).astype(np.int32)
        rotated = np.rot90(a, k=-1)

        out = np.asarray(service.blend_rotated(canvas)).astype(np.int32)

        assert np.array_equal(out, (a + rotated + 1) // 2)

    def test_blend_rounds_half_up(self):
        canvas = Image.fromarray(np.array([[0, 1], [0, 1]], dtype=np.uint8))
        # clockwise rotation of [[0, 1], [0, 1]] is [[0, 0], [1, 1]]
        out = np.asarray(MandalaService().blend_rotated(canvas))
        assert out.tolist() == [[0, 1], [1, 1]]

    def test_output_size(self, tile):
        assert MandalaService().compose_mandala(tile).size == (32, 32)

    def test_rejects_non_square(self):
        with pytest.raises(ValueError):
            MandalaService().compose_mandala(Image.new("L", (4, 2)))
