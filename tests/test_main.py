"""
Тесты точки входа командной строки и рабочего окружения запуска.
"""
import pytest
import yaml

from icities.main import main, make_parser
from icities.models.day_model import DayDate
from icities.services.workspace_service import prepare_destination, process_lock


@pytest.fixture
def config_file(tmp_path, workspace):
    src, dst = workspace
    data = {
        "outWidth": 64,
        "imageSrcPath": str(src),
        "imageDstPath": str(dst),
        "imageList": [{
            "name": "city",
            "fileName": "city.png",
            "cropLeft": 8,
            "cropTop": 16,
            "cropWidth": 64,
            "cropHeight": 64,
            "rectangle": 32,
            "filterList": [{"type": "contrast", "intensity": 1.2}],
        }],
    }
    path = tmp_path / "imaginary-cities.yaml"
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestParser:
    def test_dates(self):
        args = make_parser().parse_args(["--date", "20240101", "--date", "20240229"])
        assert args.dates == [DayDate(2024, 1, 1), DayDate(2024, 2, 29)]

    @pytest.mark.parametrize("value", ["2024-01-01", "2024011", "20240230"])
    def test_bogus_date(self, value):
        with pytest.raises(SystemExit) as info:
            make_parser().parse_args(["--date", value])
        assert info.value.code == 2

    @pytest.mark.parametrize("value", ["101", "0", "-4"])
    def test_out_width_must_be_positive_and_even(self, value):
        with pytest.raises(SystemExit) as info:
            make_parser().parse_args(["--out-width", value])
        assert info.value.code == 2

    def test_out_width(self):
        assert make_parser().parse_args(["--out-width", "512"]).out_width == 512


class TestMain:
    def test_renders_requested_dates(self, tmp_path, config_file, workspace):
        _, dst = workspace
        code = main([
            "--config", str(config_file),
            "--date", "20240101", "--date", "20240102",
            "--views", "120", "--keyword", "harbour",
            "--lock-file", str(tmp_path / "run.lock"),
        ])

        assert code == 0
        assert sorted(p.name for p in dst.iterdir()) == [
            "city-collage-20240101.tif", "city-collage-20240102.tif",
        ]
        assert (tmp_path / "run.lock").exists()

    def test_failed_dates_give_exit_code_1(self, tmp_path, config_file):
        code = main([
            "--config", str(config_file), "--date", "20240101",
            "--lock-file", str(tmp_path / "run.lock"),
        ])
        assert code == 1

    def test_missing_config(self, tmp_path):
        assert main(["--config", str(tmp_path / "absent.yaml")]) == 2

    def test_views_without_keyword(self, config_file):
        with pytest.raises(SystemExit):
            main(["--config", str(config_file), "--views", "5"])

    def test_lock_held_exits_quietly(self, tmp_path, config_file, workspace):
        _, dst = workspace
        lock = tmp_path / "run.lock"
        with process_lock(lock) as acquired:
            assert acquired
            code = main(["--config", str(config_file), "--date", "20240101",
                         "--views", "1", "--keyword", "k", "--lock-file", str(lock)])
        assert code == 0
        assert list(dst.iterdir()) == []


class TestWorkspace:
    def test_lock_is_exclusive(self, tmp_path):
        lock = tmp_path / "x.lock"
        with process_lock(lock) as first:
            with process_lock(lock) as second:
                assert first is True
                assert second is False
            assert lock.exists()
        assert lock.exists()
        with process_lock(lock) as again:
            assert again is True

    def test_prepare_destination_wipes(self, tmp_path):
        dst = tmp_path / "dst"
        dst.mkdir()
        (dst / "old.tif").write_bytes(b"x")

        prepare_destination(dst, wipe=True)

        assert dst.is_dir()
        assert list(dst.iterdir()) == []

    def test_prepare_destination_keeps_existing(self, tmp_path):
        dst = tmp_path / "dst"
        dst.mkdir()
        (dst / "old.tif").write_bytes(b"x")
        prepare_destination(dst)
        assert (dst / "old.tif").exists()


class TestJSONFormatter:
    def test_surfaces_image_and_permutation_fields(self):
        import json
        import logging

        from icities.infrastructure.observability import JSONFormatter

        record = logging.LogRecord("icities", logging.INFO, __file__, 1, "rendered %s", ("city",), None)
        record.image = "city"
        record.day = DayDate(2024, 1, 1)
        record.offset_x = 19

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "rendered city"
        assert payload["image"] == "city"
        assert payload["day"] == "20240101"
        assert payload["offset_x"] == 19
        assert "state" not in payload
