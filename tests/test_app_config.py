"""Tests for bootstrap config and logging setup."""
import logging

from utils.app_config import get_db_folder, get_log_level, load_config, save_config, set_db_folder
from utils.log_setup import setup_logging


def test_missing_config_is_empty(tmp_path):
    assert load_config(tmp_path / "config.json") == {}


def test_corrupt_config_is_empty(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2", encoding="utf-8")
    assert load_config(path) == {}


def test_non_object_config_is_empty(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    assert load_config(path) == {}


def test_save_and_reload(tmp_path):
    path = tmp_path / "nested" / "config.json"
    save_config({"log_level": "DEBUG"}, path)
    assert load_config(path) == {"log_level": "DEBUG"}
    assert not path.with_suffix(".tmp").exists()
    assert get_log_level(path) == "DEBUG"


def test_db_folder_set_and_clear(tmp_path):
    path = tmp_path / "config.json"
    assert get_db_folder(path) is None
    set_db_folder("/data/cashflow", path)
    assert get_db_folder(path) == "/data/cashflow"
    set_db_folder(None, path)
    assert get_db_folder(path) is None


def test_log_level_defaults_to_warning(tmp_path):
    assert get_log_level(tmp_path / "config.json") == "WARNING"


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "cashflow.log"
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("debug", str(log_file))
        assert root.level == logging.DEBUG
        logging.getLogger("services.forecast_service").debug("projected %d days", 90)
        for handler in root.handlers:
            handler.flush()
        assert "projected 90 days" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
