import os
import time

import pytest

from godis import logger


def _settings(tmp_path, name="godis"):
    return logger.Settings(path=str(tmp_path / "logs"), name=name, ext="log", time_format="%Y-%m-%d")


def _log_path(settings):
    return os.path.join(
        settings.path, f"{settings.name}-{time.strftime(settings.time_format)}.{settings.ext}"
    )


def test_setup_creates_dated_file_and_writes_info(tmp_path):
    settings = _settings(tmp_path)
    logger.setup(settings)
    logger.info("hello world")
    with open(_log_path(settings), encoding="utf-8") as fh:
        content = fh.read()
    assert "[INFO][test_logger.py:" in content
    assert content.rstrip("\n").endswith("hello world")


def test_output_goes_to_stdout(tmp_path, capsys):
    logger.setup(_settings(tmp_path, "out"))
    logger.warn("a", 1)
    out = capsys.readouterr().out
    assert out.startswith("[WARN][test_logger.py:")
    assert out.endswith("a 1\n")


def test_levels_are_marked(tmp_path):
    settings = _settings(tmp_path, "levels")
    logger.setup(settings)
    logger.debug("d")
    logger.error("e")
    logger.errorf("x=%d", 5)
    with open(_log_path(settings), encoding="utf-8") as fh:
        lines = fh.read().splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("[DEBUG]")
    assert lines[1].startswith("[ERROR]")
    assert lines[2].startswith("[ERROR]") and lines[2].endswith("x=5")


def test_fatal_exits(tmp_path):
    settings = _settings(tmp_path, "fatal")
    logger.setup(settings)
    with pytest.raises(SystemExit):
        logger.fatal("boom")
    with open(_log_path(settings), encoding="utf-8") as fh:
        assert fh.read().startswith("[FATAL]")


def test_setup_fails_when_dir_is_a_file(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    with pytest.raises(OSError):
        logger.setup(logger.Settings(path=str(blocker), name="n", ext="log"))