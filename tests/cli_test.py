"""Tests for the CLI module."""

import logging

import pytest

from streamlet.cli import list_chapters, run
from streamlet.config import PlaygroundConfig


class TestListChapters:
    def test_lists_every_chapter(self, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COLUMNS", "240")
        list_chapters()
        out = capsys.readouterr().out
        for name in ("publishers-and-subscribers", "networking", "debugging", "timers"):
            assert name in out


class TestRun:
    def test_run_single_example(self, capsys: pytest.CaptureFixture[str]) -> None:
        run("publishers-and-subscribers", example="just")
        out = capsys.readouterr().out

        assert "——— Example of: Just ———" in out
        assert "Received value Hello world!" in out
        assert "Example of: PassthroughSubject" not in out

    def test_unknown_chapter_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            run("operators")
        assert exc_info.value.code == 1
        assert "Error: Unknown chapter 'operators'" in capsys.readouterr().err

    def test_unknown_example_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            run("timers", example="cron")
        assert "has no example 'cron'" in capsys.readouterr().err

    def test_invalid_option_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            run("timers", interval=0)
        assert "timer_interval must be positive" in capsys.readouterr().err

    def test_invalid_speed_exits(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            run("timers", speed=0)
        assert "timer_speed must be positive" in capsys.readouterr().err

    def test_fast_forward_speed(self, capsys: pytest.CaptureFixture[str]) -> None:
        run("timers", example="Using the TimerPublisher class", speed=float("inf"))
        out = capsys.readouterr().out

        assert "Example of: Using the TimerPublisher class" in out
        assert "Counter is 1" in out

    def test_log_level_restored(self) -> None:
        root = logging.getLogger()
        before = root.level
        run("publishers-and-subscribers", example="Type erasure", log_level="debug")
        assert root.level == before


class TestPlaygroundConfig:
    def test_defaults(self) -> None:
        config = PlaygroundConfig()
        assert config.url == "https://dummyjson.com/products/1"
        assert config.request_timeout == 10.0
        assert config.timer_duration == 3.5
        assert config.timer_interval == 1.0
        assert config.timer_speed == 1.0
        assert not config.debugger

    def test_validation(self) -> None:
        with pytest.raises(ValueError, match="request_timeout"):
            PlaygroundConfig(request_timeout=0)
        with pytest.raises(ValueError, match="timer_duration"):
            PlaygroundConfig(timer_duration=-1)
        with pytest.raises(ValueError, match="timer_speed"):
            PlaygroundConfig(timer_speed=0)
        with pytest.raises(ValueError, match="timer_speed"):
            PlaygroundConfig(timer_speed=float("nan"))
