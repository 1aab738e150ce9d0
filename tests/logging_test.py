"""Tests for debug output streams and console logging."""

import io
import logging
import re
import sys

import pytest
from rich.console import Console

from streamlet import PassthroughSubject, SequencePublisher
from streamlet.logging import ConsoleLogHandler, LoggerStream, TimeLogger, logging_context


def make_console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, force_terminal=False, width=200, highlight=False), buffer


class TestTimeLogger:
    def test_lines_are_time_stamped(self) -> None:
        console, buffer = make_console()
        SequencePublisher([1, 2]).print("publisher", stream=TimeLogger(console)).sink()

        lines = buffer.getvalue().splitlines()
        assert len(lines) == 5
        assert all(re.match(r"^\+\d+\.\d{5}s: publisher: ", line) for line in lines)
        assert lines[-1].endswith("publisher: receive finished")

    def test_blank_writes_ignored(self) -> None:
        console, buffer = make_console()
        logger = TimeLogger(console, digits=2)
        logger.write("\n")
        logger.write("hello\n")

        assert re.fullmatch(r"\+\d+\.\d{2}s: hello\n", buffer.getvalue())


class TestLoggerStream:
    def test_forwards_lines(self, caplog: pytest.LogCaptureFixture) -> None:
        stream = LoggerStream("streamlet.test", level=logging.INFO)
        subject = PassthroughSubject[str]()

        with caplog.at_level(logging.INFO, logger="streamlet.test"):
            subject.print("subject", stream=stream).sink()
            subject.send("x")

        assert [r.getMessage() for r in caplog.records] == [
            "subject: receive subscription: (PassthroughSubject)",
            "subject: request unlimited",
            "subject: receive value: (x)",
        ]
        assert all(r.levelno == logging.INFO for r in caplog.records)


class TestConsoleLogging:
    def test_handler_formats_record(self) -> None:
        console, buffer = make_console()
        handler = ConsoleLogHandler(console=console)
        record = logging.LogRecord("streamlet.demo", logging.WARNING, __file__, 1, "careful %s", ("now",), None)

        handler.emit(record)

        output = buffer.getvalue()
        assert "[WARNING ]" in output
        assert "streamlet.demo: careful now" in output

    def test_handler_prints_exception(self) -> None:
        console, buffer = make_console()
        handler = ConsoleLogHandler(console=console)
        try:
            raise ValueError("broken")
        except ValueError:
            logger = logging.getLogger("streamlet.exc")
            record = logger.makeRecord("streamlet.exc", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        handler.emit(record)

        assert "ValueError: broken" in buffer.getvalue()

    def test_logging_context_installs_and_restores(self) -> None:
        console, buffer = make_console()
        logger = logging.getLogger("streamlet.context_test")
        logger.setLevel(logging.WARNING)

        with logging_context(logging.DEBUG, logger, console) as handler:
            assert handler in logger.handlers
            assert logger.level == logging.DEBUG
            logger.debug("inside")

        logger.debug("outside")

        assert handler not in logger.handlers
        assert logger.level == logging.WARNING
        assert "inside" in buffer.getvalue()
        assert "outside" not in buffer.getvalue()
