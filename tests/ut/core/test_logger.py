"""日志配置测试"""

from __future__ import annotations

import json
import logging

import pytest

from orb.utils.logger import JSONFormatter, debug_enabled, setup_logging


class TestDebugFlag:
    @pytest.mark.parametrize("value", ["", "0", "false", "No"])
    def test_off(self, value: str, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ORB_DEBUG", value)
        assert not debug_enabled()

    def test_on(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ORB_DEBUG", "1")
        assert debug_enabled()

    def test_debug_forces_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ORB_DEBUG", "true")
        setup_logging("ERROR")
        assert logging.getLogger().level == logging.DEBUG


class TestSetup:
    def test_single_handler(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ORB_DEBUG", raising=False)
        setup_logging("INFO")
        setup_logging("INFO")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO

    def test_json_formatter(self) -> None:
        record = logging.LogRecord("orb.test", logging.WARNING, __file__, 10, "hi %s", ("x",), None)
        data = json.loads(JSONFormatter().format(record))
        assert data["level"] == "WARNING"
        assert data["logger"] == "orb.test"
        assert data["message"] == "hi x"
