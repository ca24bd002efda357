from __future__ import annotations

import logging
from dataclasses import replace

import pytest

from planner.utils import logger as planner_logger
from planner.utils.config import get_settings


@pytest.fixture
def fresh_logging(monkeypatch):
    calls: list[dict] = []
    namespace = logging.getLogger(planner_logger.PLANNER_NAMESPACE)
    monkeypatch.setattr(planner_logger, "_active_settings", None)
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setattr(namespace, "level", namespace.level)
    return calls


def test_resolve_log_level_accepts_any_case() -> None:
    assert planner_logger.resolve_log_level("debug") == logging.DEBUG
    assert planner_logger.resolve_log_level(" Warning ") == logging.WARNING


def test_resolve_log_level_rejects_unknown_name() -> None:
    with pytest.raises(ValueError):
        planner_logger.resolve_log_level("loud")


def test_configure_logging_uses_settings(fresh_logging) -> None:
    settings = replace(get_settings(), log_level="debug", log_format="%(name)s %(message)s")

    planner_logger.configure_logging(settings)

    assert fresh_logging[0]["level"] == logging.DEBUG
    assert fresh_logging[0]["format"] == "%(name)s %(message)s"
    assert logging.getLogger("planner").level == logging.DEBUG


def test_configure_logging_runs_once(fresh_logging) -> None:
    planner_logger.configure_logging(replace(get_settings(), log_level="ERROR"))
    planner_logger.configure_logging(replace(get_settings(), log_level="DEBUG"))

    assert len(fresh_logging) == 1
    assert logging.getLogger("planner").level == logging.ERROR


def test_get_logger_places_modules_under_planner_namespace() -> None:
    assert planner_logger.get_logger("app").name == "planner.app"
    assert planner_logger.get_logger("planner.services.x").name == "planner.services.x"
    assert planner_logger.get_logger("planner").name == "planner"
