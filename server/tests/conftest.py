"""Shared fixtures: a parser gateway and linter backed by the fake parser."""

import logging

import pytest

from fakes import FakeLoader, FakeParser, ScriptedBuilder
from pascallint.engine.dispatch import clear_rule_timing, disable_rule_timing
from pascallint.engine.linter import LinterService
from pascallint.engine.parser import ParserGateway


@pytest.fixture
def builder():
    return ScriptedBuilder()


@pytest.fixture
def fake_parser(builder):
    return FakeParser(builder)


@pytest.fixture
def loader(fake_parser):
    return FakeLoader(fake_parser)


@pytest.fixture
def gateway(loader):
    """A gateway over the fake parser; not initialized yet."""
    return ParserGateway(loader=loader)


@pytest.fixture
def linter(gateway):
    """LinterService with the built-in rules; call ``await linter.initialize()`` first."""
    service = LinterService(gateway=gateway)
    yield service
    service.cleanup()


@pytest.fixture(autouse=True)
def reset_rule_timing():
    yield
    disable_rule_timing()
    clear_rule_timing()


@pytest.fixture(autouse=True)
def engine_log_level():
    # The HTTP app sets the package logger's level on import
    logger = logging.getLogger("pascallint")
    level = logger.level
    logger.setLevel(logging.DEBUG)
    yield
    logger.setLevel(level)
