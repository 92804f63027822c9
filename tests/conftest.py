"""Pytest configuration and fixtures for notpl tests."""

import logging

import pytest

from notpl import DictLoader, Environment
from notpl.environment import terminal


class FakeClock:
    """Manually advanced millisecond clock for cache TTL tests."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture(autouse=True)
def _plain_terminal(monkeypatch):
    """Keep diagnostics free of ANSI codes so log assertions stay readable."""
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def env(clock):
    """Environment on a fake clock with whitespace-preserving output."""
    return Environment(clock=clock, style="none")


@pytest.fixture
def env_compressed(clock):
    """Environment with the default compressed output style."""
    return Environment(clock=clock)


@pytest.fixture
def env_with_loader(clock):
    """Environment with a DictLoader holding a few nested templates."""
    loader = DictLoader(
        {
            "nav.html": "<nav><$ print(title) $></nav>",
            "page.html": "<main><$ render('nav.html', {}, {'title': scope['title']}) $></main>",
            "a.html": "A[<$ render('b.html') $>]",
            "b.html": "B[<$ render('a.html') $>]",
            "self.html": "S<$ render('self.html') $>",
        }
    )
    return Environment(loader=loader, clock=clock, style="none")


@pytest.fixture
def notpl_logs(caplog):
    """caplog capturing every notpl diagnostic, notices included."""
    caplog.set_level(logging.INFO, logger="notpl")
    return caplog


def messages(caplog, code: str | None = None) -> list[str]:
    """Log messages from notpl, optionally only those tagged with an error code."""
    found = [r.getMessage() for r in caplog.records if r.name.startswith("notpl")]
    if code is not None:
        found = [m for m in found if code in m]
    return found
