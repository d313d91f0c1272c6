"""Shared test fixtures."""

from pathlib import Path

import pytest

from mdshelf.recent import RecentLedger
from mdshelf.session import ViewerSession
from mdshelf.session_store import SessionStore
from tests.fakes import FakeHost, FakePresenter

DOC_A = "/work/docs/a.md"
DOC_B = "/work/docs/b.md"
DOC_C = "/work/other/c.md"

SAMPLE_FILES = {
    DOC_A: "# A\n\nFirst document.",
    DOC_B: "# B\n\nSecond document.",
    DOC_C: "# C\n\nThird document.",
}


@pytest.fixture
def host() -> FakeHost:
    return FakeHost(SAMPLE_FILES)


@pytest.fixture
def presenter() -> FakePresenter:
    return FakePresenter()


@pytest.fixture
def session_store(tmp_path: Path, host: FakeHost) -> SessionStore:
    return SessionStore(tmp_path / "session.json", host.file_exists)


@pytest.fixture
def ledger(tmp_path: Path, host: FakeHost) -> RecentLedger:
    return RecentLedger(tmp_path / "recent-files.json", host.file_exists)


@pytest.fixture
def session(
    host: FakeHost,
    presenter: FakePresenter,
    session_store: SessionStore,
    ledger: RecentLedger,
) -> ViewerSession:
    return ViewerSession(host, presenter, session_store=session_store, ledger=ledger)


@pytest.fixture
def ready_session(session: ViewerSession, presenter: FakePresenter) -> ViewerSession:
    """A session whose presentation layer has already signalled readiness."""
    session.presentation_ready()
    presenter.calls.clear()
    return session
