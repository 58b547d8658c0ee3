"""Session fixtures for the editor session tests."""

import pytest

from board_engine.kernel.session import EditorSession
from board_engine.kernel.storage import MemoryStorage
from board_engine.kernel.tests.tests_session.fakes import RecordingSpeech, RecordingVideo


@pytest.fixture
def speech():
    return RecordingSpeech()


@pytest.fixture
def video():
    return RecordingVideo()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def session(storage, speech, video):
    return EditorSession(storage, speech=speech, video=video)


@pytest.fixture
def loaded(session, board):
    """Session editing the single-page fixture board."""
    session.load_board(board)
    return session


@pytest.fixture
def nav(session, nav_board):
    """Session editing the three-page navigation board."""
    session.load_board(nav_board)
    return session
