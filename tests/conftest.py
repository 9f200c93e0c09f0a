import pytest

from tests.factories import FakeClock, Recorder, ReplyRecorder


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def replies() -> ReplyRecorder:
    return ReplyRecorder()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
