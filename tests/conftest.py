import pytest

from surveyflow.graph import SurveyStore
from surveyflow.interfaces import InMemoryAddressBar
from surveyflow.players import InstantTransitionPlayer
from surveyflow.sinks import MemorySnapshotSink

# Zero delays fire the auto-advance on the next loop iteration.
FAST_DELAYS = {"scale": 0.0, "single_choice": 0.0}


@pytest.fixture(scope="session")
def store():
    s = SurveyStore()
    s.load()
    return s

@pytest.fixture(scope="session")
def nps(store):
    return store.get("nps")

@pytest.fixture(scope="session")
def subscription(store):
    return store.get("subscription")

@pytest.fixture
def player():
    return InstantTransitionPlayer()

@pytest.fixture
def sink():
    return MemorySnapshotSink()

@pytest.fixture
def address_bar():
    return InMemoryAddressBar()

@pytest.fixture
def fast_delays():
    return dict(FAST_DELAYS)
