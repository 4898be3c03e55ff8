import pytest

from softmacs.interpreter import Interpreter
from softmacs.store.term_store import TermStore

# Configuration is read from SOFTMACS_* environment variables; every test
# starts from the defaults and sets what it needs through monkeypatch.


@pytest.fixture(autouse=True)
def _clean_softmacs_env(monkeypatch):
    for var in ("SOFTMACS_CONTINUATIONS", "SOFTMACS_RESOLVE_TIMEOUT", "SOFTMACS_STORE_STRIPES"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(params=["multi", "one-shot"])
def continuation_mode(request):
    return request.param


@pytest.fixture
def interp():
    itp = Interpreter()
    yield itp
    itp.close()


@pytest.fixture
def one_shot_interp():
    itp = Interpreter(one_shot=True)
    yield itp
    itp.close()


@pytest.fixture
def store():
    s = TermStore()
    yield s
    s.close()
