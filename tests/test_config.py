import pytest

from softmacs import config
from softmacs.evaluation import Machine
from softmacs.store import TermStore


def test_defaults():
    assert config.get_continuation_mode() == "multi"
    assert not config.one_shot_continuations()
    assert config.get_resolve_timeout() is None
    assert config.get_store_stripes() == 64


@pytest.mark.parametrize("raw,expected", [("one-shot", True), ("ONE-SHOT", True), ("multi", False), ("  ", False)])
def test_continuation_mode(monkeypatch, raw, expected):
    monkeypatch.setenv("SOFTMACS_CONTINUATIONS", raw)
    assert config.one_shot_continuations() is expected
    assert Machine().one_shot is expected


def test_explicit_argument_overrides_environment(monkeypatch):
    monkeypatch.setenv("SOFTMACS_CONTINUATIONS", "one-shot")
    assert Machine(one_shot=False).one_shot is False
    monkeypatch.setenv("SOFTMACS_RESOLVE_TIMEOUT", "9")
    assert TermStore(resolve_timeout=1.5).timeout_policy.timeout == 1.5


@pytest.mark.parametrize(
    "var,raw",
    [
        ("SOFTMACS_CONTINUATIONS", "sometimes"),
        ("SOFTMACS_RESOLVE_TIMEOUT", "-1"),
        ("SOFTMACS_RESOLVE_TIMEOUT", "soon"),
        ("SOFTMACS_STORE_STRIPES", "0"),
    ],
)
def test_invalid_values(monkeypatch, var, raw):
    monkeypatch.setenv(var, raw)
    with pytest.raises(ValueError):
        config.get_continuation_mode()
        config.get_resolve_timeout()
        config.get_store_stripes()


def test_store_stripes(monkeypatch):
    monkeypatch.setenv("SOFTMACS_STORE_STRIPES", "8")
    assert len(TermStore()._locks) == 8
