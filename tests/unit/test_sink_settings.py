from __future__ import annotations

import pytest

from src.socklog.errors import InvalidArgument
from src.socklog.sinks import SocketSink
from src.socklog.transport import DEFAULT_CONNECTION_TIMEOUT


def _sink(scripted, **kw) -> SocketSink:
    return SocketSink("tcp://127.0.0.1:5140", transport=scripted(), **kw)


# This test checks the defaults a fresh sink starts with.
def test_defaults(scripted):
    sink = _sink(scripted)
    assert sink.get_connection_string() == "tcp://127.0.0.1:5140"
    assert sink.is_persistent() is False
    assert sink.get_connection_timeout() == DEFAULT_CONNECTION_TIMEOUT
    assert sink.get_timeout() == 0
    assert sink.is_connected() is False
    print("\n.✅test_defaults passed")


@pytest.mark.parametrize("value", [0, 1, 2.5, 10, 0.001])
def test_connection_timeout_round_trips(scripted, value):
    sink = _sink(scripted)
    sink.set_connection_timeout(value)
    assert sink.get_connection_timeout() == value
    assert isinstance(sink.get_connection_timeout(), float)


@pytest.mark.parametrize("value", [0, 1, 30, 5.0])
def test_io_timeout_round_trips(scripted, value):
    sink = _sink(scripted)
    sink.set_timeout(value)
    assert sink.get_timeout() == value
    assert isinstance(sink.get_timeout(), int)


@pytest.mark.parametrize("value", [-1, -0.5, float("nan"), float("inf"), "5", None, True])
def test_bad_connection_timeout_rejected_and_prior_value_kept(scripted, value):
    sink = _sink(scripted, connection_timeout=3)
    with pytest.raises(InvalidArgument):
        sink.set_connection_timeout(value)
    assert sink.get_connection_timeout() == 3.0


@pytest.mark.parametrize("value", [-1, -10, 1.5, "2"])
def test_bad_io_timeout_rejected_and_prior_value_kept(scripted, value):
    sink = _sink(scripted, timeout=7)
    with pytest.raises(InvalidArgument):
        sink.set_timeout(value)
    assert sink.get_timeout() == 7


def test_invalid_argument_is_a_value_error(scripted):
    with pytest.raises(ValueError):
        _sink(scripted, timeout=-1)


def test_persistent_flag_toggles(scripted):
    sink = _sink(scripted)
    sink.set_persistent(True)
    assert sink.is_persistent() is True
    sink.set_persistent(False)
    assert sink.is_persistent() is False
    print("✅test_persistent_flag_toggles passed")
