"""
Tests for DeferredParse.
"""
from threadcache.utils.deferred import DeferredParse


class CountingParser:
    def __init__(self):
        self.calls = 0

    def __call__(self, raw):
        self.calls += 1
        return None if raw is None else raw.upper()


def test_parses_once_per_assignment():
    parser = CountingParser()
    holder = DeferredParse(parser, "abc")

    assert holder.value == "ABC"
    assert holder.value == "ABC"
    assert parser.calls == 1
    assert holder.raw is None


def test_reassigning_raw_resets_parsed_value():
    parser = CountingParser()
    holder = DeferredParse(parser, "abc")
    holder.value

    holder.raw = "xyz"

    assert holder.value == "XYZ"
    assert parser.calls == 2


def test_has_value_tracks_assignment():
    holder = DeferredParse(CountingParser())
    assert holder.has_value is False

    holder.raw = "abc"
    assert holder.has_value is True


def test_value_without_raw_parses_none():
    parser = CountingParser()
    holder = DeferredParse(parser)

    assert holder.value is None
    assert parser.calls == 1
