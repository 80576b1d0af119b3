"""Unit tests for repobrowser.engine.context — memoization & scoped cleanup."""

from contextlib import contextmanager

import pytest

from repobrowser.engine.context import RequestContext


class Closable:
    def __init__(self, name, journal):
        self.name = name
        self.journal = journal

    def close(self):
        self.journal.append(self.name)


class TestMemoize:

    def test_factory_called_once(self):
        ctx = RequestContext()
        calls = []
        factory = lambda: calls.append(1) or "value"
        assert ctx.memoize("k", factory) == "value"
        assert ctx.memoize("k", factory) == "value"
        assert len(calls) == 1

    def test_failing_factory_caches_nothing(self):
        ctx = RequestContext()

        def boom():
            raise RuntimeError("fail")

        with pytest.raises(RuntimeError):
            ctx.memoize("k", boom)
        assert not ctx.is_cached("k")
        assert ctx.memoize("k", lambda: 1) == 1

    def test_contexts_do_not_share(self):
        a, b = RequestContext(), RequestContext()
        a.memoize("k", lambda: "a")
        assert b.cached("k") is None
        assert b.memoize("k", lambda: "b") == "b"

    def test_request_id_generated(self):
        ctx = RequestContext()
        assert ctx.request_id.startswith("req_")
        assert ctx.request_id != RequestContext().request_id


class TestCleanup:

    def test_close_is_lifo(self):
        journal = []
        ctx = RequestContext()
        for name in ("first", "second", "third"):
            ctx.register_closable(Closable(name, journal))
        ctx.close()
        assert journal == ["third", "second", "first"]

    def test_close_idempotent(self):
        journal = []
        ctx = RequestContext()
        ctx.register_closable(Closable("only", journal))
        ctx.close()
        ctx.close()
        assert journal == ["only"]
        assert ctx.closed

    def test_close_clears_cache(self):
        ctx = RequestContext()
        ctx.memoize("k", lambda: 1)
        ctx.close()
        assert not ctx.is_cached("k")

    def test_with_block_closes_on_error(self):
        journal = []
        with pytest.raises(ValueError):
            with RequestContext() as ctx:
                ctx.register_closable(Closable("res", journal))
                raise ValueError("abort")
        assert journal == ["res"]

    def test_enter_context_manager(self):
        journal = []

        @contextmanager
        def scoped():
            journal.append("enter")
            yield "handle"
            journal.append("exit")

        with RequestContext() as ctx:
            assert ctx.enter(scoped()) == "handle"
            assert journal == ["enter"]
        assert journal == ["enter", "exit"]

    def test_register_returns_resource(self):
        ctx = RequestContext()
        res = Closable("x", [])
        assert ctx.register_closable(res) is res

    def test_to_dict(self):
        ctx = RequestContext(request_id="req_1", preferred_language="de")
        ctx.memoize("b", lambda: 1)
        ctx.memoize("a", lambda: 2)
        assert ctx.to_dict() == {
            "request_id": "req_1",
            "preferred_language": "de",
            "cached_keys": ["a", "b"],
        }
