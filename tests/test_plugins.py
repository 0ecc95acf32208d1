"""
Tests for composition wrappers: plugins, middleware, validation.
"""

import asyncio
import gc

import pytest

from contextloader.context import require_environment, require_services
from contextloader.errors import ContextRejectedError
from contextloader.loader import (
    Plugin,
    compose,
    create_async_loader,
    create_loader,
    logging_plugin,
    with_middleware,
    with_plugins,
    with_validation,
)

# =============================================================================
# Helpers
# =============================================================================


def recording_loader(calls, key="loaded"):
    """Async loader that records that it ran and marks the context."""

    async def loader(context):
        calls.append("loader")
        return {**context, key: True}

    return loader


# =============================================================================
# with_plugins
# =============================================================================


class TestWithPlugins:
    @pytest.mark.asyncio
    async def test_hook_order(self):
        calls = []

        def hook(label):
            def run(context):
                calls.append(label)
                return context

            return run

        plugins = [
            Plugin(before=hook("before-1"), after=hook("after-1")),
            {"before": hook("before-2"), "after": hook("after-2")},
        ]

        await with_plugins(plugins)(recording_loader(calls))({})

        assert calls == ["before-1", "before-2", "loader", "after-1", "after-2"]

    @pytest.mark.asyncio
    async def test_hooks_thread_context(self):
        async def before(context):
            return {**context, "tenant": "acme"}

        def after(context):
            return {**context, "seen_tenant": context["tenant"]}

        async def loader(context):
            return {**context, "loaded_for": context["tenant"]}

        result = await with_plugins([Plugin(before=before, after=after)])(loader)({})

        assert result == {"tenant": "acme", "loaded_for": "acme", "seen_tenant": "acme"}

    @pytest.mark.asyncio
    async def test_failing_before_hook_is_fail_fast(self):
        calls = []

        def before(context):
            raise RuntimeError("plugin failed")

        def after(context):
            calls.append("after")

        wrapped = with_plugins([Plugin(before=before), Plugin(after=after)])(recording_loader(calls))

        with pytest.raises(RuntimeError, match="plugin failed"):
            await wrapped({})

        assert calls == []

    @pytest.mark.asyncio
    async def test_hook_returning_none_keeps_context(self):
        result = await with_plugins([Plugin(before=lambda ctx: None)])(recording_loader([]))({"a": 1})

        assert result == {"a": 1, "loaded": True}

    @pytest.mark.asyncio
    async def test_wraps_sync_loader(self):
        loader = create_loader("x")

        result = await with_plugins([])(loader)({})

        assert result == {"x": {}}

    @pytest.mark.asyncio
    async def test_logging_plugin(self, recording_logger):
        wrapped = with_plugins([logging_plugin(recording_logger, label="models")])(
            recording_loader([])
        )

        await wrapped({})

        assert recording_logger.messages("info") == [
            "[models] Before loading...",
            "[models] After loading (1 context keys)",
        ]


# =============================================================================
# with_middleware
# =============================================================================


class TestWithMiddleware:
    @pytest.mark.asyncio
    async def test_middleware_runs_in_order_then_loader_once(self):
        calls = []

        def add_services(context):
            calls.append("services")
            return {**context, "services": {"db": "pool"}}

        async def add_config(context):
            calls.append("config")
            return {**context, "config": {"seen_db": context["services"]["db"]}}

        result = await with_middleware([add_services, add_config])(recording_loader(calls))({})

        assert calls == ["services", "config", "loader"]
        assert result["config"] == {"seen_db": "pool"}
        assert result["loaded"] is True

    @pytest.mark.asyncio
    async def test_middleware_failure_skips_loader(self):
        calls = []

        def broken(context):
            raise KeyError("missing")

        with pytest.raises(KeyError):
            await with_middleware([broken])(recording_loader(calls))({})

        assert calls == []


# =============================================================================
# with_validation
# =============================================================================


class TestWithValidation:
    @pytest.mark.asyncio
    async def test_all_pass_runs_loader_with_original_context(self):
        calls = []

        def validator(context):
            return {"replaced": True}

        result = await with_validation([validator, require_services(["db"])])(
            recording_loader(calls)
        )({"services": {"db": 1}})

        assert calls == ["loader"]
        assert result == {"services": {"db": 1}, "loaded": True}

    @pytest.mark.asyncio
    async def test_rejection_prevents_loader(self):
        calls = []

        with pytest.raises(ContextRejectedError, match="Missing required services: db"):
            await with_validation([require_services(["db"])])(recording_loader(calls))(
                {"services": {}}
            )

        assert calls == []

    @pytest.mark.asyncio
    async def test_false_return_rejects(self):
        def is_production(context):
            return context.get("env") == "production"

        with pytest.raises(ContextRejectedError) as exc_info:
            await with_validation([is_production])(recording_loader([]))({"env": "test"})

        assert "is_production" in exc_info.value.validator

    @pytest.mark.asyncio
    async def test_validators_run_concurrently(self):
        running = 0
        peak = 0

        async def slow(context):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        await with_validation([slow, slow, slow])(recording_loader([]))({})

        assert peak == 3

    @pytest.mark.asyncio
    async def test_first_failure_cancels_pending(self):
        finished = []

        async def fails_fast(context):
            raise ContextRejectedError("fast", validator="fast")

        async def slow(context):
            await asyncio.sleep(1)
            finished.append("slow")

        with pytest.raises(ContextRejectedError, match="fast"):
            await with_validation([slow, fails_fast])(recording_loader([]))({})

        await asyncio.sleep(0)
        assert finished == []

    @pytest.mark.asyncio
    async def test_simultaneous_failures_all_retrieved(self):
        unhandled = []
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(lambda loop, ctx: unhandled.append(ctx))

        async def first(context):
            raise ContextRejectedError("first", validator="first")

        async def second(context):
            raise ContextRejectedError("second", validator="second")

        try:
            with pytest.raises(ContextRejectedError, match="first"):
                await with_validation([first, second])(recording_loader([]))({})
            gc.collect()
        finally:
            loop.set_exception_handler(None)

        assert unhandled == []

    @pytest.mark.asyncio
    async def test_empty_validators(self):
        result = await with_validation([])(recording_loader([]))({})

        assert result == {"loaded": True}


# =============================================================================
# compose
# =============================================================================


class TestCompose:
    @pytest.mark.asyncio
    async def test_first_wrapper_is_outermost(self):
        calls = []

        def mark(label):
            def run(context):
                calls.append(label)
                return context

            return run

        loader = compose(
            with_plugins([Plugin(before=mark("outer"))]),
            with_middleware([mark("inner")]),
        )(recording_loader(calls))

        await loader({})

        assert calls == ["outer", "inner", "loader"]

    @pytest.mark.asyncio
    async def test_validation_outside_plugins(self):
        calls = []

        loader = compose(
            with_validation([require_environment(("production",))]),
            with_plugins([Plugin(before=lambda ctx: calls.append("plugin"))]),
        )(create_async_loader("x"))

        with pytest.raises(ContextRejectedError, match="Invalid environment: test"):
            await loader({"env": "test"})

        assert calls == []

    def test_wrappers_preserve_loader_name(self):
        async def models_loader(context):
            return context

        wrapped = compose(with_plugins([]), with_middleware([]), with_validation([]))(models_loader)

        assert wrapped.__name__ == "models_loader"
