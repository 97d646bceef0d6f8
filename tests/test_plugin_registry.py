"""
Tests for signalflow/registry.py and Signal.use() — registration lifecycle
and plugin execution.
"""

import logging
import threading
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from signalflow import (
    PluginConfig,
    PluginRegistry,
    Signal,
    get_registry,
    register_plugin,
    unregister_plugin,
)


def make_plugin(plugin_id="test-plugin"):
    """A duck-typed plugin with mocked hooks."""
    return SimpleNamespace(
        id=plugin_id,
        init=MagicMock(),
        execute=MagicMock(side_effect=lambda signal, options=None: signal.reflect("Processed by test plugin")),
        cleanup=MagicMock(),
    )


# ============================================================================
# TestPluginRegistry
# ============================================================================

class TestPluginRegistry:
    def setup_method(self):
        self.registry = PluginRegistry()

    def test_register_runs_init_once(self):
        plugin = make_plugin()
        assert self.registry.register(plugin) is True
        plugin.init.assert_called_once_with()
        assert self.registry.has_plugin("test-plugin")
        assert self.registry.get_plugin("test-plugin") is plugin

    def test_register_with_options(self):
        plugin = make_plugin()
        self.registry.register(plugin, {"level": "debug"})
        plugin.init.assert_called_once_with({"level": "debug"})

    def test_duplicate_registration_is_noop(self, caplog):
        plugin = make_plugin()
        self.registry.register(plugin)
        with caplog.at_level(logging.WARNING, logger="signalflow"):
            assert self.registry.register(plugin) is False
        assert plugin.init.call_count == 1
        assert len(self.registry) == 1
        assert "already registered" in caplog.text

    def test_duplicate_keeps_first_owner(self):
        first = make_plugin("same")
        second = make_plugin("same")
        self.registry.register(first)
        self.registry.register(second)
        assert self.registry.get_plugin("same") is first
        second.init.assert_not_called()

    def test_plugin_without_hooks(self):
        plugin = SimpleNamespace(id="bare", execute=lambda signal, options=None: signal)
        self.registry.register(plugin)
        assert self.registry.unregister("bare") is True

    def test_invalid_plugin_rejected(self):
        with pytest.raises(ValueError, match="Invalid plugin"):
            self.registry.register(SimpleNamespace(id="x"))
        assert len(self.registry) == 0

    def test_init_failure_propagates_and_skips_storage(self):
        plugin = make_plugin()
        plugin.init.side_effect = RuntimeError("init broke")
        with pytest.raises(RuntimeError, match="init broke"):
            self.registry.register(plugin)
        assert not self.registry.has_plugin("test-plugin")

    def test_unregister_runs_cleanup_once(self):
        plugin = make_plugin()
        self.registry.register(plugin)
        assert self.registry.unregister("test-plugin") is True
        plugin.cleanup.assert_called_once_with()
        assert not self.registry.has_plugin("test-plugin")
        assert self.registry.unregister("test-plugin") is False
        assert plugin.cleanup.call_count == 1

    def test_unregister_unknown_is_noop(self):
        assert self.registry.unregister("ghost") is False

    def test_cleanup_failure_still_removes(self):
        plugin = make_plugin()
        plugin.cleanup.side_effect = RuntimeError("cleanup broke")
        self.registry.register(plugin)
        with pytest.raises(RuntimeError, match="cleanup broke"):
            self.registry.unregister("test-plugin")
        assert not self.registry.has_plugin("test-plugin")

    def test_clear(self):
        a, b = make_plugin("a"), make_plugin("b")
        self.registry.register(a)
        self.registry.register(b)
        self.registry.clear()
        assert len(self.registry) == 0
        a.cleanup.assert_called_once()
        b.cleanup.assert_called_once()

    def test_clear_continues_past_failing_cleanup(self):
        a, b, c = make_plugin("a"), make_plugin("b"), make_plugin("c")
        a.cleanup.side_effect = RuntimeError("a broke")
        b.cleanup.side_effect = RuntimeError("b broke")
        for plugin in (a, b, c):
            self.registry.register(plugin)

        with pytest.raises(RuntimeError, match="a broke"):
            self.registry.clear()

        assert self.registry.plugin_ids() == []
        for plugin in (a, b, c):
            plugin.cleanup.assert_called_once_with()

    def test_plugin_ids_in_registration_order(self):
        for name in ("c", "a", "b"):
            self.registry.register(make_plugin(name))
        assert self.registry.plugin_ids() == ["c", "a", "b"]
        assert "a" in self.registry

    def test_concurrent_registration_inits_once(self):
        plugin = make_plugin()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            self.registry.register(plugin)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert plugin.init.call_count == 1
        assert len(self.registry) == 1


# ============================================================================
# TestSignalUse
# ============================================================================

class TestSignalUse:
    def setup_method(self):
        self.registry = PluginRegistry()
        self.plugin = make_plugin()
        self.registry.register(self.plugin)

    def test_use_executes_plugin(self):
        signal = Signal.success("test")
        result = signal.use("test-plugin", registry=self.registry)
        self.plugin.execute.assert_called_once_with(signal)
        last = result.trace_data()[-1]["reflections"][-1]
        assert last["message"] == "Processed by test plugin"
        assert result.id == signal.id

    def test_use_with_config_options(self):
        signal = Signal.success(1)
        signal.use(PluginConfig(id="test-plugin", options={"x": 1}), registry=self.registry)
        self.plugin.execute.assert_called_once_with(signal, {"x": 1})

    def test_use_with_dict_config(self):
        signal = Signal.success(1)
        signal.use({"id": "test-plugin", "options": "opt"}, registry=self.registry)
        self.plugin.execute.assert_called_once_with(signal, "opt")

    def test_use_on_failure_still_runs(self):
        f = Signal.failure("down")
        result = f.use("test-plugin", registry=self.registry)
        assert result.is_failure
        self.plugin.execute.assert_called_once()

    def test_missing_plugin_passes_through(self, caplog):
        signal = Signal.success(1)
        with caplog.at_level(logging.WARNING, logger="signalflow"):
            assert signal.use("ghost", registry=self.registry) is signal
        assert "not registered" in caplog.text

    def test_plugin_can_swap_value(self):
        swapper = SimpleNamespace(id="swap", execute=lambda signal, options=None: signal.succeed("swapped"))
        self.registry.register(swapper)
        assert Signal.success(1).use("swap", registry=self.registry).value == "swapped"

    def test_plugin_fault_propagates(self):
        self.plugin.execute.side_effect = RuntimeError("plugin broke")
        with pytest.raises(RuntimeError, match="plugin broke"):
            Signal.success(1).use("test-plugin", registry=self.registry)


# ============================================================================
# TestDefaultRegistry
# ============================================================================

class TestDefaultRegistry:
    def setup_method(self):
        get_registry().clear()

    def teardown_method(self):
        get_registry().clear()

    def test_default_registry_is_shared(self):
        assert get_registry() is get_registry()

    def test_register_via_signal(self):
        plugin = make_plugin()
        Signal.register_plugin(plugin)
        Signal.register_plugin(plugin)
        assert plugin.init.call_count == 1
        assert Signal.success("x").use("test-plugin").trace_data()[-1]["reflections"][-1]["message"] == (
            "Processed by test plugin"
        )
        Signal.unregister_plugin("test-plugin")
        plugin.cleanup.assert_called_once()
        assert not get_registry().has_plugin("test-plugin")

    def test_module_level_functions(self):
        plugin = make_plugin()
        assert register_plugin(plugin) is True
        assert register_plugin(plugin) is False
        assert unregister_plugin("test-plugin") is True
        assert unregister_plugin("test-plugin") is False
