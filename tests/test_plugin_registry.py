"""
Unit tests for plugin registration, lookup, autocreate and removal.
"""

import pytest

from search_dispatch.application.client import SearchClient
from search_dispatch.domain.errors import InvalidPluginError, UnknownPluginTypeError
from search_dispatch.domain.interfaces import Plugin
from search_dispatch.plugins.customize_request import CustomizeRequest
from search_dispatch.plugins.post_big_request import PostBigRequest

from conftest import RecordingPlugin


class NotAPlugin:
    pass


def make_big_request_plugin():
    """Plain factory function returning a configured plugin."""
    return PostBigRequest({"maxquerystringlength": 10})


class DuckPlugin:
    """Satisfies the contract without subclassing Plugin."""

    def __init__(self):
        self.client = None
        self.options = None

    def init_plugin(self, client, options):
        self.client = client
        self.options = options


class TestRegisterPlugin:
    """Test register_plugin input shapes and init hook."""

    def test_register_instance_returns_same_instance(self):
        """Test get_plugin returns the registered object itself."""
        client = SearchClient()
        plugin = RecordingPlugin()

        client.register_plugin("p", plugin)

        assert client.get_plugin("p") is plugin
        assert client.get_plugin("p") is plugin

    def test_init_plugin_receives_client_and_options(self):
        client = SearchClient()
        plugin = RecordingPlugin()

        client.register_plugin("p", plugin, {"a": 1})

        assert plugin.init_calls == [(client, {"a": 1})]
        assert plugin.client is client
        assert plugin.get_option("a") == 1

    def test_register_class_is_instantiated(self):
        client = SearchClient()

        client.register_plugin("post", PostBigRequest, {"maxquerystringlength": 10})

        plugin = client.get_plugin("post")
        assert isinstance(plugin, PostBigRequest)
        assert plugin.get_option("maxquerystringlength") == 10

    def test_register_by_table_identifier(self):
        """Test a plugin-type table key resolves to its default implementation."""
        client = SearchClient()

        client.register_plugin("mine", "customizerequest")

        assert isinstance(client.get_plugin("mine"), CustomizeRequest)

    def test_register_by_dotted_path(self):
        client = SearchClient()

        client.register_plugin("mine", "search_dispatch.plugins.post_big_request.PostBigRequest")

        assert isinstance(client.get_plugin("mine"), PostBigRequest)

    def test_factory_function_is_called(self):
        client = SearchClient()

        client.register_plugin("direct", make_big_request_plugin)
        client.register_plugin("dotted", "test_plugin_registry.make_big_request_plugin")

        for key in ("direct", "dotted"):
            plugin = client.get_plugin(key)
            assert isinstance(plugin, PostBigRequest)
            assert plugin.get_option("maxquerystringlength") == 10
            assert plugin.client is client

    def test_duck_typed_plugin_accepted(self):
        """Test contract is init_plugin presence, not inheritance."""
        client = SearchClient()
        plugin = DuckPlugin()

        client.register_plugin("duck", plugin, {"x": 1})

        assert plugin.client is client
        assert plugin.options == {"x": 1}

    def test_invalid_plugin_rejected(self):
        client = SearchClient()

        with pytest.raises(InvalidPluginError):
            client.register_plugin("bad", NotAPlugin())
        with pytest.raises(InvalidPluginError):
            client.register_plugin("bad", NotAPlugin)
        assert client.get_plugin("bad", autocreate=False) is None

    def test_unresolvable_identifier_rejected(self):
        with pytest.raises(InvalidPluginError):
            SearchClient().register_plugin("bad", "no.such.module.Plugin")

    def test_reregistration_replaces_silently_and_keeps_order(self):
        """Test same key replaces the occupant, keeping its delivery position."""
        client = SearchClient()
        first, second, replacement = RecordingPlugin("a"), RecordingPlugin("b"), RecordingPlugin("c")
        client.register_plugin("a", first).register_plugin("b", second)

        client.register_plugin("a", replacement)

        assert list(client.get_plugins().items()) == [("a", replacement), ("b", second)]
        assert first.log == []

    def test_registration_order_preserved(self):
        client = SearchClient()
        for key in ("z", "a", "m"):
            client.register_plugin(key, RecordingPlugin(key))

        assert list(client.get_plugins()) == ["z", "a", "m"]

    def test_register_plugins_batch_from_config(self):
        """Test 'plugin' option entries with and without an explicit key."""
        client = SearchClient({
            "plugin": {
                "outer": {"key": "inner", "plugin": PostBigRequest, "options": {"maxquerystringlength": 5}},
                "custom": {"plugin": "customizerequest"},
            }
        })

        plugins = client.get_plugins()
        assert list(plugins) == ["inner", "custom"]
        assert plugins["inner"].get_option("maxquerystringlength") == 5
        assert isinstance(plugins["custom"], CustomizeRequest)


class TestGetPlugin:
    """Test lookup and autocreate."""

    def test_autocreate_known_key(self):
        """Test a key from the plugin-type table is registered on first lookup."""
        client = SearchClient()

        plugin = client.get_plugin("postbigrequest")

        assert isinstance(plugin, PostBigRequest)
        assert plugin.client is client
        assert client.get_plugin("postbigrequest") is plugin
        assert list(client.get_plugins()) == ["postbigrequest"]

    def test_autocreate_unknown_key_raises(self):
        with pytest.raises(UnknownPluginTypeError):
            SearchClient().get_plugin("unknownKey")

    def test_no_autocreate_returns_none(self):
        client = SearchClient()

        assert client.get_plugin("postbigrequest", autocreate=False) is None
        assert client.get_plugin("unknownKey", autocreate=False) is None
        assert client.get_plugins() == {}


class TestRemovePlugin:
    """Test removal by key and by identity."""

    def test_remove_by_instance(self):
        client = SearchClient()
        plugin = RecordingPlugin()
        client.register_plugin("p", plugin)

        client.remove_plugin(plugin)

        assert client.get_plugin("p", autocreate=False) is None

    def test_remove_by_key(self):
        client = SearchClient()
        client.register_plugin("p", RecordingPlugin())

        client.remove_plugin("p")

        assert client.get_plugins() == {}

    def test_remove_by_instance_uses_identity(self):
        """Test an equal-but-distinct object does not remove anything."""

        class EqualPlugin(Plugin):
            def __eq__(self, other):
                return True

            __hash__ = object.__hash__

        client = SearchClient()
        stored = EqualPlugin()
        client.register_plugin("p", stored)

        client.remove_plugin(EqualPlugin())

        assert client.get_plugin("p", autocreate=False) is stored

    def test_remove_unregistered_is_noop(self):
        client = SearchClient()
        client.register_plugin("p", RecordingPlugin())

        client.remove_plugin("missing").remove_plugin(RecordingPlugin())

        assert list(client.get_plugins()) == ["p"]
