"""
Unit tests for MemcachedCache.
"""

import pytest
from unittest.mock import MagicMock, patch
from pymemcache.exceptions import MemcacheIllegalInputError, MemcacheUnexpectedCloseError

from session_cache.app.memcached.builder import MemcachedClientBuilder
from session_cache.app.memcached.cache import NO_EXPIRY, MemcachedCache
from session_cache.app.spi import Cache
from cache_shared.errors import CacheConfigurationError, CacheInitializationError, CacheOperationError
from cache_shared.test_helpers import PrincipalKey, SessionDataFactory, create_mock_client


class TestMemcachedCache:
    """Test cases for MemcachedCache over an in-memory client."""

    @pytest.fixture
    def client(self):
        """In-memory memcached client."""
        return create_mock_client()

    @pytest.fixture
    def cache(self, client):
        """Create MemcachedCache instance."""
        return MemcachedCache(client, "sessions")

    @pytest.fixture
    def sessions(self):
        return SessionDataFactory.create_sessions()

    def test_is_host_framework_cache(self, cache):
        assert isinstance(cache, Cache)

    def test_get_missing_key(self, cache):
        assert cache.get("never-set") is None

    def test_get_none_key(self, cache):
        assert cache.get(None) is None

    def test_put_then_get(self, cache, sessions):
        session = sessions[0]

        previous = cache.put(session.session_id, session)

        assert previous is None
        assert cache.get(session.session_id) == session

    def test_put_returns_previous_value(self, cache):
        first = SessionDataFactory.create_authorization_info("alice")
        second = dict(first, roles=["user", "admin"])

        cache.put("alice", first)
        previous = cache.put("alice", second)

        assert previous == first
        assert cache.get("alice") == second

    def test_remove_returns_previous_value(self, cache, sessions):
        session = sessions[0]
        cache.put(session.session_id, session)

        removed = cache.remove(session.session_id)

        assert removed == session
        assert cache.get(session.session_id) is None

    def test_remove_missing_key(self, cache):
        assert cache.remove("never-set") is None

    def test_keys_use_string_form(self, cache, client):
        key = PrincipalKey("ldap", "alice")
        info = SessionDataFactory.create_authorization_info("alice")

        cache.put(key, info)

        assert client.get("ldap:alice") == info
        assert cache.get(PrincipalKey("ldap", "alice")) == info

    def test_non_ascii_key(self, cache):
        info = SessionDataFactory.create_authorization_info("josé")

        assert cache.put("josé", info) is None
        assert cache.get("josé") == info
        assert cache.remove("josé") == info
        assert cache.get("josé") is None

    def test_object_key_and_its_string_share_entry(self, cache, sessions):
        session = sessions[1]

        cache.put(session, {"principal": session.principal})

        assert cache.get(session.session_id) == {"principal": session.principal}

    def test_clear(self, cache, sessions):
        for session in sessions:
            cache.put(session.session_id, session)

        cache.clear()

        for session in sessions:
            assert cache.get(session.session_id) is None

    def test_clear_is_not_scoped_to_region(self, client):
        sessions_cache = MemcachedCache(client, "sessions")
        authorization_cache = MemcachedCache(client, "authorization")
        authorization_cache.put("alice", SessionDataFactory.create_authorization_info())

        sessions_cache.clear()

        assert authorization_cache.get("alice") is None

    def test_bulk_views_are_unsupported(self, cache, sessions):
        for session in sessions:
            cache.put(session.session_id, session)

        assert cache.size() == 0
        assert cache.keys() == frozenset()
        assert list(cache.values()) == []

    def test_str(self, cache):
        assert str(cache) == "Memcache [sessions]"
        assert repr(cache) == "Memcache [sessions]"

    def test_none_client(self):
        with pytest.raises(ValueError):
            MemcachedCache(None)

    @pytest.mark.parametrize("operation", ["put", "remove"])
    def test_none_key_on_write(self, cache, operation):
        args = (None, "value") if operation == "put" else (None,)

        with pytest.raises(CacheOperationError) as exc_info:
            getattr(cache, operation)(*args)

        assert exc_info.value.operation == operation


class TestMemcachedCacheClientCalls:
    """Test the calls made against the underlying client."""

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.get.return_value = None
        return client

    @pytest.fixture
    def cache(self, client):
        return MemcachedCache(client, "sessions")

    def test_put_never_expires(self, cache, client):
        cache.put(42, "value")

        client.get.assert_called_once_with("42")
        client.set.assert_called_once_with("42", "value", expire=NO_EXPIRY, noreply=False)
        assert NO_EXPIRY == 0

    def test_put_reads_before_write(self, cache, client):
        calls = []
        client.get.side_effect = lambda key: calls.append("get")
        client.set.side_effect = lambda *args, **kwargs: calls.append("set") or True

        cache.put("alice", "token")

        assert calls == ["get", "set"]

    def test_put_not_stored(self, cache, client):
        client.set.return_value = False

        with pytest.raises(CacheOperationError) as exc_info:
            cache.put("alice", "token123")

        assert exc_info.value.operation == "put"
        assert exc_info.value.details == {"region": "sessions", "key": "alice"}

    def test_remove_deletes_string_key(self, cache, client):
        client.get.return_value = "token"

        assert cache.remove(PrincipalKey("ldap", "alice")) == "token"
        client.delete.assert_called_once_with("ldap:alice", noreply=False)

    def test_clear_does_not_wait_for_reply(self, cache, client):
        cache.clear()

        client.flush_all.assert_called_once_with(noreply=True)

    @pytest.mark.parametrize("operation,args,failing", [
        ("get", ("alice",), "get"),
        ("put", ("alice", "token"), "set"),
        ("remove", ("alice",), "delete"),
        ("clear", (), "flush_all"),
    ])
    def test_client_faults_are_wrapped(self, cache, client, operation, args, failing):
        error = MemcacheUnexpectedCloseError()
        getattr(client, failing).side_effect = error

        with pytest.raises(CacheOperationError) as exc_info:
            getattr(cache, operation)(*args)

        assert exc_info.value.code == "CACHE_OPERATION_ERROR"
        assert exc_info.value.details["region"] == "sessions"
        assert exc_info.value.__cause__ is error

    def test_connection_fault_surfaces_as_operation_error(self, cache, client):
        client.get.side_effect = ConnectionRefusedError("refused")

        with pytest.raises(CacheOperationError) as exc_info:
            cache.put("alice", "token")

        assert exc_info.value.operation == "get"
        client.set.assert_not_called()

    def test_cache_usable_after_failure(self, cache, client):
        client.get.side_effect = [OSError("timed out"), "token"]

        with pytest.raises(CacheOperationError):
            cache.get("alice")

        assert cache.get("alice") == "token"

    def test_bulk_views_do_not_touch_client(self, cache, client):
        cache.size()
        cache.keys()
        cache.values()

        assert client.method_calls == []


class TestMemcachedCacheConfiguration:
    """Test cases for building and reconfiguring caches."""

    def test_set_cache_name(self):
        cache = MemcachedCache(MagicMock())

        cache.set_cache_name("  sessions ")

        assert cache.name == "sessions"
        assert str(cache) == "Memcache [sessions]"

    def test_blank_name_is_ignored(self):
        cache = MemcachedCache(MagicMock(), "sessions")

        cache.set_cache_name("   ")

        assert cache.name == "sessions"

    def test_set_cache_servers(self):
        client = MagicMock()
        cache = MemcachedCache(client, "sessions")

        cache.set_cache_servers(" cache-1:11211, cache-2:11212 ")

        assert client.add_server.call_count == 2
        client.add_server.assert_any_call("cache-1", 11211)
        client.add_server.assert_any_call("cache-2", 11212)

    def test_set_cache_servers_failure(self):
        client = MagicMock()
        client.add_server.side_effect = OSError("cannot resolve")
        cache = MemcachedCache(client, "sessions")

        with pytest.raises(CacheInitializationError) as exc_info:
            cache.set_cache_servers("cache-1:11211")

        assert "cache-1:11211" in exc_info.value.message

    def test_from_defaults(self):
        client = MagicMock()

        with patch("session_cache.app.memcached.cache.MemcachedClientBuilder.build", return_value=client) as build:
            cache = MemcachedCache.from_defaults(name="sessions", servers="127.0.0.1:11211")

        build.assert_called_once_with("sessions")
        assert cache.client is client
        assert cache.name == "sessions"
        client.add_server.assert_called_once_with("127.0.0.1", 11211)

    def test_from_defaults_without_servers(self):
        with patch("session_cache.app.memcached.cache.MemcachedClientBuilder.build", return_value=MagicMock()):
            cache = MemcachedCache.from_defaults()

        assert cache.name is None
        cache.client.add_server.assert_not_called()

    def test_from_defaults_build_failure(self):
        with patch(
            "session_cache.app.memcached.cache.MemcachedClientBuilder.build",
            side_effect=CacheInitializationError("Unable to build memcached client")
        ):
            with pytest.raises(CacheInitializationError):
                MemcachedCache.from_defaults(name="sessions")

    def test_from_defaults_invalid_settings(self, monkeypatch):
        monkeypatch.setenv("SESSION_CACHE_TIMEOUT", "soon")

        with pytest.raises(CacheConfigurationError):
            MemcachedCache.from_defaults(name="sessions")


class TestMemcachedCacheUnreachableServer:
    """Test a built client whose only server refuses connections."""

    @pytest.fixture
    def cache(self):
        builder = MemcachedClientBuilder(servers=[("127.0.0.1", 1)], connect_timeout=0.5, timeout=0.5)
        return MemcachedCache(builder.build("sessions"), "sessions")

    def test_every_operation_raises_after_fault(self, cache):
        with pytest.raises(CacheOperationError):
            cache.get("alice")

        for _ in range(4):
            with pytest.raises(CacheOperationError):
                cache.get("alice")
            with pytest.raises(CacheOperationError):
                cache.put("alice", "token123")
            with pytest.raises(CacheOperationError):
                cache.remove("alice")

    def test_put_after_fault_raises(self, cache):
        with pytest.raises(CacheOperationError):
            cache.get("alice")

        with pytest.raises(CacheOperationError):
            cache.put("alice", "token123")

    def test_non_ascii_key_reaches_server(self, cache):
        with pytest.raises(CacheOperationError) as exc_info:
            cache.get("josé")

        assert not isinstance(exc_info.value.__cause__, MemcacheIllegalInputError)
        assert isinstance(exc_info.value.__cause__, OSError)
