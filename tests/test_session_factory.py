"""
Tests for the session factory stage.
"""

import pytest

from ccmstatus.application.session_factory import (
    SessionBatch,
    SessionFactory,
    close_sessions,
    normalize_host_name,
    validate_host_names,
)
from ccmstatus.domain.errors import HostListError
from ccmstatus.domain.models import Credential, SessionProtocol, UNRESOLVED

from conftest import LOCAL_NAME, FakeResolver, FakeTransport


class TestNormalizeHostName:
    """Host name normalization."""

    @pytest.mark.parametrize("raw, expected", [
        ("Server01.domain.local", "server01"),
        ("SERVER01", "server01"),
        ("web-02.eu.corp.example.com", "web-02"),
        ("  Server03.corp  ", "server03"),
    ])
    def test_strips_domain_and_lowercases(self, raw, expected):
        assert normalize_host_name(raw) == expected

    def test_ip_literal_kept_whole(self):
        assert normalize_host_name("10.1.2.3") == "10.1.2.3"


class TestValidateHostNames:
    """Input validation is the only fatal failure."""

    def test_none_is_fatal(self):
        with pytest.raises(HostListError):
            validate_host_names(None)

    def test_empty_is_fatal(self):
        with pytest.raises(HostListError):
            validate_host_names([])

    def test_blank_entry_is_fatal(self):
        with pytest.raises(HostListError):
            validate_host_names(["server01", "  "])

    def test_single_string_accepted(self):
        assert validate_host_names("server01") == ["server01"]


class TestSessionFactory:
    """Session creation per host."""

    def test_remote_host_connected_with_caller_credential(self, factory, transport, provider, credential):
        sessions = factory.create_sessions(["Server01.corp.example.com"], credential)

        assert len(sessions) == 1
        session = sessions[0]
        assert session.host_name == "server01"
        assert session.fqdn == "server01.corp.example.com"
        assert session.connected is True
        assert session.session is not None
        assert session.credential == credential
        assert provider.calls == []
        assert transport.calls == [("server01.corp.example.com", credential, SessionProtocol.LEGACY, False)]

    def test_remote_host_without_credential_asks_provider(self, factory, provider, credential):
        sessions = factory.create_sessions(["server01"])

        assert provider.calls == ["server01"]
        assert sessions[0].credential == credential

    def test_local_host_never_prompts(self, factory, transport, provider, credential):
        sessions = factory.create_sessions([LOCAL_NAME.upper()], credential)

        assert provider.calls == []
        assert sessions[0].credential is None
        assert sessions[0].connected is True
        fqdn, used_credential, _, local = transport.calls[0]
        assert used_credential is None
        assert local is True

    @pytest.mark.parametrize("alias", [".", "localhost", "LOCALHOST", "127.0.0.1", "::1"])
    def test_local_aliases_map_to_local_name(self, factory, transport, provider, alias):
        sessions = factory.create_sessions([alias])

        assert sessions[0].host_name == LOCAL_NAME
        assert sessions[0].fqdn == f"{LOCAL_NAME}.corp.example.com"
        assert sessions[0].connected is True
        assert sessions[0].credential is None
        assert provider.calls == []
        assert transport.calls[0][3] is True

    def test_credential_failure_marks_host_unconnected(self, transport, resolver):
        class BlankUsernameProvider:
            def __init__(self):
                self.calls = []

            def get_credential(self, host_name):
                self.calls.append(host_name)
                return Credential(username="  ", password="pw")

        provider = BlankUsernameProvider()
        factory = SessionFactory(transport, resolver, provider, local_name=LOCAL_NAME)

        sessions = factory.create_sessions([LOCAL_NAME, "server01", "server02"])

        assert [s.host_name for s in sessions] == [LOCAL_NAME, "server01", "server02"]
        assert [s.connected for s in sessions] == [True, False, False]
        assert sessions[1].fqdn == "server01.corp.example.com"
        assert sessions[1].credential is None
        assert provider.calls == ["server01", "server02"]
        # Only the local host reached the transport
        assert len(transport.calls) == 1

    def test_aborted_prompt_closes_opened_sessions(self, transport, resolver):
        class AbortingProvider:
            def get_credential(self, host_name):
                raise KeyboardInterrupt

        factory = SessionFactory(transport, resolver, AbortingProvider(), local_name=LOCAL_NAME)
        opened = []
        original_open = transport.open

        def tracking_open(*args, **kwargs):
            handle = original_open(*args, **kwargs)
            opened.append(handle)
            return handle

        transport.open = tracking_open

        with pytest.raises(KeyboardInterrupt):
            factory.create_sessions([LOCAL_NAME, "server01"])

        assert len(opened) == 1
        assert opened[0].closed is True

    def test_unresolved_host_is_not_connected(self, provider, credential):
        transport = FakeTransport()
        factory = SessionFactory(
            transport=transport,
            resolver=FakeResolver({}),
            credential_provider=provider,
            local_name=LOCAL_NAME,
        )

        sessions = factory.create_sessions(["ghost.corp.example.com"], credential)

        assert sessions[0].host_name == "ghost"
        assert sessions[0].fqdn == UNRESOLVED
        assert sessions[0].connected is False
        assert sessions[0].session is None
        assert transport.calls == []
        assert provider.calls == []

    def test_connection_failure_does_not_abort_batch(self, resolver, provider, credential):
        transport = FakeTransport(failing={"server01.corp.example.com"})
        factory = SessionFactory(transport, resolver, provider, local_name=LOCAL_NAME)

        sessions = factory.create_sessions(["server01", "ghost", "server02"], credential)

        assert [s.host_name for s in sessions] == ["server01", "ghost", "server02"]
        assert [s.connected for s in sessions] == [False, False, True]
        assert sessions[0].fqdn == "server01.corp.example.com"
        assert sessions[0].session is None
        # No retry after a failed open
        assert [call[0] for call in transport.calls] == [
            "server01.corp.example.com",
            "server02.corp.example.com",
        ]

    def test_protocol_hint_passed_to_transport(self, transport, resolver, credential):
        factory = SessionFactory(transport, resolver, protocol=SessionProtocol.SECURE, local_name=LOCAL_NAME)

        factory.create_sessions(["server01"], credential)

        assert transport.calls[0][2] == SessionProtocol.SECURE

    def test_empty_host_list_raises(self, factory):
        with pytest.raises(HostListError):
            factory.create_sessions([])


class TestSessionCleanup:
    """Callers own session handles."""

    def test_close_sessions_closes_connected_handles(self, factory, credential):
        sessions = factory.create_sessions(["server01", "ghost"], credential)
        handle = sessions[0].session

        close_sessions(sessions)

        assert handle.closed is True

    def test_session_batch_closes_on_exit(self, factory, credential):
        with SessionBatch(factory, ["server01", "server02"], credential) as sessions:
            handles = [s.session for s in sessions]
            assert all(not h.closed for h in handles)

        assert all(h.closed for h in handles)

    def test_session_batch_closes_on_error(self, factory, credential):
        with pytest.raises(RuntimeError):
            with SessionBatch(factory, ["server01"], credential) as sessions:
                handle = sessions[0].session
                raise RuntimeError("boom")

        assert handle.closed is True
