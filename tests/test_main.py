"""Tests for seeborg/main.py — the run loop and shutdown through the registry."""

from __future__ import annotations

import asyncio
import os
import signal
import sys
from unittest.mock import patch

import pytest

from helpers import make_client, make_config
from seeborg.bot import SeeBorg, SessionState
from seeborg.main import run


class TestRun:
    @pytest.mark.asyncio
    async def test_run_starts_and_cleans_up(self, tmp_path, registry):
        client = make_client()
        stop = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, stop.set)

        states = []
        original_destroy = SeeBorg.destroy

        async def _destroy(self):
            states.append(self.state)
            return await original_destroy(self)

        with patch("seeborg.main.create_client", return_value=client), patch(
            "seeborg.main._install_signal_handlers"
        ), patch.object(SeeBorg, "destroy", _destroy):
            await run(make_config(tmp_path, token="abc"), registry=registry, stop=stop)

        assert states == [SessionState.STARTED]
        client.start.assert_awaited_once_with("abc")
        client.close.assert_awaited_once()
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_run_cleans_up_when_start_fails(self, tmp_path, registry):
        client = make_client()

        with patch("seeborg.main.create_client", return_value=client), patch(
            "seeborg.main._install_signal_handlers"
        ), patch.object(SeeBorg, "register_listeners", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                await run(make_config(tmp_path), registry=registry, stop=asyncio.Event())

        client.close.assert_awaited_once()
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_signal_handler_receives_stop_event(self, tmp_path, registry):
        client = make_client()
        stop = asyncio.Event()
        installed = []

        def _install(loop, event):
            installed.append(event)
            loop.call_soon(event.set)

        with patch("seeborg.main.create_client", return_value=client), patch(
            "seeborg.main._install_signal_handlers", side_effect=_install
        ):
            await run(make_config(tmp_path), registry=registry, stop=stop)

        assert installed == [stop]
        assert len(registry) == 0

    @pytest.mark.asyncio
    @pytest.mark.skipif(sys.platform == "win32", reason="loop signal handlers are Unix-only")
    async def test_sigterm_stops_run_and_handlers_are_removed(self, tmp_path, registry):
        client = make_client()
        loop = asyncio.get_running_loop()
        loop.call_later(0.05, os.kill, os.getpid(), signal.SIGTERM)

        with patch("seeborg.main.create_client", return_value=client):
            await run(make_config(tmp_path), registry=registry)

        client.close.assert_awaited_once()
        assert len(registry) == 0
        assert loop.remove_signal_handler(signal.SIGTERM) is False
        assert loop.remove_signal_handler(signal.SIGINT) is False
