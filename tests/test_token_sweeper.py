"""
Tests for the background token sweep loop.
"""

import asyncio

import pytest

from siteconnect.services.token_sweeper import TokenSweeper
from tests.fakes import make_credential


class TestTokenSweeper:
    @pytest.mark.asyncio
    async def test_sweeps_until_stopped(self):
        runs = 0

        async def sweep() -> int:
            nonlocal runs
            runs += 1
            return 0

        sweeper = TokenSweeper(sweep, interval_seconds=0.01)
        sweeper.start()
        await asyncio.sleep(0.1)
        assert sweeper.is_running

        await sweeper.stop()
        seen = runs
        await asyncio.sleep(0.05)

        assert seen >= 2
        assert runs == seen
        assert not sweeper.is_running

    @pytest.mark.asyncio
    async def test_failing_sweep_keeps_the_loop_alive(self):
        runs = 0

        async def sweep() -> int:
            nonlocal runs
            runs += 1
            raise RuntimeError("database went away")

        sweeper = TokenSweeper(sweep, interval_seconds=0.01)
        sweeper.start()
        await asyncio.sleep(0.1)
        await sweeper.stop()

        assert runs >= 2

    @pytest.mark.asyncio
    async def test_sweeps_the_refresher(self, refresher, credential_repo, cipher, provider):
        credential_repo.add(make_credential(cipher, expires_in=30))

        sweeper = TokenSweeper(refresher.refresh_expiring, interval_seconds=0.01)
        sweeper.start()
        for _ in range(50):
            if provider.refresh_calls:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

        assert provider.refresh_calls[0] == "refresh-0"
