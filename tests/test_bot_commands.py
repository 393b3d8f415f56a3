import asyncio
import random
import unittest
from unittest.mock import AsyncMock, MagicMock

import numpy as np

from derby_sim.bot.commands import DerbyCommands
from derby_sim.config import GameConfig
from derby_sim.controller import RaceController
from derby_sim.engine import RaceState


async def _no_wait(_seconds):
    await asyncio.sleep(0)


def _interaction():
    interaction = MagicMock()
    interaction.response.defer = AsyncMock()
    interaction.followup.send = AsyncMock()
    interaction.channel.send = AsyncMock()
    return interaction


def _sent(interaction):
    kwargs = interaction.followup.send.call_args.kwargs
    return kwargs.get("content"), kwargs.get("embed")


class DerbyCommandsTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.controller = RaceController(
            GameConfig(race_distances=(1200, 1400), race_delay_ms=0),
            rng=random.Random(3),
            np_rng=np.random.default_rng(3),
            sleep=_no_wait,
        )
        self.cog = DerbyCommands(MagicMock(), self.controller)

    async def test_generate_horses_reports_count(self):
        interaction = _interaction()
        await self.cog.generate_horses.callback(self.cog, interaction, 12)
        content, _ = _sent(interaction)
        self.assertIn("Generated 12 horses", content)
        self.assertEqual(len(self.controller.horses), 12)
        interaction.response.defer.assert_awaited_once()

    async def test_invalid_count_is_reported_not_raised(self):
        interaction = _interaction()
        await self.cog.generate_horses.callback(self.cog, interaction, 0)
        content, _ = _sent(interaction)
        self.assertTrue(content.startswith("Invalid input:"))
        self.assertEqual(self.controller.horses, [])

    async def test_schedule_without_horses(self):
        interaction = _interaction()
        await self.cog.schedule.callback(self.cog, interaction)
        content, _ = _sent(interaction)
        self.assertTrue(content.startswith("Not ready:"))

    async def test_schedule_lists_races(self):
        self.controller.generate_horses(20)
        interaction = _interaction()
        await self.cog.schedule.callback(self.cog, interaction)
        _, embed = _sent(interaction)
        self.assertEqual(embed.title, "Race Schedule")
        self.assertIn("Round 2 - 1400m", embed.description)

    async def test_run_race_spawns_and_broadcasts(self):
        self.controller.generate_horses(20)
        self.controller.generate_race_schedule()
        interaction = _interaction()

        await self.cog.run_race.callback(self.cog, interaction, 1)
        content, _ = _sent(interaction)
        self.assertEqual(content, "Round 1 is starting.")

        await self.cog.race_tasks["race-1"]
        for _ in range(5):
            await asyncio.sleep(0)
        self.assertIs(self.controller.races[0].state, RaceState.COMPLETED)
        self.assertNotIn("race-1", self.cog.race_tasks)
        broadcasts = [c.args[0] for c in interaction.channel.send.await_args_list]
        self.assertTrue(any("is off" in message for message in broadcasts))
        self.assertTrue(any("finished" in message for message in broadcasts))

    async def test_run_race_refuses_completed_round(self):
        self.controller.generate_horses(20)
        self.controller.generate_race_schedule()
        await self.controller.run_single_race(1)
        interaction = _interaction()
        await self.cog.run_race.callback(self.cog, interaction, 1)
        content, _ = _sent(interaction)
        self.assertEqual(content, "Round 1 is completed. Reset it first.")

    async def test_unknown_race_results(self):
        interaction = _interaction()
        await self.cog.results.callback(self.cog, interaction, 4)
        content, _ = _sent(interaction)
        self.assertTrue(content.startswith("Not found:"))

    async def test_run_all_then_standings(self):
        self.controller.generate_horses(20)
        self.controller.generate_race_schedule()
        interaction = _interaction()
        await self.cog.run_all.callback(self.cog, interaction)
        await self.cog.race_tasks["schedule"]

        standings_interaction = _interaction()
        await self.cog.standings.callback(self.cog, standings_interaction)
        _, embed = _sent(standings_interaction)
        self.assertEqual(embed.title, "Standings")
        self.assertIn("1W / 1R", embed.description)

    async def test_reset_game_clears_controller(self):
        self.controller.generate_horses(20)
        interaction = _interaction()
        await self.cog.reset_game.callback(self.cog, interaction)
        self.assertEqual(self.controller.horses, [])
        content, _ = _sent(interaction)
        self.assertIn("Game reset", content)
