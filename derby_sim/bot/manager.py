from typing import Optional

import discord
from discord.ext import commands

from derby_sim.controller import RaceController

COMMANDS_COG_PATH = 'derby_sim.bot.commands'

class DerbyBotManager(commands.Bot):
    """Bot hosting a single race game; the commands cog drives its controller."""

    def __init__(self, command_prefix, intents, guild_id, controller: Optional[RaceController] = None):
        super().__init__(command_prefix=command_prefix, intents=intents)
        self.guild_id = guild_id
        self.controller = controller or RaceController(verbose=True)

    async def setup_hook(self):
        """Loads the commands cog and syncs slash commands to the test guild."""
        print("[DerbyBot] Running setup_hook...")
        try:
            await self.load_extension(COMMANDS_COG_PATH)
            print(f"[DerbyBot] Loaded cog: {COMMANDS_COG_PATH}")
        except Exception as e:
            print(f"[DerbyBot] Failed to load cog {COMMANDS_COG_PATH}: {e}")
            raise

        if not self.guild_id:
            await self.tree.sync()
            print("[DerbyBot] Synced commands globally")
            return

        guild = discord.Object(id=self.guild_id)
        self.tree.copy_global_to(guild=guild)
        try:
            await self.tree.sync(guild=guild)
            print(f"[DerbyBot] Synced commands to guild {self.guild_id}")
        except Exception as e:
            print(f"[DerbyBot] Failed to sync commands to guild {self.guild_id}: {e}")

    async def close(self):
        # Pending race timers would otherwise outlive the event loop
        self.controller.reset_game()
        await super().close()

    async def on_ready(self):
        print(f'[DerbyBot] Logged in as {self.user.name} ({self.user.id})')
