import asyncio
import traceback
from typing import Dict, List, Optional, Sequence

import discord
from discord import app_commands
from discord.ext import commands

from derby_sim.config import get_config
from derby_sim.controller import RaceController
from derby_sim.engine import Horse, LifecycleEvent, Race, RaceResult, RaceState
from derby_sim.errors import ConflictError, GameError, NotFoundError, PreconditionError, ValidationError
from derby_sim.horse_lookup import HorseLookup, standings

STATE_BADGES = {
    "pending": "⏳",
    "racing": "🏇",
    "completed": "🏁",
}


def format_horse_line(horse: Horse) -> str:
    return f"`#{horse.horse_id:>2}` {horse.name:<10} | Cond {horse.condition:>3} | {horse.color.name}"


def format_race_line(race: Race) -> str:
    badge = STATE_BADGES.get(race.state.value, "")
    line = f"{badge} Round {race.round} - {race.distance}m - {len(race.horses)} horses - {race.state.value.capitalize()}"
    if race.winner:
        line += f" - Winner: {race.winner.horse.name} ({race.winner.time:.2f}s)"
    return line


def format_results_table(results: Sequence[RaceResult]) -> str:
    if not results:
        return "No results yet."
    lines = [f"{'Pos':<4}{'Horse':<12}{'Time':>7}{'Speed':>8}{'Gap':>7}"]
    for result in results:
        gap = "-" if result.position == 1 else f"+{result.gap:.2f}"
        lines.append(
            f"{result.position:<4}{result.horse.name[:11]:<12}{result.time:>6.2f}s{result.speed:>8.2f}{gap:>7}"
        )
    block = "\n".join(lines)
    return f"```\n{block}\n```"


def format_error(error: Exception) -> str:
    if isinstance(error, ValidationError):
        return f"Invalid input: {error}"
    if isinstance(error, NotFoundError):
        return f"Not found: {error}"
    if isinstance(error, PreconditionError):
        return f"Not ready: {error}"
    if isinstance(error, ConflictError):
        return f"Can't do that right now: {error}"
    if isinstance(error, GameError):
        return str(error)
    return "An unexpected error occurred."


def format_event(event: LifecycleEvent) -> Optional[str]:
    """Channel message for the events worth broadcasting; None for the rest."""
    if event.kind == "race_started":
        return f"🏇 Round {event.race_id} ({event.detail.get('distance')}m) is off!"
    if event.kind == "race_completed":
        return f"🏁 Round {event.race_id} finished. Winner: **{event.detail.get('winner')}**"
    if event.kind == "delay_started":
        seconds = int(event.detail.get("delay_ms", 0)) // 1000
        return f"Next race in {seconds} seconds..."
    if event.kind == "schedule_completed":
        return "All races are complete. Use `/standings` for the leaderboard."
    if event.kind == "schedule_failed":
        return "The race schedule was stopped."
    return None


class DerbyCommands(commands.Cog):
    """Cog exposing the race controller through slash commands."""

    def __init__(self, bot: commands.Bot, controller: Optional[RaceController] = None):
        self.bot = bot
        self.controller = controller or RaceController(verbose=True)
        self.broadcast_channel: Optional[discord.abc.Messageable] = None
        self.race_tasks: Dict[str, asyncio.Task] = {}
        self.controller.telemetry.subscribe(self._on_event)

    async def cog_unload(self):
        self.controller.telemetry.unsubscribe(self._on_event)
        for task in list(self.race_tasks.values()):
            task.cancel()

    def _on_event(self, event: LifecycleEvent) -> None:
        message = format_event(event)
        if message and self.broadcast_channel is not None:
            asyncio.get_running_loop().create_task(self._safe_send(message))

    async def _safe_send(self, message: str) -> None:
        try:
            await self.broadcast_channel.send(message)
        except Exception as err:
            print(f"[DerbyCommands] Failed to broadcast: {err}")

    def _spawn(self, key: str, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self.race_tasks[key] = task

        def _done(finished: asyncio.Task):
            if self.race_tasks.get(key) is finished:
                del self.race_tasks[key]
            if finished.cancelled():
                return
            err = finished.exception()
            if err is not None and not isinstance(err, GameError):
                print(f"[DerbyCommands] Background task {key} failed: {err}")

        task.add_done_callback(_done)

    async def _reply(self, interaction: discord.Interaction, content: str = None, *, embed: discord.Embed = None):
        await interaction.followup.send(content=content, embed=embed, ephemeral=True)

    @app_commands.command(name="generate_horses", description="Generate a fresh pool of horses.")
    @app_commands.describe(count="How many horses to generate (1-50).")
    async def generate_horses(self, interaction: discord.Interaction, count: Optional[int] = None):
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            horses = self.controller.generate_horses(count)
        except GameError as err:
            await self._reply(interaction, format_error(err))
            return
        await self._reply(interaction, f"Generated {len(horses)} horses. Use `/schedule` to build the races.")

    @app_commands.command(name="horses", description="List the current horse pool.")
    async def horses(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        pool = self.controller.horses
        if not pool:
            await self._reply(interaction, "No horses yet. Use `/generate_horses` first.")
            return
        lines = [format_horse_line(horse) for horse in pool]
        description = "\n".join(lines)
        if len(description) > 4000:
            description = description[:3980].rsplit("\n", 1)[0] + "\n..."
        embed = discord.Embed(title=f"Horse Pool ({len(pool)})", description=description, color=discord.Color.blue())
        await self._reply(interaction, embed=embed)

    @app_commands.command(name="schedule", description="Build the race schedule from the horse pool.")
    async def schedule(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            races = self.controller.generate_race_schedule()
        except GameError as err:
            await self._reply(interaction, format_error(err))
            return
        embed = discord.Embed(
            title="Race Schedule",
            description="\n".join(format_race_line(race) for race in races),
            color=discord.Color.blurple(),
        )
        embed.set_footer(text="Use /run_all to run every race, or /run_race <id> for a single round.")
        await self._reply(interaction, embed=embed)

    @app_commands.command(name="run_race", description="Run a single race from the schedule.")
    @app_commands.describe(race_id="The round number to run.")
    async def run_race(self, interaction: discord.Interaction, race_id: int):
        await interaction.response.defer(ephemeral=True, thinking=True)
        self.broadcast_channel = interaction.channel
        try:
            race = self.controller.get_race(race_id)
        except GameError as err:
            await self._reply(interaction, format_error(err))
            return
        if race.state is not RaceState.PENDING:
            await self._reply(interaction, f"Round {race_id} is {race.state.value}. Reset it first.")
            return
        self._spawn(f"race-{race_id}", self.controller.run_single_race(race_id))
        await self._reply(interaction, f"Round {race_id} is starting.")

    @app_commands.command(name="run_all", description="Run every scheduled race in order.")
    async def run_all(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        if not self.controller.races:
            await self._reply(interaction, format_error(PreconditionError("No races scheduled. Use `/schedule` first.")))
            return
        if self.controller.is_schedule_running:
            await self._reply(interaction, format_error(ConflictError("The race schedule is already running.")))
            return
        self.broadcast_channel = interaction.channel
        self._spawn("schedule", self.controller.run_all_races())
        await self._reply(interaction, f"Starting {len(self.controller.races)} races.")

    @app_commands.command(name="results", description="Show the results of a finished race.")
    @app_commands.describe(race_id="The round number to view.")
    async def results(self, interaction: discord.Interaction, race_id: int):
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            race = self.controller.get_race(race_id)
        except GameError as err:
            await self._reply(interaction, format_error(err))
            return
        embed = discord.Embed(title=f"Round {race.round} - {race.distance}m", color=discord.Color.gold())
        embed.add_field(name="Status", value=race.state.value.capitalize(), inline=True)
        if race.actual_duration_ms is not None:
            embed.add_field(name="Duration", value=f"{race.actual_duration_ms / 1000:.2f}s", inline=True)
        embed.add_field(name="Results", value=format_results_table(race.results or []), inline=False)
        await self._reply(interaction, embed=embed)

    @app_commands.command(name="standings", description="Leaderboard across all finished races.")
    async def standings(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        ranked = standings(self.controller.races)
        if not ranked:
            await self._reply(interaction, "No races have finished yet.")
            return
        lookup = HorseLookup(self.controller.races)
        lines: List[str] = []
        for rank, (horse_id, stats) in enumerate(ranked[:15], start=1):
            lines.append(
                f"{rank:>2}. {lookup.get_horse_name(horse_id)} (#{horse_id}) - "
                f"{stats.wins}W / {stats.races}R - best {stats.best_time:.2f}s"
            )
        embed = discord.Embed(title="Standings", description="\n".join(lines), color=discord.Color.green())
        await self._reply(interaction, embed=embed)

    @app_commands.command(name="reset_race", description="Reset one race back to pending.")
    @app_commands.describe(race_id="The round number to reset.")
    async def reset_race(self, interaction: discord.Interaction, race_id: int):
        await interaction.response.defer(ephemeral=True, thinking=True)
        try:
            self.controller.reset_race(race_id)
        except GameError as err:
            await self._reply(interaction, format_error(err))
            return
        await self._reply(interaction, f"Round {race_id} reset.")

    @app_commands.command(name="reset_all", description="Reset every race back to pending.")
    async def reset_all(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        self.controller.reset_all_races()
        await self._reply(interaction, "All races reset.")

    @app_commands.command(name="reset_game", description="Clear horses and races.")
    async def reset_game(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        self.controller.reset_game()
        await self._reply(interaction, "Game reset. Use `/generate_horses` to start again.")

    @app_commands.command(name="derby_help", description="Overview of Derby commands.")
    async def derby_help(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True, thinking=True)
        min_horses = get_config("game.min_horses_for_race", 10)
        help_lines = [
            "`/generate_horses [count]` - Generate a fresh horse pool.",
            f"`/schedule` - Build the race schedule (needs at least {min_horses} horses).",
            "`/run_race <race_id>` - Run a single round.",
            "`/run_all` - Run every round in order with a countdown between races.",
            "`/results <race_id>` - Finishing order, times and gaps.",
            "`/standings` - Wins and best times across finished races.",
            "`/reset_race <race_id>`, `/reset_all`, `/reset_game` - Start over.",
        ]
        embed = discord.Embed(
            title="Derby Help",
            description="\n".join(help_lines),
            color=discord.Color.dark_blue(),
        )
        await self._reply(interaction, embed=embed)

    async def cog_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        print(f"[DerbyCommands] Command error: {error}")
        traceback.print_exception(type(error), error, error.__traceback__)
        if interaction.response.is_done():
            await interaction.followup.send("An error occurred while running that command.", ephemeral=True)
        else:
            await interaction.response.send_message("An error occurred while running that command.", ephemeral=True)


async def setup(bot: commands.Bot):
    await bot.add_cog(DerbyCommands(bot, getattr(bot, "controller", None)))
    print("DerbyCommands cog loaded.")
