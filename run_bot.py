import os
import sys

import discord
from dotenv import load_dotenv

from derby_sim.bot.manager import DerbyBotManager

# Load environment variables from .env file
load_dotenv()
DISCORD_BOT_TOKEN = os.getenv('DISCORD_BOT_TOKEN')
GUILD_ID = os.getenv('DISCORD_GUILD_ID')  # Server ID for fast command sync; optional

def run_bot():
    """Initializes and runs the Discord bot."""
    if not DISCORD_BOT_TOKEN:
        print("FATAL ERROR: DISCORD_BOT_TOKEN not found in .env file.")
        sys.exit(1)

    intents = discord.Intents.default()
    guild_id = int(GUILD_ID) if GUILD_ID else None
    bot = DerbyBotManager(command_prefix="!", intents=intents, guild_id=guild_id)

    try:
        print("Starting Discord bot...")
        bot.run(DISCORD_BOT_TOKEN)
    except Exception as e:
        print(f"Error running bot: {e}")
        raise

if __name__ == "__main__":
    run_bot()
