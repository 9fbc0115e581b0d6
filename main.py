#!/usr/bin/env python3
"""
Start the quizdeck Discord bot.

Reads config.json (or the file named by QUIZDECK_CONFIG), sets up logging and
connects to Discord. The bot token comes from DISCORD_BOT_TOKEN when set,
otherwise from bot.token in the config file. The quiz section points at the
question bank and attachment list; see config.json for every key.

    python main.py
"""

import asyncio
import json
import logging
import os
import sys
from pathlib import Path

PLACEHOLDER_TOKEN = "YOUR_DISCORD_BOT_TOKEN_HERE"


def read_config(path: Path) -> dict:
    """Parse the config file, exiting with a readable message when it is unusable."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = json.load(f)
    except FileNotFoundError:
        sys.exit(f"❌ {path} not found. Copy config.json and fill in your bot token.")
    except json.JSONDecodeError as e:
        sys.exit(f"❌ {path} is not valid JSON: {e}")
    except OSError as e:
        sys.exit(f"❌ Could not read {path}: {e}")

    if not isinstance(config, dict):
        sys.exit(f"❌ {path} must contain a JSON object")
    return config


def resolve_token(config: dict) -> str:
    token = os.getenv('DISCORD_BOT_TOKEN') or config.get('bot', {}).get('token')
    if not token or token == PLACEHOLDER_TOKEN:
        sys.exit(
            "❌ No Discord bot token. Set DISCORD_BOT_TOKEN or bot.token in the config file."
        )
    return token


def configure_logging(config: dict) -> None:
    """Log to the console and to bot.log in the configured directory."""
    settings = config.get('logging', {})
    level = getattr(logging, str(settings.get('level', 'INFO')).upper(), logging.INFO)
    log_dir = Path(settings.get('log_directory', './logs/'))
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_dir / "bot.log", encoding='utf-8'),
        ]
    )
    # discord.py is chatty at INFO
    for name in ('discord', 'discord.http', 'discord.gateway'):
        logging.getLogger(name).setLevel(logging.WARNING)


async def main() -> None:
    config = read_config(Path(os.getenv('QUIZDECK_CONFIG', 'config.json')))
    configure_logging(config)
    token = resolve_token(config)

    from quizdeck.bot import run_bot
    await run_bot(token, config)


if __name__ == "__main__":
    print("🎯 Starting quizdeck...")
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n👋 quizdeck stopped")
