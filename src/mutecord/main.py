"""
Mute/Deafen Announcer
=====================

A Discord bot that watches members' self-mute and self-deafen flags and posts
a short, randomised announcement in a text channel whenever one flips.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. MUTECORD_HOME environment variable, if set.
    2. If running in a frozen/compiled context, use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("MUTECORD_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from mutecord.configuration.app_configuration import app_config
from mutecord.configuration.bot_settings import ConfigurationError
from mutecord.runtime import AnnouncerRuntime, build_runtime
from mutecord.ui.console import ConsoleControl, close_bot_instance, console_session
from mutecord.util.logger import get_logger, handle_exception

logger = get_logger("main")

RESTART_EXIT_CODE = 42


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Intents for voice state tracking and the text command interface."""
    intents = discord.Intents.default()
    intents.voice_states = True
    intents.guilds = True
    intents.members = True
    intents.messages = True
    intents.message_content = True
    return intents


def load_cogs(discord_bot_instance: discord.Bot, runtime: AnnouncerRuntime) -> None:
    """Register all operational cogs with the provided Discord bot instance."""
    from mutecord.bot.cogs import command_listener, debug_cmds, events_listener, voice_listener

    debug_cmds.setup(discord_bot_instance, runtime)
    events_listener.setup(discord_bot_instance, runtime)
    voice_listener.setup(discord_bot_instance, runtime)
    command_listener.setup(discord_bot_instance, runtime)

    logger.info("All cogs loaded successfully.")


def create_bot(runtime: AnnouncerRuntime) -> discord.Bot:
    """Instantiate the Discord bot and register all cogs."""
    bot = discord.Bot(intents=build_intents())
    load_cogs(bot, runtime)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and log around the connection lifetime."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None, runtime: AnnouncerRuntime | None = None) -> None:
    """Stop the sweeps, flush pending deliveries and close the bot."""
    if runtime is not None:
        try:
            await runtime.shutdown()
        except Exception as exc:
            logger.exception("Error during announcer runtime shutdown: %s", exc)

    await close_bot_instance(bot, log_close=True)
    logger.info("Shutdown complete.")


async def run_bot_session(
    bot: discord.Bot,
    token: str,
    control: ConsoleControl,
    runtime: AnnouncerRuntime,
) -> int:
    """Run the bot alongside the console, returning an exit code."""
    control.set_bot(bot)
    exit_code = 0

    try:
        async with console_session(control):
            try:
                await start_bot(bot, token)
            except asyncio.CancelledError:
                logger.info("Bot start cancelled; proceeding to shutdown")
            except Exception as exc:
                logger.critical("Discord bot runtime error: %s", exc)
                exit_code = 1
    finally:
        control.set_bot(None)
        await shutdown_runtime(bot, runtime)

    return exit_code


async def async_main() -> int:
    """Load configuration, build the runtime and run the bot; return an exit code."""
    token = load_environment()

    try:
        runtime = build_runtime(app_config)
    except ConfigurationError as exc:
        logger.critical("Invalid configuration: %s", exc)
        return 1

    try:
        bot = create_bot(runtime)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    control = ConsoleControl(runtime)
    exit_code = await run_bot_session(bot, token, control, runtime)

    if control.is_restart_requested():
        logger.info("Restart requested, returning exit code %d to trigger restart", RESTART_EXIT_CODE)
        return RESTART_EXIT_CODE

    return exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code.

    Returns 42 internally to trigger a restart, which re-executes the process.
    """
    logger.info("Starting Mute/Deafen Announcer…")
    try:
        exit_code = asyncio.run(async_main())

        if exit_code == RESTART_EXIT_CODE:
            logger.info("Restart requested; replacing current process with new instance.")
            os.execv(sys.executable, [sys.executable] + sys.argv)
            return 0  # pragma: no cover

        return exit_code
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        if code is None:
            return 1
        try:
            return int(code)
        except (ValueError, TypeError):
            logger.warning("SystemExit.code is not an int (%r); defaulting to 1", code)
            return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    print(f"Exited with code: {main()}")
