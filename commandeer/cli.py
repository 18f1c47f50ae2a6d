import asyncio
import importlib
import logging
import os
from pathlib import Path
from typing import List, Optional

import typer

from config.settings import settings

from .core.bot import CommandBot

app = typer.Typer(
    name="commandeer",
    help="Command framework for hikari bots",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def load_setup_modules(bot: CommandBot, modules: List[str]) -> None:
    """Import each module and call its ``setup(bot)`` hook to register groups and commands."""
    for module_name in modules:
        module = importlib.import_module(module_name)
        setup = getattr(module, "setup", None)
        if not callable(setup):
            raise typer.BadParameter(f"Module {module_name} has no setup(bot) function")
        setup(bot)


@app.command()
def run(
    dev: bool = typer.Option(False, "--dev", help="Run in development mode"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Set log level"),
    module: Optional[List[str]] = typer.Option(
        None, "--module", "-m", help="Module with a setup(bot) function registering commands"
    ),
) -> None:
    """Run the bot."""
    if dev:
        os.environ["ENVIRONMENT"] = "development"

    if log_level:
        os.environ["LOG_LEVEL"] = log_level

    setup_logging(log_level or settings.log_level)

    bot = CommandBot()
    load_setup_modules(bot, module or [])
    bot.run()


@app.command()
def init(
    directory: Optional[str] = typer.Option(None, help="Directory to initialize")
) -> None:
    """Initialize a new bot project."""
    target_dir = Path(directory) if directory else Path.cwd()

    if not target_dir.exists():
        target_dir.mkdir(parents=True)

    (target_dir / "data").mkdir(exist_ok=True)

    env_file = target_dir / ".env"
    if not env_file.exists():
        env_content = """# Discord Bot Configuration
DISCORD_TOKEN=your_discord_bot_token_here
BOT_PREFIX=!
OWNER_IDS=[]
DATABASE_URL=sqlite:///data/bot.db
ENVIRONMENT=development
LOG_LEVEL=INFO
COMMAND_EDITABLE_DURATION=30
ARGUMENT_WAIT=30
"""
        env_file.write_text(env_content)

    typer.echo(f"✅ Bot project initialized in {target_dir}")


@app.command()
def db(
    action: str = typer.Argument(help="Action: create, reset, check"),
) -> None:
    """Database management commands."""

    async def run_db_command() -> None:
        from .database import DatabaseManager

        db_manager = DatabaseManager()
        try:
            if action == "create":
                await db_manager.create_tables()
                typer.echo("✅ Database tables created")
            elif action == "reset":
                confirm = typer.confirm("⚠️  This will delete all data. Continue?")
                if confirm:
                    await db_manager.drop_tables()
                    await db_manager.create_tables()
                    typer.echo("✅ Database reset completed")
            elif action == "check":
                if await db_manager.health_check():
                    typer.echo("✅ Database connection OK")
                else:
                    typer.echo("❌ Database connection failed")
                    raise typer.Exit(code=1)
            else:
                typer.echo(f"Unknown action: {action}")
        finally:
            await db_manager.close()

    asyncio.run(run_db_command())


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
