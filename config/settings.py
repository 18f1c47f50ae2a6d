from pydantic import Field
from pydantic_settings import BaseSettings


class BotSettings(BaseSettings):
    discord_token: str = Field(default="", description="Discord bot token")
    database_url: str = Field(default="sqlite:///data/bot.db", description="Database connection URL")

    bot_prefix: str = Field(default="!", description="Default command prefix")
    owner_ids: list[int] = Field(default_factory=list, description="User IDs of the bot owners")
    environment: str = Field(default="development", description="Environment")
    log_level: str = Field(default="DEBUG", description="Logging level")

    # Dispatcher behaviour
    command_editable_duration: int = Field(
        default=30, description="Seconds during which editing a command message re-runs the command"
    )
    non_command_editable: bool = Field(
        default=True, description="Whether editing a non-command message into a command runs it"
    )

    # Argument prompting
    argument_wait: int = Field(default=30, description="Default seconds to wait for a prompt reply")
    prompt_limit: int | None = Field(
        default=None, description="Default maximum prompts per argument (unlimited when unset)"
    )

    # Development settings
    debug: bool = Field(default=False, description="Enable debug mode")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = BotSettings()
