from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SYSDASH_", env_file=".env", extra="ignore")

    # external commands
    command_timeout: float | None = Field(default=None, gt=0)
    strict_stderr: bool = False

    # watch
    poll_interval: float = Field(default=2.0, gt=0)

    # logging
    log_level: str = "INFO"  # DEBUG|INFO|WARNING|ERROR
    log_file: str | None = None
    log_console: bool = True


settings = Settings()
