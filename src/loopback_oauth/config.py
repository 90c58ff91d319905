from pathlib import Path

from platformdirs import user_config_dir
from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

CONFIG_DIR_NAME = "loopback-oauth"


class ListenerSettings(BaseSettings):
    """Configuration settings for the callback listener."""

    # Seconds to wait for the redirect when the caller gives no timeout
    default_timeout: float = Field(default=300.0, gt=0)

    # Seconds between shutdown checks of the serve loop
    poll_interval: float = Field(default=0.1, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="LOOPBACK_OAUTH_",
        json_file=Path(user_config_dir(CONFIG_DIR_NAME)) / "config.json",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
            JsonConfigSettingsSource(settings_cls),
        )


SETTINGS = ListenerSettings()
