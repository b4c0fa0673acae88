"""Shared base classes for settings modules."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class AdapterSettings(BaseSettings):
    """Base class for queue and storage adapter settings.

    All adapter settings inherit from this class to ensure consistent
    configuration behavior (env file loading, case sensitivity). Instances
    are frozen: an adapter's connection configuration does not change after
    the adapter is built.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )
