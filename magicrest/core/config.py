from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MAGICREST_",
        case_sensitive=True,
        extra="ignore",
    )

    DEFAULT_PAGE: int = 1
    DEFAULT_PAGE_SIZE: int = 10
    DEFAULT_ORDER: str = "created_at desc"
    GROUP_BY_TIMESTAMP_COLUMN: str = "created_at"

settings = Settings()
