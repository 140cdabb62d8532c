"""Runtime settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ILLUME_", extra="ignore")

    app_name: str = "illume"
    log_level: str = "warning"
    # empty means stderr only; the program's stdout belongs to the document
    log_file: str = ""

    # loaded after the document when the document never names a profile
    profile: str = "llama.cpp"
    token: str = ""
    # extra directories searched for <name>.profile, os.pathsep separated
    profile_path: str = ""

    connect_timeout_seconds: float = 30.0
    timeout_seconds: float = 600.0


settings = Settings()
