from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_name: str = "worldbuilder-backend"
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    log_level: str = "INFO"

    database_url: str

    # Overrides the bundled Jinja2 templates directory when set
    templates_dir: str | None = None
    archive_compress_level: int = 9

settings = Settings()
