from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    ENV: str = "dev"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./lesson_approval.db"

    JWT_SECRET: str = "change_me"
    JWT_ALG: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60

    UPLOAD_DIR: str = "uploads"
    DEFAULT_LOCALE: str = "vi"

    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.1:8b"
    HTTP_CONNECT_TIMEOUT: float = 5
    HTTP_READ_TIMEOUT: float = 60
    RETRY_ATTEMPTS: int = 2

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
