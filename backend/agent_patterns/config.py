from pydantic_settings import BaseSettings
from pathlib import Path

from agent_patterns.constants import DEFAULT_FLUSH_THRESHOLD


class Settings(BaseSettings):
    # None lets the OpenAI SDK fall back to OPENAI_API_KEY
    OPENROUTER_API_KEY: str | None = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_MODEL: str = "openai/gpt-4.1-mini"

    # Small, cheap model used to rewrite tap batches
    PARAPHRASE_MODEL: str = "openai/gpt-4.1-nano"

    TAP_FLUSH_THRESHOLD: int = DEFAULT_FLUSH_THRESHOLD

    LLM_TIMEOUT_SECONDS: float = 120.0
    LLM_CONNECT_TIMEOUT_SECONDS: float = 10.0

    ROOT_DIR: Path = Path(__file__).resolve().parent.parent.parent

    model_config = {
        "env_file": str(Path(__file__).resolve().parent.parent.parent / ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
