from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── LLM Provider ─────────────────────────────────────────────────────────
    # Options: "openai" (default) or "bedrock"
    llm_provider: str = "openai"

    # ── OpenAI ───────────────────────────────────────────────────────────────
    openai_api_key: str = ""
    openai_model_id: str = "gpt-4o-mini"          # load evaluation
    openai_chat_model_id: str = "gpt-3.5-turbo"   # free-form prompts + issue analysis

    # ── AWS Bedrock ──────────────────────────────────────────────────────────
    aws_default_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_profile: str = ""
    bedrock_model_id: str = "anthropic.claude-3-5-sonnet-20241022-v2:0"

    # ── Generation parameters ────────────────────────────────────────────────
    evaluation_temperature: float = 0.3
    evaluation_max_tokens: int = 500
    chat_temperature: float = 0.7
    chat_max_tokens: int = 150
    analysis_temperature: float = 0.7
    analysis_max_tokens: int = 500

    # ── Jira ─────────────────────────────────────────────────────────────────
    jira_url: str = ""
    jira_username: str = ""
    jira_api_token: str = ""
    jira_projects_filter: str = ""

    # ── Persistence ──────────────────────────────────────────────────────────
    sqlite_db_path: str = "data/cognitive_load.db"
    db_echo: bool = False

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    activity_log_path: str = "logs/activity.jsonl"
    llm_log_path: str = "logs/llm_calls.jsonl"

    # ── Resolver server ──────────────────────────────────────────────────────
    server_host: str = "0.0.0.0"
    server_port: int = 8080

    # ── Derived helpers ──────────────────────────────────────────────────────
    @property
    def provider(self) -> str:
        return self.llm_provider.lower().strip()

    @property
    def evaluation_model_id(self) -> str:
        return self.bedrock_model_id if self.provider == "bedrock" else self.openai_model_id

    @property
    def chat_model_id(self) -> str:
        return self.bedrock_model_id if self.provider == "bedrock" else self.openai_chat_model_id


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
