"""
Workflow Sage Configuration.

Centralized configuration management using Pydantic Settings.
Loads configuration from environment variables.
"""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def get_xdg_state_dir() -> str:
    """
    Get XDG-compliant state directory for Workflow Sage logs.

    Follows XDG Base Directory Specification:
    - Uses $XDG_STATE_HOME/workflowsage if XDG_STATE_HOME is set
    - Falls back to $HOME/.local/state/workflowsage if not set
    - Returns relative path ./logs if HOME not available (dev/testing)

    Returns:
        str: Path to state/logs directory
    """
    xdg_state_home = os.getenv("XDG_STATE_HOME")
    if xdg_state_home:
        return str(Path(xdg_state_home) / "workflowsage" / "logs")

    home = os.getenv("HOME")
    if home:
        return str(Path(home) / ".local" / "state" / "workflowsage" / "logs")

    # Fallback for development/testing environments without HOME
    return "./logs"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./workflowsage.db"

    # Language model
    llm_provider: str = "anthropic"  # anthropic or openai
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-3-7-sonnet-20250219"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"

    # Per-operation generation parameters
    discovery_max_tokens: int = 20000
    discovery_temperature: float = 0.7
    diagram_max_tokens: int = 20000
    diagram_temperature: float = 0.2
    recommendations_max_tokens: int = 4000
    recommendations_temperature: float = 0.7
    followup_max_tokens: int = 2000
    followup_temperature: float = 0.7
    title_max_tokens: int = 50
    title_temperature: float = 0.7
    implementation_prompt_max_tokens: int = 2000
    implementation_prompt_temperature: float = 0.7

    # Web search
    search_api_key: str = ""
    search_engine: str = "serper"  # serper or google
    google_search_engine_id: str = ""
    search_timeout_seconds: float = 15.0
    search_result_count: int = 10

    # Message deduplication
    dedup_window_seconds: float = 10.0
    dedup_prefix_length: int = 50
    dedup_cleanup_threshold: int = 100

    # Recommendation tool loop
    max_tool_rounds: int = 5

    # Chat titles
    default_chat_title: str = "New Chat"
    title_min_length: int = 3
    title_max_length: int = 60
    title_after_user_turns: int = 3

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = True
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Application
    environment: str = "development"

    # Logging
    log_level: str = "INFO"
    log_dir: str = ""  # XDG-compliant log directory (defaults to XDG state dir if empty)
    log_format: str = "standard"  # standard or json
    log_console_enabled: bool = True
    log_file_enabled: bool = True
    log_max_bytes: int = 10_485_760  # 10MB per log file
    log_backup_count: int = 5
    log_to_stdout: bool = True  # Log INFO/DEBUG to stdout
    log_to_stderr: bool = True  # Log WARNING/ERROR/CRITICAL to stderr

    # LLM Logging
    llm_logging_enabled: bool = False  # Enable detailed LLM interaction logging
    llm_log_requests: bool = True
    llm_log_responses: bool = True
    llm_log_tokens: bool = True

    @property
    def log_directory(self) -> Path:
        """Get the log directory path, using XDG default if not specified."""
        if self.log_dir:
            return Path(self.log_dir).expanduser()
        return Path(get_xdg_state_dir())

    @property
    def llm_api_key(self) -> str:
        """API key for the configured language model provider."""
        if self.llm_provider == "openai":
            return self.openai_api_key
        return self.anthropic_api_key

    @property
    def llm_model(self) -> str:
        """Model identifier for the configured language model provider."""
        if self.llm_provider == "openai":
            return self.openai_model
        return self.anthropic_model


# Global settings instance
settings = Settings()
