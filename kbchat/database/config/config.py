"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Missing required fields raise a validation error at import time.
- `extra="ignore"`: unknown env vars are ignored (not an error).
- `API_KEY` is optional here so the service can still run in direct mode;
  the app lifespan reports a missing key when generative mode is selected.

Usage
-----
from kbchat.database.config.config import settings

# Example
db_url = settings.DATABASE_URL
openai_model = settings.OPEN_AI_MODEL

Security
--------
- Never commit secrets or the `.env` file to source control.
- Prefer runtime environment variables in production.
"""

from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    DATABASE_URL: str = Field(..., description="SQLAlchemy connection URL of the knowledge-base store.")
    API_KEY: Optional[str] = Field(None, description="OpenAI API key used by the generative answer mode.")
    OPEN_AI_MODEL: str = Field("gpt-4o-mini", description="OpenAI chat model name.")
    LLM_TEMPERATURE: float = Field(0.2, description="Sampling temperature of the chat model.")
    LLM_TIMEOUT_SECONDS: float = Field(30.0, description="Upper bound for a single model request.")
    LLM_MAX_RETRIES: int = Field(2, description="Retries (with backoff) on transient provider errors.")
    ANSWER_MODE: Literal["generative", "direct"] = Field(
        "generative", description="How retrieved entries are turned into an answer."
    )
    DIRECT_FALLBACK_ON_MODEL_ERROR: bool = Field(
        False, description="Answer with stored entries when the model call fails."
    )
    RANKING_STRATEGY: Literal["trigram_similarity", "trigram_distance", "full_text"] = Field(
        "trigram_similarity", description="Relevance ranker used by the context retriever."
    )
    SIMILARITY_THRESHOLD: float = Field(0.1, description="Minimum trigram similarity for a match.")
    MAX_CONTEXT_RESULTS: int = Field(3, description="Number of entries retrieved per question.")
    FRONTEND_URL: str = Field("*", description="Allowed CORS origin of the chat widget/admin UI.")
    HTTPS_PROXY: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("HTTPS_PROXY", "https_proxy", "HTTP_PROXY", "http_proxy"),
        description="Outbound proxy for model requests.",
    )
    PREFER_IPV4: bool = Field(True, description="Connect to the model API over IPv4 only.")
    LOG_LEVEL: str = Field("INFO", description="Root log level.")


# Singleton instance of Settings, ready to be imported across the app
settings = Settings()
"""Defines a Settings object that contains the contents of the .env file"""
