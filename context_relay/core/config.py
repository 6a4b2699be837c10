"""
Конфигурация Context Relay.

Все параметры читаются из переменных окружения с префиксом
CONTEXT_RELAY__ (и из .env файла, если он есть).
"""

import logging
from typing import List

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class AppConfig(BaseSettings):
    """Настройки сервиса."""

    model_config = SettingsConfigDict(
        env_prefix="CONTEXT_RELAY__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service
    log_level: str = "INFO"
    version: str = "0.1.0"
    internal_api_key: str = "change-me-internal-key"

    # WhatsApp Cloud API
    whatsapp_token: str = ""
    whatsapp_phone_number_id: str = ""
    whatsapp_api_url: str = "https://graph.facebook.com/v18.0"
    whatsapp_app_secret: str = ""
    verify_token: str = "default_verify_token"

    # Groq (OpenAI-compatible) completion
    llm_mode: str = "groq"  # groq | mock
    groq_api_key: str = ""
    groq_base_url: str = "https://api.groq.com/openai/v1"
    groq_model: str = "deepseek-coder"
    groq_max_tokens: int = 4096
    groq_temperature: float = 0.7

    # Outbound timeouts (seconds)
    completion_timeout: float = 60.0
    delivery_timeout: float = 30.0

    # Conversation history
    history_max_turns: int = Field(default=20, ge=1)
    history_ttl_seconds: float = Field(default=1800, gt=0)
    # Системный ход не учитывается в лимите history_max_turns
    history_preserve_system_turn: bool = True

    # Place contexts
    context_ttl_seconds: float = Field(default=86400, gt=0)
    seed_default_contexts: bool = True
    region_min_lat: float = -8.16
    region_max_lat: float = -7.93
    region_min_lon: float = -35.00
    region_max_lon: float = -34.80

    # Background sweep of expired entries
    sweep_interval_seconds: float = Field(default=120, gt=0)

    # Delivery fallback
    window_expired_error_codes: List[int] = [131047]
    fallback_template_name: str = "hello_world"
    fallback_template_language: str = "pt_BR"

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got {value!r}")
        return value

    @field_validator("completion_timeout", "delivery_timeout")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if not 1.0 <= value <= 300.0:
            raise ValueError("timeout must be between 1 and 300 seconds")
        return value

    def missing_required(self) -> List[str]:
        """Имена обязательных переменных окружения, которые не заданы."""
        required = {
            "CONTEXT_RELAY__WHATSAPP_TOKEN": self.whatsapp_token,
            "CONTEXT_RELAY__WHATSAPP_PHONE_NUMBER_ID": self.whatsapp_phone_number_id,
        }
        if self.llm_mode.lower() != "mock":
            required["CONTEXT_RELAY__GROQ_API_KEY"] = self.groq_api_key
        return [key for key, value in required.items() if not value]


config = AppConfig()

# Logging setup
logging.basicConfig(
    level=config.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("context-relay")
