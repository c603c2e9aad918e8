"""
Settings do viewkit, carregados de variáveis de ambiente e arquivos .env.

Ordem de precedência (a primeira vence):
    1. variáveis de ambiente
    2. .env.{ENVIRONMENT}, por exemplo .env.production
    3. .env
    4. defaults declarados em Settings

Projetos estendem Settings e registram a subclasse com configure():

    class BlogSettings(Settings):
        moderation_enabled: bool = True

    settings = configure(settings_class=BlogSettings, page_size=10)
"""

import logging
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import Field as PydanticField, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("viewkit.config")

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Environment = Literal["development", "staging", "production", "testing"]


def _resolve_env_files() -> tuple[str, ...]:
    """Arquivos .env existentes, do mais genérico ao mais específico."""
    candidates = (".env", f".env.{os.environ.get('ENVIRONMENT', 'development')}")
    found = tuple(name for name in candidates if Path(name).is_file())
    return found or (".env",)


class Settings(BaseSettings):
    """
    Valores lidos pelos ViewSets, pela paginação e pela aplicação.

    Chaves desconhecidas no ambiente são ignoradas.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Aplicação
    app_name: str = "viewkit app"
    app_version: str = "0.1.0"
    environment: Environment = "development"
    debug: bool = PydanticField(
        default=False,
        description="Inclui detalhes de falhas internas nas respostas de erro",
    )
    auto_create_tables: bool = PydanticField(
        default=False,
        description="Executa create_tables() no startup da aplicação",
    )

    # Banco
    database_url: str = "sqlite+aiosqlite:///./app.db"
    database_echo: bool = False
    database_pool_size: int = PydanticField(default=5, ge=1)
    database_max_overflow: int = PydanticField(default=10, ge=0)

    # Paginação da listagem
    page_size: int = PydanticField(default=20, ge=1)
    max_page_size: int = PydanticField(
        default=100,
        ge=1,
        description="Teto para o page_size pedido na query string",
    )
    page_query_param: str = "page"
    page_size_query_param: str = "page_size"

    # Remoção lógica
    soft_delete_field: str = PydanticField(
        default="deleted_at",
        description="Coluna cuja presença no model ativa o soft delete",
    )

    # Logs
    log_level: LogLevel = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_requests: bool = PydanticField(
        default=True,
        description="Liga o RequestLoggingMiddleware",
    )

    @model_validator(mode="after")
    def _check_page_sizes(self) -> "Settings":
        if self.page_size > self.max_page_size:
            raise ValueError(
                f"page_size ({self.page_size}) cannot exceed "
                f"max_page_size ({self.max_page_size})"
            )
        return self


_settings: Settings | None = None
_settings_class: type[Settings] = Settings


def get_settings() -> Settings:
    """Settings correntes; a primeira chamada carrega do ambiente."""
    global _settings

    if _settings is None:
        _settings = _settings_class(_env_file=_resolve_env_files())
    return _settings


def configure(
    settings_class: type[Settings] | None = None,
    **overrides: Any,
) -> Settings:
    """
    Recarrega os settings, opcionalmente com outra classe e overrides.

    Deve rodar antes de create_app(). Chaves que a classe não declara são
    descartadas com um warning no logger viewkit.config.
    """
    global _settings, _settings_class

    if settings_class is not None:
        _settings_class = settings_class

    unknown = sorted(set(overrides) - set(_settings_class.model_fields))
    if unknown:
        logger.warning("Unknown settings keys passed to configure(): %s", ", ".join(unknown))

    _settings = _settings_class(_env_file=_resolve_env_files(), **overrides)
    return _settings


def reset_settings() -> None:
    """Volta para Settings sem overrides. Ignorado em production."""
    global _settings, _settings_class

    if _settings is not None and _settings.environment == "production":
        logger.warning("reset_settings() called in production environment, ignored.")
        return

    _settings = None
    _settings_class = Settings
