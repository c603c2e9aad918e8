"""
Configurações da aplicação de exemplo.

Variáveis de ambiente carregadas automaticamente de:
    .env                (base)
    .env.development    (sobrescreve em dev)
    .env.production     (sobrescreve em prod)
"""

from pydantic import Field as PydanticField

from viewkit.config import Settings, configure


class AppSettings(Settings):
    """Configurações específicas da aplicação de exemplo."""

    host: str = PydanticField(default="127.0.0.1", description="Host do servidor")
    port: int = PydanticField(default=8000, description="Porta do servidor")
    reload: bool = PydanticField(default=False, description="Auto-reload do uvicorn")


settings = configure(
    settings_class=AppSettings,
    app_name="viewkit blog",
    auto_create_tables=True,
)
