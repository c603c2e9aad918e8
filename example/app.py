"""
Aplicação de exemplo completa.

Demonstra como usar o viewkit para criar uma API REST de blog.
"""

from viewkit.app import ViewKitApp
from viewkit.routing import Router

from example.auth import HeaderUserMiddleware
from example.settings import settings
from example.views import ArticleViewSet, CategoryViewSet


def create_example_app() -> ViewKitApp:
    """
    Cria a aplicação de exemplo.

    Retorna:
        Instância configurada do ViewKitApp
    """
    api_router = Router()
    api_router.register_viewset("/articles", ArticleViewSet)
    api_router.register_viewset("/categories", CategoryViewSet)

    app = ViewKitApp(
        title="viewkit Example API",
        description=(
            "API de exemplo demonstrando o viewkit.\n\n"
            "- **Artigos**: CRUD com filtros, paginação e lixeira\n"
            "- **Categorias**: CRUD com lookup por slug\n\n"
            "Envie `X-User` (e opcionalmente `X-Roles: admin`) para escrever."
        ),
        settings=settings,
        routers=[api_router],
    )
    app.app.add_middleware(HeaderUserMiddleware)

    @app.app.get("/", include_in_schema=False)
    async def root():
        return {"name": settings.app_name, "docs": "/docs"}

    return app


example_app = create_example_app()

# Exporta a aplicação FastAPI para uso com uvicorn
app = example_app.app
