"""
ViewSets da aplicação de exemplo.

Demonstra:
- ModelViewSet com filterset e permissões por action
- Action customizada com @action
- Action registrada via register_action()
"""

from viewkit.permissions import IsAdmin, IsAuthenticatedOrReadOnly
from viewkit.views import ModelViewSet, action

from example.models import Article, Category
from example.schemas import ArticleFilterSet, ArticleSerializer, CategorySerializer


class ArticleViewSet(ModelViewSet[Article]):
    """
    CRUD de artigos.

    Leitura pública, escrita para autenticados, lixeira só para admins.
    """

    model = Article
    serializer_class = ArticleSerializer
    filterset_class = ArticleFilterSet
    permission_classes = [IsAuthenticatedOrReadOnly]
    permission_classes_by_action = {
        "list_deleted": [IsAdmin],
        "restore": [IsAdmin],
    }
    page_size = 10
    tags = ["articles"]

    @action(methods=["POST"], detail=True)
    async def publish(self):
        """Publica um artigo."""
        article = await self.get_object()
        article.published = True
        await article.save(self.context.session)
        return self.setup_serializer(article).to_representation(article)

    def get_queryset(self):
        # restore procura o artigo na lixeira
        if self.action == "restore":
            return self.get_base_queryset().only_deleted()
        return super().get_queryset()

    @action(methods=["POST"], detail=True)
    async def restore(self):
        """Restaura um artigo da lixeira."""
        session = self.context.session
        article = await self.get_object()
        await article.restore(session)
        await session.refresh(article)
        return self.setup_serializer(article).to_representation(article)


class CategoryViewSet(ModelViewSet[Category]):
    model = Category
    serializer_class = CategorySerializer
    lookup_field = "slug"
    tags = ["categories"]


async def article_stats(viewset: ArticleViewSet):
    """Totais de artigos ativos e publicados."""
    queryset = viewset.get_queryset()
    return {
        "total": await queryset.count(),
        "published": await queryset.filter(published=True).count(),
    }


ArticleViewSet.register_action("stats", article_stats)
