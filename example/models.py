"""
Models da aplicação de exemplo.

Demonstra:
- Definição de campos tipados
- Soft delete via SoftDeleteMixin
- Model sem soft delete (remoção física)
"""

from datetime import datetime

from sqlalchemy.orm import Mapped

from viewkit.models import Field, Model, SoftDeleteMixin


class Article(Model, SoftDeleteMixin):
    """
    Artigo do blog.

    Exemplo de uso:
        article = await Article.objects.using(db).create(title="Hello", author="ana")

        published = await Article.objects.using(db)\\
            .filter(published=True)\\
            .order_by("-created_at")\\
            .all()
    """

    __tablename__ = "articles"

    id: Mapped[int] = Field.pk()
    title: Mapped[str] = Field.string(max_length=200)
    body: Mapped[str] = Field.text(default="")
    author: Mapped[str] = Field.string(max_length=100, index=True)
    views: Mapped[int] = Field.integer(default=0)
    published: Mapped[bool] = Field.boolean(default=False, index=True)
    created_at: Mapped[datetime] = Field.datetime(auto_now_add=True)
    updated_at: Mapped[datetime] = Field.datetime(auto_now=True)


class Category(Model):
    """Categoria de artigos (remoção física)."""

    __tablename__ = "categories"

    id: Mapped[int] = Field.pk()
    name: Mapped[str] = Field.string(max_length=50, unique=True)
    slug: Mapped[str] = Field.string(max_length=60, unique=True)
