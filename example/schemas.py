"""
Schemas, serializers e filtersets da aplicação de exemplo.
"""

from datetime import datetime

from pydantic import Field as PydanticField, field_validator

from viewkit.filters import FilterSet
from viewkit.serializers import InputSchema, ModelSerializer, OutputSchema

from example.models import Article, Category


# =============================================================================
# Article
# =============================================================================

class ArticleInput(InputSchema):
    """Schema de entrada para artigos."""

    title: str = PydanticField(min_length=3, max_length=200)
    body: str = ""
    author: str = PydanticField(min_length=1, max_length=100)
    published: bool = False

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be blank")
        return v


class ArticleOutput(OutputSchema):
    id: int
    title: str
    body: str
    author: str
    views: int
    published: bool
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None


class ArticleSerializer(ModelSerializer):
    model = Article
    input_schema = ArticleInput
    output_schema = ArticleOutput
    read_only_fields = ["id", "views", "created_at", "updated_at", "deleted_at"]

    def validate_title(self, value: str) -> str:
        if value.lower().startswith("draft"):
            raise ValueError("Title cannot start with 'draft'")
        return value


class ArticleFilterSet(FilterSet):
    """
    GET /articles/?published=true&author=ana&views__gte=10&search=python&ordering=-views
    """

    field_lookups = {"search": "title__icontains"}
    ordering_fields = ["title", "views", "created_at"]

    published: bool | None = None
    author: str | None = None
    views__gte: int | None = None
    search: str | None = None
    ordering: str | None = None


# =============================================================================
# Category
# =============================================================================

class CategoryInput(InputSchema):
    name: str = PydanticField(min_length=1, max_length=50)


class CategoryOutput(OutputSchema):
    id: int
    name: str
    slug: str


class CategorySerializer(ModelSerializer):
    model = Category
    input_schema = CategoryInput
    output_schema = CategoryOutput
    read_only_fields = ["id", "slug"]

    async def perform_create(self, data):
        data["slug"] = data["name"].lower().replace(" ", "-")
        return await super().perform_create(data)

    async def perform_update(self, instance, data):
        if "name" in data:
            instance.slug = data["name"].lower().replace(" ", "-")
        return await super().perform_update(instance, data)
