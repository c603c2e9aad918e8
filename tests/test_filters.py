"""
Testes para FilterSets.
"""

import pytest

from viewkit.exceptions import ImproperlyConfigured, ValidationException
from viewkit.filters import FilterSet

from example.models import Article
from example.schemas import ArticleFilterSet


class BrokenFilterSet(FilterSet):
    colour: str | None = None


class ViewsInFilterSet(FilterSet):
    views__in: list[int] | None = None


class HookFilterSet(FilterSet):
    author: str | None = None

    def filter_author(self, queryset, value):
        return queryset.filter(author__iexact=value)


@pytest.fixture
async def articles(db_session):
    qs = Article.objects.using(db_session)
    await qs.create(title="Python tips", author="ana", views=10, published=True)
    await qs.create(title="Rust notes", author="bob", views=3, published=True)
    await qs.create(title="python draft", author="ana", views=0, published=False)
    await db_session.commit()


def test_from_context_binds_query_params(make_context):
    ctx = make_context(query_string="published=true&views__gte=5")

    filterset = ArticleFilterSet.from_context(ctx)

    assert filterset.published is True
    assert filterset.views__gte == 5
    assert filterset.active_filters() == {"published": True, "views__gte": 5}


def test_from_context_rejects_invalid_value(make_context):
    ctx = make_context(query_string="views__gte=lots")

    with pytest.raises(ValidationException) as exc_info:
        ArticleFilterSet.from_context(ctx)

    assert exc_info.value.status_code == 400
    assert exc_info.value.errors[0]["loc"] == ["query", "views__gte"]


def test_from_context_rejects_unknown_param(make_context):
    ctx = make_context(query_string="colour=red")

    with pytest.raises(ValidationException):
        ArticleFilterSet.from_context(ctx)


def test_from_context_skips_excluded_params(make_context):
    ctx = make_context(query_string="page=2&page_size=5&author=ana")

    filterset = ArticleFilterSet.from_context(ctx, exclude={"page", "page_size"})

    assert filterset.author == "ana"



def test_single_value_binds_to_list_field(make_context):
    filterset = ViewsInFilterSet.from_context(make_context(query_string="views__in=3"))
    assert filterset.views__in == [3]

    filterset = ViewsInFilterSet.from_context(make_context(query_string="views__in=3&views__in=10"))
    assert filterset.views__in == [3, 10]


@pytest.mark.asyncio
async def test_single_value_list_filter_applies(make_context, db_session, articles):
    ctx = make_context(query_string="views__in=3")
    filterset = ViewsInFilterSet.from_context(ctx)

    results = await filterset.apply_filters(ctx, Article.objects.using(db_session)).all()

    assert [a.title for a in results] == ["Rust notes"]


@pytest.mark.asyncio
async def test_apply_filters_uses_lookups(make_context, db_session, articles):
    ctx = make_context(query_string="author=ana&search=python")
    filterset = ArticleFilterSet.from_context(ctx)

    results = await filterset.apply_filters(ctx, Article.objects.using(db_session)).all()

    assert {a.title for a in results} == {"Python tips", "python draft"}


@pytest.mark.asyncio
async def test_apply_filters_without_values_is_noop(make_context, db_session, articles):
    ctx = make_context()
    queryset = Article.objects.using(db_session)

    filtered = ArticleFilterSet.from_context(ctx).apply_filters(ctx, queryset)

    assert await filtered.count() == 3


@pytest.mark.asyncio
async def test_filter_hook_overrides_default(make_context, db_session, articles):
    ctx = make_context(query_string="author=ANA")
    filterset = HookFilterSet.from_context(ctx)

    results = await filterset.apply_filters(ctx, Article.objects.using(db_session)).all()

    assert len(results) == 2


@pytest.mark.asyncio
async def test_ordering_respects_allowed_fields(make_context, db_session, articles):
    ctx = make_context(query_string="ordering=-views,colour")
    filterset = ArticleFilterSet.from_context(ctx)

    results = await filterset.apply_filters(ctx, Article.objects.using(db_session)).all()

    assert [a.views for a in results] == [10, 3, 0]


def test_field_missing_on_model_is_configuration_error(make_context, db_session):
    ctx = make_context(query_string="colour=red")
    filterset = BrokenFilterSet.from_context(ctx)

    with pytest.raises(ImproperlyConfigured):
        filterset.apply_filters(ctx, Article.objects.using(db_session))
