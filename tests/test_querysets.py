"""
Testes para o sistema de QuerySets.
"""

import pytest

from sqlalchemy.orm import Mapped

from viewkit.containers import ModelCollection
from viewkit.models import Field, Model
from viewkit.querysets import DoesNotExist, MultipleObjectsReturned, QuerySet, SoftDeleteQuerySet

from example.models import Article


class Product(Model):
    """Model de teste para querysets."""

    __tablename__ = "test_products"

    id: Mapped[int] = Field.pk()
    name: Mapped[str] = Field.string(max_length=100)
    price: Mapped[float] = Field.float(default=0.0)
    category: Mapped[str] = Field.string(max_length=50)
    is_available: Mapped[bool] = Field.boolean(default=True)


@pytest.fixture
async def sample_products(db_session):
    """Cria produtos de exemplo."""
    products = [
        {"name": "Laptop", "price": 1000.0, "category": "electronics", "is_available": True},
        {"name": "Mouse", "price": 50.0, "category": "electronics", "is_available": True},
        {"name": "Keyboard", "price": 100.0, "category": "electronics", "is_available": False},
        {"name": "Chair", "price": 200.0, "category": "furniture", "is_available": True},
        {"name": "Desk", "price": 500.0, "category": "furniture", "is_available": True},
    ]
    for product_data in products:
        await Product.objects.using(db_session).create(**product_data)
    await db_session.commit()
    return db_session


@pytest.mark.asyncio
async def test_manager_returns_plain_queryset_for_regular_model(db_session):
    qs = Product.objects.using(db_session)
    assert type(qs) is QuerySet


@pytest.mark.asyncio
async def test_filter_exact(sample_products):
    products = await Product.objects.using(sample_products).filter(category="electronics").all()

    assert len(products) == 3
    assert all(p.category == "electronics" for p in products)


@pytest.mark.asyncio
async def test_filter_gt_and_lte(sample_products):
    qs = Product.objects.using(sample_products)

    expensive = await qs.filter(price__gt=200).all()
    assert {p.name for p in expensive} == {"Laptop", "Desk"}

    cheap = await qs.filter(price__lte=100).all()
    assert {p.name for p in cheap} == {"Mouse", "Keyboard"}


@pytest.mark.asyncio
async def test_filter_icontains(sample_products):
    products = await Product.objects.using(sample_products).filter(name__icontains="OUS").all()
    assert [p.name for p in products] == ["Mouse"]


@pytest.mark.asyncio
async def test_filter_in(sample_products):
    products = await Product.objects.using(sample_products)\
        .filter(name__in=["Chair", "Desk"])\
        .all()
    assert len(products) == 2


@pytest.mark.asyncio
async def test_exclude(sample_products):
    products = await Product.objects.using(sample_products).exclude(category="electronics").all()
    assert {p.name for p in products} == {"Chair", "Desk"}


@pytest.mark.asyncio
async def test_order_by_desc(sample_products):
    products = await Product.objects.using(sample_products).order_by("-price").all()
    assert [p.name for p in products][:2] == ["Laptop", "Desk"]


@pytest.mark.asyncio
async def test_limit_offset(sample_products):
    products = await Product.objects.using(sample_products)\
        .order_by("price")\
        .offset(1)\
        .limit(2)\
        .all()
    assert [p.name for p in products] == ["Keyboard", "Chair"]


@pytest.mark.asyncio
async def test_count_ignores_limit(sample_products):
    qs = Product.objects.using(sample_products).filter(is_available=True)
    assert await qs.limit(1).count() == 4


@pytest.mark.asyncio
async def test_get_single(sample_products):
    product = await Product.objects.using(sample_products).get(name="Desk")
    assert product.price == 500.0


@pytest.mark.asyncio
async def test_get_does_not_exist(sample_products):
    with pytest.raises(DoesNotExist):
        await Product.objects.using(sample_products).get(name="Sofa")


@pytest.mark.asyncio
async def test_get_multiple_objects(sample_products):
    with pytest.raises(MultipleObjectsReturned):
        await Product.objects.using(sample_products).get(category="furniture")


@pytest.mark.asyncio
async def test_first_and_exists(sample_products):
    qs = Product.objects.using(sample_products)

    assert await qs.filter(category="garden").first() is None
    assert await qs.filter(category="garden").exists() is False
    assert await qs.filter(category="furniture").exists() is True


@pytest.mark.asyncio
async def test_narrowing_returns_clone(sample_products):
    base = Product.objects.using(sample_products)
    narrowed = base.filter(category="furniture")

    assert narrowed is not base
    assert await base.count() == 5
    assert await narrowed.count() == 2


@pytest.mark.asyncio
async def test_fetch_into_replaces_contents(sample_products):
    results = ModelCollection(Product)
    results.append("stale")

    await Product.objects.using(sample_products).filter(category="furniture").fetch_into(results)

    assert len(results) == 2
    assert all(isinstance(p, Product) for p in results)


@pytest.mark.asyncio
async def test_unknown_field_raises(db_session):
    with pytest.raises(AttributeError):
        Product.objects.using(db_session).filter(color="red")


@pytest.mark.asyncio
async def test_unknown_operator_raises(db_session):
    with pytest.raises(ValueError):
        Product.objects.using(db_session).filter(price__between=1)


def test_query_without_session_raises():
    with pytest.raises(RuntimeError):
        QuerySet(Product)._get_session()


# =============================================================================
# Soft delete
# =============================================================================

@pytest.fixture
async def articles_with_trash(db_session):
    session = db_session
    active = await Article.objects.using(session).create(title="Active", author="ana")
    trashed = await Article.objects.using(session).create(title="Trashed", author="ana")
    await trashed.soft_delete(session)
    await session.commit()
    return active, trashed


@pytest.mark.asyncio
async def test_soft_delete_queryset_default_scope(db_session, articles_with_trash):
    qs = Article.objects.using(db_session)

    assert isinstance(qs, SoftDeleteQuerySet)
    assert qs.scope == "active"
    titles = [a.title for a in await qs.all()]
    assert titles == ["Active"]


@pytest.mark.asyncio
async def test_soft_delete_scopes(db_session, articles_with_trash):
    qs = Article.objects.using(db_session)

    assert await qs.with_deleted().count() == 2
    deleted = await qs.only_deleted().all()
    assert [a.title for a in deleted] == ["Trashed"]
    assert deleted[0].is_deleted
    assert await qs.only_deleted().active().count() == 1


@pytest.mark.asyncio
async def test_restore(db_session, articles_with_trash):
    _, trashed = articles_with_trash

    await trashed.restore(db_session)

    assert await Article.objects.using(db_session).count() == 2
