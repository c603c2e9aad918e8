"""
Testes para os containers tipados.
"""

from viewkit.containers import ModelCollection, collection_factory

from example.models import Article, Category


def test_factory_returns_empty_collection_bound_to_model():
    factory = collection_factory(Article)

    results = factory()

    assert isinstance(results, ModelCollection)
    assert results.model is Article
    assert len(results) == 0


def test_factory_calls_are_independent():
    factory = collection_factory(Article)

    first = factory()
    second = factory()
    first.append(Article(title="x", author="y"))

    assert first is not second
    assert len(second) == 0


def test_factories_keep_their_own_model():
    assert collection_factory(Article)().model is Article
    assert collection_factory(Category)().model is Category


def test_replace_is_in_place():
    results = ModelCollection(Category, [Category(name="a", slug="a")])
    same = results.replace([])

    assert same is results
    assert results == []


def test_repr_names_model():
    assert "Category" in repr(ModelCollection(Category))
