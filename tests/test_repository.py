"""
Tests for the in-memory repository and its change feed.
"""

from storefront.catalogue.models import ChangeKind, Product
from storefront.data.repository import ChangeFeed, InMemoryProductRepository


class TestInMemoryRepository:
    def test_list_is_newest_first(self, repository):
        repository.upsert(Product(id="a"))
        repository.upsert(Product(id="b"))
        assert [p.id for p in repository.list()] == ["b", "a"]

    def test_upsert_emits_insert_then_update(self, repository):
        received = []
        repository.subscribe(received.append)
        repository.upsert(Product(id="a", name="one"))
        repository.upsert(Product(id="a", name="two"))
        assert [e.kind for e in received] == [ChangeKind.INSERTED, ChangeKind.UPDATED]
        assert repository.get("a").name == "two"

    def test_stored_copy_is_isolated(self, repository):
        product = Product(id="a", specs=["x"])
        saved = repository.upsert(product)
        saved.specs.append("y")
        product.specs.append("z")
        assert repository.get("a").specs == ["x"]

    def test_offline_modes(self, repository):
        repository.fail_writes = True
        assert repository.upsert(Product(id="a")) is None
        assert repository.list() == []
        repository.fail_writes = False
        repository.upsert(Product(id="a"))
        repository.fail_deletes = True
        assert repository.delete("a") is False
        assert repository.get("a") is not None

    def test_delete_missing_is_quiet(self, repository):
        received = []
        repository.subscribe(received.append)
        assert repository.delete("missing") is True
        assert received == []


class TestChangeFeed:
    def test_failing_listener_does_not_stop_others(self):
        feed = ChangeFeed()
        received = []

        def broken(event):
            raise RuntimeError("listener bug")

        feed.subscribe(broken)
        feed.subscribe(received.append)
        repository = InMemoryProductRepository()
        repository.feed = feed
        repository.upsert(Product(id="a"))
        assert [e.id for e in received] == ["a"]

    def test_unsubscribe(self):
        feed = ChangeFeed()
        subscription = feed.subscribe(lambda event: None)
        assert feed.listener_count == 1
        subscription.unsubscribe()
        subscription.unsubscribe()
        assert feed.listener_count == 0
        assert not subscription.active
