"""
Tests for owner-side editing: optimistic saves, pending sync, overrides,
hides and deletes against an in-memory repository.
"""

from storefront.catalogue.models import ChangeEvent, Product
from storefront.catalogue.owner_service import OwnerCatalogue, prune_variant_maps
from storefront.catalogue.settings import CatalogueConfig
from storefront.data.repository import InMemoryProductRepository
from storefront.variants.keys import BASE_KEY, variant_key

FIXED_NOW = 1_700_000_000.0

NOW_ID = f"owner-{int(FIXED_NOW * 1000)}"


def _catalogue(repository, base_products, clock):
    return OwnerCatalogue(repository, base=base_products, clock=clock)


class UntimedRepository(InMemoryProductRepository):
    """Echoes saved rows without updated_at, like a table lacking that column."""

    def upsert(self, product):
        saved = super().upsert(product)
        return None if saved is None else saved.model_copy(update={"updated_at": None})


# ── Pruning ──────────────────────────────────────────────────────────────

class TestPruneVariantMaps:
    def test_stale_keys_and_redundant_prices_dropped(self):
        product = Product(
            id="x",
            price=10,
            variants={"Color": ["Red", "Blue"]},
            inventory={"Color:Red": 2, "Color:Green": 5, BASE_KEY: 1},
            price_overrides={"Color:Blue": 12, "Color:Red": 10, "Color:Gone": 3},
        )
        pruned = prune_variant_maps(product)
        assert pruned.inventory == {"Color:Red": 2}
        assert pruned.price_overrides == {"Color:Blue": 12}

    def test_base_stock_kept_without_groups(self):
        product = Product(id="x", inventory={BASE_KEY: 4}, price_overrides={BASE_KEY: 3})
        pruned = prune_variant_maps(product)
        assert pruned.inventory == {BASE_KEY: 4}
        assert pruned.price_overrides == {}

    def test_legacy_keys_with_separators_kept(self):
        product = Product(id="x", price=3, variants={"Length": ["1m: braided"]}).model_copy(
            update={"inventory": {"Length:1m: braided": 2}, "price_overrides": {"Length:1m: braided": 5}}
        )
        pruned = prune_variant_maps(product)
        key = variant_key({"Length": "1m: braided"})
        assert pruned.inventory == {key: 2}
        assert pruned.price_overrides == {key: 5}


# ── Adding ───────────────────────────────────────────────────────────────

class TestAddProduct:
    def test_persisted(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        result = owner.add_product(Product(id="n1", name="New"))
        assert result.success and result.persisted
        assert repository.get("n1") is not None
        assert [p.id for p in owner.products()] == ["n1", "P", "Q"]

    def test_blank_and_duplicate_ids_replaced(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        first = owner.add_product(Product(id="", name="One")).record
        second = owner.add_product(Product(id="", name="Two")).record
        assert first.id == NOW_ID
        assert second.id != first.id
        third = owner.add_product(Product(id=first.id, name="Three")).record
        assert third.id not in (first.id, second.id)

    def test_offline_write_goes_pending(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        repository.fail_writes = True
        result = owner.add_product(Product(id="n1"))
        assert result.success
        assert not result.persisted
        assert result.error == "Saved locally. Sync pending."
        assert owner.pending_ids == ["n1"]
        assert "n1" in [p.id for p in owner.products()]

        repository.fail_writes = False
        assert owner.retry_pending() == 1
        assert owner.pending_ids == []
        assert repository.get("n1") is not None

    def test_load_keeps_pending_edits(self, repository, base_products, clock):
        repository.upsert(Product(id="remote"))
        owner = _catalogue(repository, base_products, clock)
        repository.fail_writes = True
        owner.add_product(Product(id="local"))
        owner.load()
        assert {r.id for r in owner.records} == {"remote", "local"}

    def test_stamps_updated_at(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        record = owner.add_product(Product(id="n1")).record
        assert record.updated_at.timestamp() == FIXED_NOW

    def test_keeps_local_timestamp_when_store_returns_none(self, base_products, clock):
        owner = _catalogue(UntimedRepository(), base_products, clock)
        result = owner.add_product(Product(id="n1", name="mine"))
        assert result.persisted
        assert result.record.updated_at.timestamp() == FIXED_NOW
        assert owner.records[0].updated_at.timestamp() == FIXED_NOW

        owner.handle_event(ChangeEvent.updated(Product(id="n1", name="old", updated_at=FIXED_NOW - 60)))
        assert owner.records[0].name == "mine"


# ── Editing base products ────────────────────────────────────────────────

class TestSaveEdit:
    def test_base_edit_creates_override(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        edited = base_products[0].model_copy(update={"name": "Renamed"})
        record = owner.save_edit(edited).record
        assert record.id == NOW_ID
        assert record.source_id == "P"
        ids = [p.id for p in owner.products()]
        assert "P" not in ids
        assert ids.count(NOW_ID) == 1

    def test_second_edit_reuses_override(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        owner.save_edit(base_products[0].model_copy(update={"name": "One"}))
        owner.save_edit(base_products[0].model_copy(update={"name": "Two"}))
        overrides = [r for r in owner.records if r.source_id == "P"]
        assert len(overrides) == 1
        assert overrides[0].name == "Two"

    def test_owner_record_edited_in_place(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        owner.add_product(Product(id="n1", name="Old"))
        owner.save_edit(Product(id="n1", name="New"))
        assert [r.name for r in owner.records] == ["New"]
        assert owner.records[0].source_id is None

    def test_edit_prunes_variant_maps(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        edited = base_products[0].model_copy(update={
            "variants": {"Model": ["iPhone 13"]},
            "inventory": {"Model:iPhone 13": 2, "Model:iPhone 14": 9},
        })
        record = owner.save_edit(edited).record
        assert record.inventory == {"Model:iPhone 13": 2}


class TestHideBase:
    def test_hide_removes_product(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        record = owner.hide_base("P").record
        assert record.hidden
        assert record.id.startswith("owner-hide-")
        assert [p.id for p in owner.products()] == ["Q"]

    def test_existing_override_becomes_hide(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        override = owner.save_edit(base_products[0].model_copy(update={"name": "X"})).record
        hide = owner.hide_base("P").record
        assert hide.id == override.id
        assert len(owner.records) == 1
        assert [p.id for p in owner.products()] == ["Q"]


# ── Deleting ─────────────────────────────────────────────────────────────

class TestDelete:
    def test_failed_delete_keeps_record(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        owner.add_product(Product(id="n1"))
        repository.fail_deletes = True
        result = owner.delete("n1")
        assert not result.success
        assert result.error == "Could not delete product. Check your connection and try again."
        assert [r.id for r in owner.records] == ["n1"]

    def test_delete(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        owner.add_product(Product(id="n1"))
        assert owner.delete("n1").success
        assert owner.records == []
        assert repository.get("n1") is None

    def test_late_update_does_not_restore_deleted_record(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        owner.add_product(Product(id="n1"))
        owner.delete("n1")
        owner.handle_event(ChangeEvent.updated(Product(id="n1", name="late", updated_at=FIXED_NOW - 60)))
        owner.handle_event(ChangeEvent.updated(Product(id="n1", name="untimed")))
        assert owner.records == []
        assert [p.id for p in owner.products()] == ["P", "Q"]

    def test_deleted_ids_not_reused(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        first = owner.add_product(Product(id="")).record
        owner.delete(first.id)
        second = owner.add_product(Product(id="")).record
        assert second.id != first.id


# ── Change feed and config ───────────────────────────────────────────────

class TestSync:
    def test_remote_changes_arrive_through_subscription(self, repository, base_products, clock):
        viewer = _catalogue(repository, base_products, clock)
        viewer.subscribe()
        editor = _catalogue(repository, base_products, clock)
        editor.add_product(Product(id="n1", name="Shared"))
        assert [r.id for r in viewer.records] == ["n1"]

        editor.delete("n1")
        assert viewer.records == []

        viewer.unsubscribe()
        editor.add_product(Product(id="n2"))
        assert viewer.records == []

    def test_feed_confirms_pending_record(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        owner.subscribe()
        repository.fail_writes = True
        owner.add_product(Product(id="n1"))
        repository.fail_writes = False
        repository.upsert(owner.records[0])
        assert owner.pending_ids == []

    def test_stale_feed_echo_keeps_record_pending(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        repository.fail_writes = True
        owner.add_product(Product(id="n1", name="mine"))
        owner.handle_event(ChangeEvent.updated(Product(id="n1", name="old", updated_at=FIXED_NOW - 60)))
        assert owner.pending_ids == ["n1"]
        assert owner.records[0].name == "mine"

        repository.fail_writes = False
        assert owner.retry_pending() == 1
        assert repository.get("n1").name == "mine"

    def test_save_config(self, repository, base_products, clock):
        owner = _catalogue(repository, base_products, clock)
        owner.save_config(CatalogueConfig.from_raw({"categories": ["Cables"]}))
        assert owner.config().categories == ["Cables"]
        assert [p.id for p in owner.products()] == ["P", "Q"]
