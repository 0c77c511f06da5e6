"""
Tests for the grocery_items persistence module.
"""
from datetime import datetime, timezone

import pytest

from grocery_backend.core.errors import StorageError
from grocery_backend.db import grocery_store
from grocery_backend.models.schemas import GroceryDraft, GroceryItem


class TestSchema:

    def test_init_schema_is_idempotent(self, engine, db_session):
        grocery_store.init_schema(engine)
        grocery_store.init_schema(engine)

        assert grocery_store.count(db_session) == 0

    def test_operations_raise_storage_error_without_table(self, db_session, drop_table):
        drop_table()

        with pytest.raises(StorageError):
            grocery_store.get_all(db_session)
        with pytest.raises(StorageError):
            grocery_store.create(db_session, GroceryDraft(name="Milk"))

    def test_unbindable_value_raises_storage_error(self, db_session):
        oversized = GroceryDraft.model_construct(name="Huge", quantity=2 ** 70)

        with pytest.raises(StorageError):
            grocery_store.create(db_session, oversized)
        assert grocery_store.count(db_session) == 0


class TestSeed:

    def test_seed_three_samples_into_empty_table(self, db_session, sample_drafts):
        inserted = grocery_store.seed_if_empty(db_session, sample_drafts)

        rows = grocery_store.get_all(db_session)
        assert inserted == 3
        assert [row.id for row in rows] == [1, 2, 3]
        assert [row.name for row in rows] == ["Milk", "Eggs", "Bread"]
        assert all(row.bought == 0 for row in rows)

    def test_seed_skips_non_empty_table(self, db_session, sample_drafts):
        grocery_store.create(db_session, GroceryDraft(name="Apples"))

        assert grocery_store.seed_if_empty(db_session, sample_drafts) == 0
        assert grocery_store.count(db_session) == 1

    def test_default_samples(self, db_session):
        grocery_store.seed_if_empty(db_session)

        names = [row.name for row in grocery_store.get_all(db_session)]
        assert names == ["Milk", "Eggs", "Bread"]


class TestCrud:

    def test_create_ignores_caller_id_and_stores_raw_values(self, db_session):
        created_at = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
        item = GroceryItem(id=99, name="Coffee", quantity=2, category="Drinks", bought=True, created_at=created_at)

        new_id = grocery_store.create(db_session, item)

        row = grocery_store.get_by_id(db_session, new_id)
        assert new_id == 1
        assert row.bought == 1
        assert row.created_at == int(created_at.timestamp() * 1000)
        assert grocery_store.get_by_id(db_session, 99) is None

    def test_get_by_id_returns_none_for_missing(self, db_session):
        assert grocery_store.get_by_id(db_session, 42) is None

    def test_update_rewrites_fields_but_not_created_at(self, seeded_session):
        before = grocery_store.get_by_id(seeded_session, 2)
        edited = GroceryItem(id=2, name="Free-range eggs", quantity=6, category="", bought=True)

        affected = grocery_store.update(seeded_session, edited)

        after = grocery_store.get_by_id(seeded_session, 2)
        assert affected == 1
        assert (after.name, after.quantity, after.category, after.bought) == ("Free-range eggs", 6, "", 1)
        assert after.created_at == before.created_at

    def test_update_missing_id_affects_nothing(self, seeded_session):
        assert grocery_store.update(seeded_session, GroceryItem(id=404, name="Ghost")) == 0
        assert grocery_store.count(seeded_session) == 3

    def test_delete(self, seeded_session):
        assert grocery_store.delete(seeded_session, 1) == 1
        assert grocery_store.delete(seeded_session, 1) == 0
        assert [row.id for row in grocery_store.get_all(seeded_session)] == [2, 3]

    def test_ids_are_not_reused_after_delete(self, seeded_session):
        grocery_store.delete(seeded_session, 3)

        new_id = grocery_store.create(seeded_session, GroceryDraft(name="Butter"))

        assert new_id == 4
