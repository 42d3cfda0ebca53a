import unittest
from unittest.mock import patch

from catkeeper.db import ID_FIELD, InMemoryDocumentStore, SqlDocumentStore, matches


class DocumentStoreBehaviour:
    """Shared checks run against every DocumentStore implementation."""

    def make_store(self):
        raise NotImplementedError

    def setUp(self):
        self.store = self.make_store()

    def test_create_assigns_id_and_find_one_returns_it(self):
        created = self.store.create("cats", {"name": "Tom", "tail_length": 5})
        self.assertIn(ID_FIELD, created)
        fetched = self.store.find_one("cats", {"name": "Tom"})
        self.assertEqual(fetched, created)
        self.assertIsNone(self.store.find_one("cats", {"name": "Felix"}))

    def test_find_filters_with_in_and_keeps_insertion_order(self):
        for name in ("Tom", "Felix", "Garfield"):
            self.store.create("cats", {"name": name, "tail_length": 3})
        self.store.create("users", {"name": "Tom", "cats": []})

        names = [doc["name"] for doc in self.store.find("cats")]
        self.assertEqual(names, ["Tom", "Felix", "Garfield"])

        subset = self.store.find("cats", {"name": {"$in": ["Garfield", "Tom"]}})
        self.assertEqual([doc["name"] for doc in subset], ["Tom", "Garfield"])

    def test_find_one_and_update_merges_and_keeps_id(self):
        created = self.store.create("cats", {"name": "Tom", "tail_length": 5})
        updated = self.store.find_one_and_update(
            "cats", {"name": "Tom"}, {"name": "Thomas", ID_FIELD: "other"}
        )
        self.assertEqual(updated[ID_FIELD], created[ID_FIELD])
        self.assertEqual(updated["name"], "Thomas")
        self.assertEqual(updated["tail_length"], 5)
        self.assertIsNone(self.store.find_one("cats", {"name": "Tom"}))
        self.assertEqual(self.store.find_one("cats", {"name": "Thomas"}), updated)

    def test_find_one_and_update_without_match_returns_none(self):
        self.assertIsNone(
            self.store.find_one_and_update("cats", {"name": "Tom"}, {"tail_length": 2})
        )

    def test_find_one_and_delete(self):
        created = self.store.create("cats", {"name": "Tom", "tail_length": 5})
        removed = self.store.find_one_and_delete("cats", {"name": "Tom"})
        self.assertEqual(removed, created)
        self.assertEqual(self.store.find("cats"), [])
        self.assertIsNone(self.store.find_one_and_delete("cats", {"name": "Tom"}))

    def test_populate_expands_references_and_drops_missing(self):
        tom = self.store.create("cats", {"name": "Tom", "tail_length": 5})
        felix = self.store.create("cats", {"name": "Felix", "tail_length": 7})
        user = self.store.create(
            "users", {"name": "Jerry", "cats": [felix[ID_FIELD], tom[ID_FIELD]]}
        )
        self.store.find_one_and_delete("cats", {"name": "Tom"})

        populated = self.store.populate([user], "cats", "cats")
        self.assertEqual(populated[0]["cats"], [felix])
        # The input document is left untouched.
        self.assertEqual(user["cats"], [felix[ID_FIELD], tom[ID_FIELD]])

    def test_populate_handles_documents_without_references(self):
        user = self.store.create("users", {"name": "Jerry", "cats": []})
        self.assertEqual(self.store.populate([user], "cats", "cats")[0]["cats"], [])

    def test_returned_documents_are_copies(self):
        self.store.create("users", {"name": "Jerry", "cats": ["a"]})
        fetched = self.store.find_one("users", {"name": "Jerry"})
        fetched["cats"].append("b")
        self.assertEqual(self.store.find_one("users", {"name": "Jerry"})["cats"], ["a"])

    def test_reset_clears_everything(self):
        self.store.create("cats", {"name": "Tom", "tail_length": 5})
        self.store.reset()
        self.assertEqual(self.store.find("cats"), [])


class InMemoryDocumentStoreTests(DocumentStoreBehaviour, unittest.TestCase):
    def make_store(self):
        return InMemoryDocumentStore()


class SqlDocumentStoreTests(DocumentStoreBehaviour, unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL store.
    """

    def make_store(self):
        return SqlDocumentStore("sqlite+pysqlite:///:memory:")

    def test_requires_database_url(self):
        with self.assertRaises(ValueError):
            SqlDocumentStore("")

    def test_string_conditions_are_filtered_in_sql(self):
        for name in ("Tom", "Felix", "Garfield", "Salem"):
            self.store.create("cats", {"name": name, "tail_length": 4})

        with patch("catkeeper.db.matches", wraps=matches) as checked:
            self.assertEqual(self.store.find_one("cats", {"name": "Felix"})["name"], "Felix")
        # Only the matching row comes back from the database.
        self.assertEqual(checked.call_count, 1)

        with patch("catkeeper.db.matches", wraps=matches) as checked:
            found = self.store.find("cats", {"name": {"$in": ["Salem", "Tom"]}})
        self.assertEqual([doc["name"] for doc in found], ["Tom", "Salem"])
        self.assertEqual(checked.call_count, 2)

        with patch("catkeeper.db.matches", wraps=matches) as checked:
            self.assertIsNone(self.store.find_one("cats", {"name": "Ghost"}))
        self.assertEqual(checked.call_count, 0)

    def test_non_string_conditions_still_filter(self):
        self.store.create("cats", {"name": "Tom", "tail_length": 5})
        self.store.create("cats", {"name": "Felix", "tail_length": 7})
        found = self.store.find("cats", {"name": "Felix", "tail_length": 7})
        self.assertEqual([doc["name"] for doc in found], ["Felix"])
        self.assertEqual(self.store.find("cats", {"tail_length": {"$in": [5]}})[0]["name"], "Tom")


class MatchesTests(unittest.TestCase):
    def test_empty_query_matches_everything(self):
        self.assertTrue(matches({"name": "Tom"}, None))
        self.assertTrue(matches({"name": "Tom"}, {}))

    def test_equality_and_in(self):
        doc = {"name": "Tom", "tail_length": 5}
        self.assertTrue(matches(doc, {"name": "Tom", "tail_length": 5}))
        self.assertFalse(matches(doc, {"name": "Tom", "tail_length": 6}))
        self.assertTrue(matches(doc, {"name": {"$in": ["Felix", "Tom"]}}))
        self.assertFalse(matches(doc, {"name": {"$in": []}}))

    def test_unknown_operator_is_rejected(self):
        with self.assertRaises(ValueError):
            matches({"name": "Tom"}, {"name": {"$regex": "T"}})


if __name__ == "__main__":
    unittest.main()
