import unittest
from unittest.mock import patch

from catkeeper.db import InMemoryDocumentStore, SqlDocumentStore
from catkeeper.dependencies import (
    get_cat_service,
    get_document_store,
    get_user_service,
    reset_dependencies,
)


def fake_settings(**overrides):
    values = {"use_in_memory_backends": False, "database_url": None, "log_level": "INFO"}
    values.update(overrides)
    return type("Settings", (), values)()


class DependencyWiringTests(unittest.TestCase):
    def setUp(self):
        reset_dependencies()
        self.addCleanup(reset_dependencies)

    @patch("catkeeper.dependencies.get_settings")
    def test_defaults_to_in_memory_store(self, mock_settings):
        mock_settings.return_value = fake_settings()
        self.assertIsInstance(get_document_store(), InMemoryDocumentStore)

    @patch("catkeeper.dependencies.get_settings")
    def test_in_memory_toggle_wins_over_database_url(self, mock_settings):
        mock_settings.return_value = fake_settings(
            use_in_memory_backends=True, database_url="sqlite+pysqlite:///:memory:"
        )
        self.assertIsInstance(get_document_store(), InMemoryDocumentStore)

    @patch("catkeeper.dependencies.get_settings")
    def test_database_url_selects_sql_store(self, mock_settings):
        mock_settings.return_value = fake_settings(
            database_url="sqlite+pysqlite:///:memory:"
        )
        self.assertIsInstance(get_document_store(), SqlDocumentStore)

    @patch("catkeeper.dependencies.get_settings")
    def test_services_are_singletons_sharing_one_store(self, mock_settings):
        mock_settings.return_value = fake_settings()
        users = get_user_service()
        self.assertIs(users, get_user_service())
        self.assertIs(users.cat_service, get_cat_service())
        self.assertIs(users.store, get_document_store())
        self.assertIs(get_cat_service().store, get_document_store())


if __name__ == "__main__":
    unittest.main()
