import unittest
from unittest.mock import patch

from cms.content import ContentManager, default_content, get_content_type
from cms.exceptions import (
    CmsError,
    InvalidContentTypeError,
    ItemNotFoundError,
    NotArrayTypeError,
    StorageError,
)
from cms.html_content import HtmlContentStore
from cms.storage import InMemoryBlobStore


class FailingReadStore(InMemoryBlobStore):
    fail_next_read = False

    def get_json(self, path):
        if self.fail_next_read:
            self.fail_next_read = False
            raise StorageError(f"Failed to read {path}")
        return super().get_json(path)


class ContentManagerTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryBlobStore()
        self.removed_images = []
        self.manager = ContentManager(
            blob_store=self.store,
            html_store=HtmlContentStore(self.store),
            image_remover=self.removed_images.append,
        )

    def test_unknown_type_is_rejected(self):
        with self.assertRaises(InvalidContentTypeError) as ctx:
            get_content_type("projects")
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.message, "Invalid content type: projects")

    def test_defaults_by_shape(self):
        self.assertEqual(default_content("news"), [])
        categories = default_content("categories")
        self.assertEqual(categories["portfolio"], [])
        self.assertTrue(categories["updated_at"].endswith("Z"))
        self.assertEqual(set(default_content("about")), {"updated_at"})

    def test_get_all_content_fills_missing_types(self):
        self.store.put_json("clean-data/news.json", [{"id": "news_1"}])
        content = self.manager.get_all_content()
        self.assertEqual(
            set(content), {"news", "services", "portfolio", "about", "settings", "categories"}
        )
        self.assertEqual(content["news"], [{"id": "news_1"}])
        self.assertEqual(content["services"], [])

    def test_wrong_stored_shape_degrades_to_default(self):
        self.store.put_json("clean-data/news.json", {"oops": True})
        self.assertEqual(self.manager.get_content("news"), [])

    def test_read_failure_degrades_to_default(self):
        with patch.object(self.store, "get_json", side_effect=RuntimeError("boom")):
            self.assertEqual(self.manager.get_content("portfolio"), [])

    def test_read_failure_aborts_item_writes(self):
        store = FailingReadStore()
        manager = ContentManager(blob_store=store, html_store=HtmlContentStore(store))
        for n in range(3):
            manager.add_item("news", {"title": f"Post {n}"})

        store.fail_next_read = True
        with self.assertRaises(StorageError) as ctx:
            manager.add_item("news", {"title": "Lost"})
        self.assertEqual(ctx.exception.status_code, 502)
        self.assertEqual(len(store.get_json("clean-data/news.json")), 3)

        manager.add_item("news", {"title": "Post 3"})
        self.assertEqual(len(store.get_json("clean-data/news.json")), 4)

    def test_wrong_stored_shape_aborts_item_writes(self):
        self.store.put_json("clean-data/news.json", {"oops": True})
        with self.assertRaises(StorageError):
            self.manager.add_item("news", {"title": "x"})
        with self.assertRaises(StorageError):
            self.manager.delete_item("news", "news_1")
        self.assertEqual(self.store.get_json("clean-data/news.json"), {"oops": True})

    def test_invalid_json_aborts_item_writes(self):
        self.store.stored_objects["clean-data/portfolio.json"] = b"[{not json"
        with self.assertRaises(StorageError):
            self.manager.update_item("portfolio", "portfolio_1", {"title": "x"})
        self.assertEqual(self.store.stored_objects["clean-data/portfolio.json"], b"[{not json")

    def test_save_content_validates_shape(self):
        with self.assertRaises(CmsError):
            self.manager.save_content("news", {"not": "a list"})
        with self.assertRaises(CmsError):
            self.manager.save_content("about", [])
        self.assertTrue(self.manager.save_content("about", {"title": "Studio"}))
        self.assertEqual(self.store.get_json("clean-data/about.json"), {"title": "Studio"})

    def test_add_item_assigns_id_order_and_timestamps(self):
        first = self.manager.add_item("portfolio", {"id": "mine", "title": "One"})
        second = self.manager.add_item("portfolio", {"title": "Two"})

        self.assertRegex(first["id"], r"^portfolio_\d+_[0-9a-z]{9}$")
        self.assertNotEqual(first["id"], second["id"])
        self.assertEqual(first["order"], 10)
        self.assertEqual(second["order"], 20)
        self.assertEqual(first["created_at"], first["updated_at"])
        self.assertEqual(len(self.manager.get_content("portfolio")), 2)

    def test_add_item_orders_after_highest_existing(self):
        self.store.put_json(
            "clean-data/services.json",
            [{"id": "a", "order": 35}, {"id": "b"}, {"id": "c", "order": "7"}],
        )
        item = self.manager.add_item("services", {"title": "New"})
        self.assertEqual(item["order"], 45)

    def test_add_item_does_not_mutate_input(self):
        source = {"title": "Post", "tags": ["a"], "content": "<p>x</p>"}
        self.manager.add_item("news", source)
        self.assertEqual(source, {"title": "Post", "tags": ["a"], "content": "<p>x</p>"})

    def test_html_body_is_moved_to_its_own_blob(self):
        item = self.manager.add_item("news", {"title": "Post", "content": "<p>Body</p>"})
        self.assertNotIn("content", item)
        self.assertEqual(
            self.store.get_text(item["content_file"]), "<p>Body</p>"
        )
        loaded = self.manager.get_content_with_html("news", item["id"])
        self.assertEqual(loaded["content"], "<p>Body</p>")

    def test_html_write_failure_keeps_body_inline(self):
        with patch.object(self.store, "put_text", side_effect=RuntimeError("disk full")):
            item = self.manager.add_item("news", {"title": "Post", "content": "<p>Body</p>"})
        self.assertEqual(item["content"], "<p>Body</p>")
        self.assertNotIn("content_file", item)

    def test_update_item_preserves_created_at_and_content_file(self):
        item = self.manager.add_item("news", {"title": "Post", "content": "<p>Body</p>"})
        updated = self.manager.update_item("news", item["id"], {"title": "Edited"})
        self.assertEqual(updated["created_at"], item["created_at"])
        self.assertEqual(updated["content_file"], item["content_file"])
        self.assertEqual(updated["id"], item["id"])

    def test_update_item_with_new_body_rewrites_blob(self):
        item = self.manager.add_item("news", {"title": "Post", "content": "<p>Old</p>"})
        self.manager.update_item("news", item["id"], {"title": "Post", "content": "<p>New</p>"})
        self.assertEqual(self.store.get_text(item["content_file"]), "<p>New</p>")

    def test_update_and_delete_missing_item(self):
        with self.assertRaises(ItemNotFoundError) as ctx:
            self.manager.update_item("news", "news_missing", {})
        self.assertEqual(ctx.exception.status_code, 404)
        with self.assertRaises(ItemNotFoundError):
            self.manager.delete_item("news", "news_missing")

    def test_delete_item_removes_body_and_images(self):
        item = self.manager.add_item(
            "portfolio",
            {
                "title": "Opera",
                "content": "<p>Body</p>",
                "image_urls": ["https://raw.example/images/a.png", ""],
            },
        )
        self.assertTrue(self.manager.delete_item("portfolio", item["id"]))
        self.assertIsNone(self.store.get_text(item["content_file"]))
        self.assertEqual(self.removed_images, ["https://raw.example/images/a.png"])
        self.assertEqual(self.manager.get_content("portfolio"), [])

    def test_delete_item_tolerates_cleanup_failures(self):
        def failing_remover(url):
            raise RuntimeError("github down")

        self.manager.image_remover = failing_remover
        item = self.manager.add_item("news", {"title": "x", "image_urls": ["https://r/images/a.png"]})
        self.assertTrue(self.manager.delete_item("news", item["id"]))

    def test_array_operations_on_object_types(self):
        with self.assertRaises(NotArrayTypeError) as ctx:
            self.manager.add_item("settings", {})
        self.assertEqual(ctx.exception.message, "settings is not an array type")

    def test_update_object_sets_updated_at(self):
        saved = self.manager.update_object("about", {"title": "Studio"})
        self.assertEqual(saved["title"], "Studio")
        self.assertIn("updated_at", saved)
        with self.assertRaises(NotArrayTypeError):
            self.manager.update_object("news", {})

    def test_find_item_prefers_slug(self):
        self.store.put_json(
            "clean-data/news.json",
            [{"id": "launch", "slug": "other"}, {"id": "news_2", "slug": "launch"}],
        )
        self.assertEqual(self.manager.find_item("news", "launch")["id"], "news_2")
        self.assertEqual(self.manager.find_item("news", "other")["id"], "launch")
        self.assertIsNone(self.manager.find_item("news", "nothing"))

    def test_migrate_inline_bodies(self):
        self.store.put_json(
            "clean-data/services.json",
            [
                {"id": "services_1", "content": "<p>One</p>"},
                {"id": "services_2", "content_file": "clean-data/content/services/services_2.html"},
                {"content": "<p>No id</p>"},
            ],
        )
        self.assertTrue(self.manager.migrate_all_content_to_html())
        items = self.manager.get_content("services")
        self.assertEqual(items[0]["content_file"], "clean-data/content/services/services_1.html")
        self.assertNotIn("content", items[0])
        self.assertEqual(items[2]["content"], "<p>No id</p>")

        self.assertFalse(self.manager.migrate_all_content_to_html())


class HtmlContentStoreTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryBlobStore()
        self.html = HtmlContentStore(self.store)

    def test_legacy_local_references_are_normalized(self):
        self.store.put_text("clean-data/content/news/n1.html", "<p>hi</p>")
        self.assertEqual(self.html.load("/content-data/content/news/n1.html"), "<p>hi</p>")
        self.assertEqual(self.html.load("content/news/n1.html"), "<p>hi</p>")

    def test_missing_file_loads_empty(self):
        self.assertEqual(self.html.load("clean-data/content/news/none.html"), "")
        self.assertEqual(self.html.load(None), "")

    def test_delete_missing_counts_as_deleted(self):
        self.assertTrue(self.html.delete("clean-data/content/news/none.html"))
        self.assertFalse(self.html.delete(""))

    @patch("cms.html_content.requests.get")
    def test_remote_reference_is_fetched(self, mock_get):
        mock_get.return_value.status_code = 200
        mock_get.return_value.ok = True
        mock_get.return_value.text = "<p>remote</p>"
        url = "https://raw.githubusercontent.com/o/r/main/content/news/n1.html"
        self.assertEqual(self.html.load(url), "<p>remote</p>")
        mock_get.assert_called_once()

    @patch("cms.html_content.requests.get")
    def test_remote_404_loads_empty(self, mock_get):
        mock_get.return_value.status_code = 404
        mock_get.return_value.ok = False
        self.assertEqual(self.html.load("https://example.test/gone.html"), "")


if __name__ == "__main__":
    unittest.main()
