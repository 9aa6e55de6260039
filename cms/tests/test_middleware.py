import unittest

from cms.middleware import requires_auth


class RequiresAuthTests(unittest.TestCase):
    def test_public_reads(self):
        self.assertFalse(requires_auth("/api/content-clean", "GET"))
        self.assertFalse(requires_auth("/api/content-html", "GET"))
        self.assertFalse(requires_auth("/api/content-html", "HEAD"))

    def test_protected_writes(self):
        self.assertTrue(requires_auth("/api/content-clean", "POST"))
        self.assertTrue(requires_auth("/api/upload", "POST"))
        self.assertTrue(requires_auth("/api/upload", "DELETE"))

    def test_protected_reads(self):
        self.assertTrue(requires_auth("/api/upload", "GET"))
        self.assertTrue(requires_auth("/api/list-blobs", "GET"))
        self.assertTrue(requires_auth("/api/storage-status", "GET"))

    def test_unrelated_paths(self):
        self.assertFalse(requires_auth("/api/auth/login", "POST"))
        self.assertFalse(requires_auth("/news/launch", "GET"))
        self.assertFalse(requires_auth("/api/uploader", "POST"))

    def test_subpaths_and_custom_prefix(self):
        self.assertTrue(requires_auth("/api/upload/extra", "POST"))
        self.assertTrue(requires_auth("/v2/content-clean", "PUT", api_prefix="/v2"))
        self.assertFalse(requires_auth("/api/content-clean", "PUT", api_prefix="/v2"))


if __name__ == "__main__":
    unittest.main()
