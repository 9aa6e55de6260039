import base64
import unittest
from unittest.mock import MagicMock, patch

import requests

from cms.exceptions import GitHubError
from cms.github import GitHubContentRepo, InMemoryContentRepo, raw_base_url


def response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.json.return_value = payload if payload is not None else {}
    resp.text = ""
    return resp


class GitHubContentRepoTests(unittest.TestCase):
    def setUp(self):
        self.repo = GitHubContentRepo(owner="zscorenotes", repo="zscore-content", token="tok")
        self.session = MagicMock()
        self.repo._session = self.session

    def test_raw_url(self):
        self.assertEqual(
            self.repo.raw_url("images/a.png"),
            "https://raw.githubusercontent.com/zscorenotes/zscore-content/main/images/a.png",
        )
        self.assertEqual(
            raw_base_url("o", "r", "dev"), "https://raw.githubusercontent.com/o/r/dev/"
        )

    def test_get_file_decodes_content(self):
        self.session.request.return_value = response(
            payload={
                "path": "images/a.png",
                "sha": "abc",
                "size": 3,
                "content": base64.b64encode(b"png").decode(),
            }
        )
        file = self.repo.get_file("images/a.png")
        self.assertEqual(file.sha, "abc")
        self.assertEqual(file.content, b"png")

        method, url = self.session.request.call_args.args
        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(method, "GET")
        self.assertEqual(
            url, "https://api.github.com/repos/zscorenotes/zscore-content/contents/images/a.png"
        )
        self.assertEqual(kwargs["headers"]["Authorization"], "token tok")
        self.assertEqual(kwargs["headers"]["Accept"], "application/vnd.github.v3+json")
        self.assertEqual(kwargs["params"], {"ref": "main"})

    def test_get_missing_file(self):
        self.session.request.return_value = response(404, {"message": "Not Found"})
        self.assertIsNone(self.repo.get_file("images/none.png"))

    def test_put_new_file(self):
        self.session.request.side_effect = [
            response(404),
            response(201, {"content": {"sha": "new-sha"}}),
        ]
        sha = self.repo.put_file("images/a.png", b"data", "Upload image: a.png")
        self.assertEqual(sha, "new-sha")
        put_call = self.session.request.call_args_list[1]
        self.assertEqual(put_call.args[0], "PUT")
        body = put_call.kwargs["json"]
        self.assertEqual(body["content"], base64.b64encode(b"data").decode())
        self.assertEqual(body["branch"], "main")
        self.assertNotIn("sha", body)

    def test_put_existing_file_sends_sha(self):
        self.session.request.side_effect = [
            response(200, {"sha": "old-sha", "content": ""}),
            response(200, {"content": {"sha": "new-sha"}}),
        ]
        self.repo.put_file("images/a.png", b"data", "update")
        self.assertEqual(self.session.request.call_args_list[1].kwargs["json"]["sha"], "old-sha")

    def test_put_error_is_wrapped(self):
        self.session.request.side_effect = [
            response(404),
            response(422, {"message": "Invalid request"}),
        ]
        with self.assertRaises(GitHubError) as ctx:
            self.repo.put_file("images/a.png", b"data", "upload")
        self.assertIn("422", ctx.exception.message)
        self.assertEqual(ctx.exception.status_code, 502)

    def test_network_error_is_wrapped(self):
        self.session.request.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(GitHubError):
            self.repo.get_file("images/a.png")

    def test_writes_require_token(self):
        repo = GitHubContentRepo(owner="o", repo="r", token=None)
        with self.assertRaises(GitHubError):
            repo.put_file("images/a.png", b"x", "upload")
        with self.assertRaises(GitHubError):
            repo.delete_file("images/a.png", "delete")

    def test_delete_file(self):
        self.session.request.side_effect = [
            response(200, {"sha": "old-sha", "content": ""}),
            response(200, {}),
        ]
        self.assertTrue(self.repo.delete_file("images/a.png", "Delete image: a.png"))
        delete_call = self.session.request.call_args_list[1]
        self.assertEqual(delete_call.args[0], "DELETE")
        self.assertEqual(delete_call.kwargs["json"]["sha"], "old-sha")

    def test_delete_missing_file(self):
        self.session.request.return_value = response(404)
        self.assertFalse(self.repo.delete_file("images/none.png", "delete"))

    def test_list_dir_keeps_files_only(self):
        self.session.request.return_value = response(
            payload=[
                {"type": "file", "path": "images/a.png", "sha": "1", "size": 10},
                {"type": "dir", "path": "images/old", "sha": "2"},
            ]
        )
        entries = self.repo.list_dir("images")
        self.assertEqual([e.path for e in entries], ["images/a.png"])

    @patch("cms.github.requests.Session")
    def test_session_created_per_client(self, mock_session):
        GitHubContentRepo(owner="o", repo="r", token="t")
        mock_session.assert_called_once()


class InMemoryContentRepoTests(unittest.TestCase):
    def test_records_commits(self):
        repo = InMemoryContentRepo()
        repo.put_file("images/a.png", b"x", "upload")
        repo.put_file("images/nested/b.png", b"y", "upload")
        self.assertEqual([f.path for f in repo.list_dir("images")], ["images/a.png"])
        self.assertEqual(repo.get_file("images/a.png").content, b"x")
        self.assertTrue(repo.delete_file("images/a.png", "delete"))
        self.assertFalse(repo.delete_file("images/a.png", "delete"))
        self.assertEqual([c[0] for c in repo.commits], ["put", "put", "delete"])


if __name__ == "__main__":
    unittest.main()
