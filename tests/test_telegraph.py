"""Tests for telegraph_archiver/telegraph.py and uploaders.py."""

import json
import os
import unittest
from unittest.mock import Mock, patch

from telegraph_archiver.config import ArchiveConfig
from telegraph_archiver.errors import TelegraphAPIError, UploadFailed
from telegraph_archiver.images import temp_path
from telegraph_archiver.models import Element, Text
from telegraph_archiver.telegraph import TelegraphClient, new_client, node_to_json
from telegraph_archiver.uploaders import (
    CatboxUploader,
    ImgBBUploader,
    ImgurUploader,
    TelegraphUploader,
    build_backends,
)


def _response(payload):
    resp = Mock()
    resp.json.return_value = payload
    return resp


def _tmp_file(data=b"\x89PNG\r\n\x1a\n"):
    path = temp_path(suffix=".png")
    with open(path, "wb") as handle:
        handle.write(data)
    return path


class TestNodeSerialisation(unittest.TestCase):

    def test_text_and_elements(self):
        node = Element(
            tag="p",
            children=[Text("hello "), Element(tag="img", attrs={"src": "https://x/1.png", "alt": ""})],
        )
        self.assertEqual(
            node_to_json(node),
            {"tag": "p", "children": ["hello ", {"tag": "img", "attrs": {"src": "https://x/1.png", "alt": ""}}]},
        )

    def test_empty_members_omitted(self):
        self.assertEqual(node_to_json(Element(tag="br")), {"tag": "br"})


class TestTelegraphClient(unittest.TestCase):

    def setUp(self):
        self.session = Mock()
        self.client = TelegraphClient(access_token="tok", session=self.session)

    def test_create_account_stores_token(self):
        self.session.post.return_value = _response({"ok": True, "result": {"access_token": "abc"}})

        client = new_client("telegraph-go", "Anonymous", "https://example.org", session=self.session)

        self.assertEqual(client.access_token, "abc")
        url = self.session.post.call_args[0][0]
        self.assertEqual(url, "https://api.telegra.ph/createAccount")

    def test_create_page(self):
        self.session.post.return_value = _response(
            {"ok": True, "result": {"path": "Title-10-19", "url": "https://telegra.ph/Title-10-19", "title": "Title"}}
        )

        page = self.client.create_page("Title", [Element(tag="p", children=[Text("x")])])

        self.assertEqual(page.path, "Title-10-19")
        self.assertEqual(page.url, "https://telegra.ph/Title-10-19")
        data = self.session.post.call_args[1]["data"]
        self.assertEqual(data["access_token"], "tok")
        self.assertEqual(json.loads(data["content"]), [{"tag": "p", "children": ["x"]}])

    def test_edit_page_sends_author(self):
        self.session.post.return_value = _response({"ok": True, "result": {"path": "p", "url": "https://telegra.ph/p"}})

        self.client.edit_page("p", "Title", [], author_name="Source", author_url="https://example.org/a")

        url = self.session.post.call_args[0][0]
        data = self.session.post.call_args[1]["data"]
        self.assertEqual(url, "https://api.telegra.ph/editPage/p")
        self.assertEqual(data["author_name"], "Source")
        self.assertEqual(data["author_url"], "https://example.org/a")

    def test_api_error(self):
        self.session.post.return_value = _response({"ok": False, "error": "TITLE_INVALID"})

        with self.assertRaises(TelegraphAPIError) as ctx:
            self.client.create_page("??", [])
        self.assertIn("TITLE_INVALID", str(ctx.exception))

    def test_upload_returns_absolute_urls(self):
        path = _tmp_file()
        self.addCleanup(os.remove, path)
        self.session.post.return_value = _response([{"src": "/file/abc.png"}])

        self.assertEqual(self.client.upload([path]), ["https://telegra.ph/file/abc.png"])
        self.assertEqual(self.session.post.call_args[0][0], "https://telegra.ph/upload")

    def test_upload_error(self):
        path = _tmp_file()
        self.addCleanup(os.remove, path)
        self.session.post.return_value = _response({"error": "File type invalid"})

        with self.assertRaises(UploadFailed):
            self.client.upload([path])


class TestUploaders(unittest.TestCase):

    def test_telegraph_uploader_delegates(self):
        client = Mock()
        client.upload.return_value = ["https://telegra.ph/file/a.png"]
        self.assertEqual(TelegraphUploader(client).upload(["/tmp/a.png"]), ["https://telegra.ph/file/a.png"])

    def test_imgbb_upload(self):
        path = _tmp_file()
        self.addCleanup(os.remove, path)
        session = Mock()
        session.post.return_value = _response({"success": True, "data": {"url": "https://i.ibb.co/a/b.png"}})

        urls = ImgBBUploader("key", session=session).upload([path])

        self.assertEqual(urls, ["https://i.ibb.co/a/b.png"])
        self.assertEqual(session.post.call_args[1]["data"]["key"], "key")

    def test_imgbb_failure(self):
        path = _tmp_file()
        self.addCleanup(os.remove, path)
        session = Mock()
        session.post.return_value = _response({"success": False, "error": {"message": "bad key"}})

        with self.assertRaises(UploadFailed):
            ImgBBUploader("key", session=session).upload([path])

    def test_imgur_upload(self):
        with patch("pyimgur.Imgur") as imgur:
            imgur.return_value.upload_image.return_value = Mock(link="https://i.imgur.com/a.png")
            urls = ImgurUploader("client-id").upload(["/tmp/a.png"])

        imgur.assert_called_once_with("client-id")
        self.assertEqual(urls, ["https://i.imgur.com/a.png"])

    def test_catbox_upload(self):
        path = _tmp_file()
        self.addCleanup(os.remove, path)
        session = Mock()
        session.post.return_value = Mock(text="https://files.catbox.moe/abc123.png\n")

        urls = CatboxUploader(session=session).upload([path])

        self.assertEqual(urls, ["https://files.catbox.moe/abc123.png"])
        self.assertEqual(session.post.call_args[1]["data"], {"reqtype": "fileupload"})
        self.assertIn("fileToUpload", session.post.call_args[1]["files"])

    def test_catbox_failure(self):
        path = _tmp_file()
        self.addCleanup(os.remove, path)
        session = Mock()
        session.post.return_value = Mock(text="")

        with self.assertRaises(UploadFailed):
            CatboxUploader(session=session).upload([path])

    def test_build_backends(self):
        client = Mock()
        names = lambda cfg: [b.name for b in build_backends(client, cfg, session=Mock())]

        self.assertEqual(names(ArchiveConfig()), ["telegraph", "catbox"])
        self.assertEqual(names(ArchiveConfig(secondary_backend="imgbb", imgbb_api_key="k")), ["telegraph", "imgbb"])
        with patch("pyimgur.Imgur"):
            self.assertEqual(
                names(ArchiveConfig(secondary_backend="imgur", imgur_client_id="id")), ["telegraph", "imgur"]
            )

    def test_missing_credentials_fall_back_to_catbox(self):
        client = Mock()
        for config in (ArchiveConfig(secondary_backend="imgbb"), ArchiveConfig(secondary_backend="imgur")):
            with self.assertLogs("telegraph_archiver", level="WARNING") as logs:
                backends = build_backends(client, config, session=Mock())
            self.assertEqual([b.name for b in backends], ["telegraph", "catbox"])
            self.assertIn("using catbox", logs.output[0])

    def test_single_backend_chain_warns(self):
        with self.assertLogs("telegraph_archiver", level="WARNING") as logs:
            backends = build_backends(Mock(), ArchiveConfig(secondary_backend=None, imgbb_api_key="k"))

        self.assertEqual([b.name for b in backends], ["telegraph"])
        self.assertIn("no fallback", logs.output[0])


if __name__ == "__main__":
    unittest.main()
