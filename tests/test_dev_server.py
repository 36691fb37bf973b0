import json
import tempfile
import unittest
from pathlib import Path

from starlette.testclient import TestClient

from chocola.compiler.config import CONFIG_FILENAME
from chocola.compiler.exceptions import MissingContainerError, SourceIndexError
from chocola.runtime.dev_server import (
    RELOAD_CLIENT_PATH,
    VERSION_PATH,
    DevState,
    create_app,
    rebuild,
)
from chocola.runtime.error_renderer import render_build_error


class TestDevApp(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.out_dir = Path(self._tmp.name)
        (self.out_dir / "index.html").write_text("<html><body>built</body></html>")
        (self.out_dir / "about").mkdir()
        (self.out_dir / "about" / "index.html").write_text("<p>about</p>")
        (self.out_dir / "run-1234abcd.js").write_text("go();")
        self.state = DevState(version=3)
        self.client = TestClient(create_app(self.out_dir, self.state))

    def tearDown(self):
        self._tmp.cleanup()

    def test_version_endpoint(self):
        response = self.client.get(VERSION_PATH)
        self.assertEqual(response.json(), {"version": 3, "error": False})

    def test_reload_client(self):
        response = self.client.get(RELOAD_CLIENT_PATH)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/javascript"))
        self.assertIn(VERSION_PATH, response.text)

    def test_index_and_static_files(self):
        self.assertIn("built", self.client.get("/").text)
        self.assertEqual(self.client.get("/run-1234abcd.js").text, "go();")
        self.assertIn("about", self.client.get("/about/").text)
        self.assertEqual(self.client.get("/missing.js").status_code, 404)

    def test_error_page_while_build_is_broken(self):
        self.state.error = MissingContainerError(
            "Index page must have an <app> element", "src/index.html"
        )
        response = self.client.get("/")
        self.assertEqual(response.status_code, 500)
        self.assertIn("Index page must have an &lt;app&gt; element", response.text)
        self.assertIn("src/index.html", response.text)
        self.assertTrue(self.client.get(VERSION_PATH).json()["error"])


class TestRebuild(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        (self.root / CONFIG_FILENAME).write_text(
            json.dumps({"bundle": {"srcDir": "src", "outDir": "dist", "libDir": "lib"}})
        )
        (self.root / "src" / "lib").mkdir(parents=True)

    def tearDown(self):
        self._tmp.cleanup()

    def test_broken_then_fixed(self):
        index = self.root / "src" / "index.html"
        index.write_text("<html><body><main></main></body></html>")
        state = DevState()

        with self.assertLogs("chocola.runtime.dev_server", level="ERROR"):
            self.assertFalse(rebuild(self.root, state))
        self.assertIsInstance(state.error, MissingContainerError)
        self.assertEqual(state.version, 1)

        index.write_text("<html><body><app>ok</app></body></html>")
        self.assertTrue(rebuild(self.root, state))
        self.assertIsNone(state.error)
        self.assertEqual(state.version, 2)

        html = (self.root / "dist" / "index.html").read_text()
        self.assertIn(f'src="{RELOAD_CLIENT_PATH}"', html)

    def test_unparsable_index_keeps_server_alive(self):
        (self.root / "src" / "index.html").write_text("")
        state = DevState()
        with self.assertLogs("chocola.runtime.dev_server", level="ERROR"):
            self.assertFalse(rebuild(self.root, state))
        self.assertIsInstance(state.error, SourceIndexError)


class TestErrorRenderer(unittest.TestCase):
    def test_page_mentions_version_and_client(self):
        page = render_build_error(
            MissingContainerError("no <app>"), version=7, reload_client=RELOAD_CLIENT_PATH
        )
        self.assertIn("no &lt;app&gt;", page)
        self.assertIn(RELOAD_CLIENT_PATH, page)


if __name__ == "__main__":
    unittest.main()
