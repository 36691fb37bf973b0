import json
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

from chocola.cli.main import cli
from chocola.compiler.config import CONFIG_FILENAME


class TestBuildCommand(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.runner = CliRunner()

    def tearDown(self):
        self._tmp.cleanup()

    def make_project(self):
        (self.root / CONFIG_FILENAME).write_text(
            json.dumps({"bundle": {"srcDir": "src", "outDir": "dist", "libDir": "lib"}})
        )
        lib = self.root / "src" / "lib"
        lib.mkdir(parents=True)
        (lib / "Hello.html").write_text("<p>Hello {who}</p>")
        (self.root / "src" / "index.html").write_text(
            '<html><body><app><hello who="world"></hello></app></body></html>'
        )

    def test_build_succeeds(self):
        self.make_project()
        result = self.runner.invoke(cli, ["build", str(self.root)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("bundled successfully", result.output)
        html = (self.root / "dist" / "index.html").read_text()
        self.assertIn("<p>Hello world</p>", html)

    def test_missing_config_is_fatal(self):
        result = self.runner.invoke(cli, ["build", str(self.root)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error!", result.output)

    def test_empty_index_is_fatal(self):
        self.make_project()
        (self.root / "src" / "index.html").write_text("")
        result = self.runner.invoke(cli, ["build", str(self.root)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error!", result.output)
        self.assertIsInstance(result.exception, SystemExit)

    def test_failing_component_factory_is_fatal(self):
        self.make_project()
        (self.root / "src" / "lib" / "Bad.py").write_text(
            "def component():\n    return {}['x']\n"
        )
        result = self.runner.invoke(cli, ["build", str(self.root)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error!", result.output)
        self.assertIsInstance(result.exception, SystemExit)

    def test_version(self):
        result = self.runner.invoke(cli, ["--version"])
        self.assertEqual(result.exit_code, 0)


if __name__ == "__main__":
    unittest.main()
