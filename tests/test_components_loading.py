import tempfile
import textwrap
import unittest
from pathlib import Path

from chocola.compiler.components import (
    ComponentDefinition,
    ComponentLibrary,
    component_key,
    load_components,
)
from chocola.compiler.exceptions import ComponentLoadError


class TestComponentDefinition(unittest.TestCase):
    def test_key_is_lowercased(self):
        self.assertEqual(component_key("NavBar"), "navbar.html")
        self.assertEqual(ComponentDefinition(name="NavBar", body="").key, "navbar.html")

    def test_behavior_and_styles_flags(self):
        plain = ComponentDefinition(name="A", body="<p></p>", styles="  ")
        self.assertFalse(plain.has_styles)
        self.assertFalse(plain.has_behavior)
        self.assertTrue(ComponentDefinition(name="B", body="", effects={}).has_behavior)

    def test_from_mapping_requires_body(self):
        with self.assertRaises(ComponentLoadError):
            ComponentDefinition.from_mapping("Empty", {"styles": "p {}"})

    def test_library_lookup(self):
        library = ComponentLibrary.of(ComponentDefinition(name="Card", body="<div></div>"))
        self.assertIsNotNone(library.lookup("card"))
        self.assertIsNotNone(library.lookup("CARD"))
        self.assertIsNone(library.lookup("nav"))
        self.assertEqual(list(library), ["card.html"])


class TestLoadComponents(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.lib = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, name, content):
        (self.lib / name).write_text(textwrap.dedent(content), encoding="utf-8")

    def test_markup_component_with_sidecars(self):
        self.write("Card.html", "<div class='card'><slot></slot></div>")
        self.write("Card.css", ".card { padding: 1em; }")
        self.write("Card.js", "function RUNTIME(self) {}")

        result = load_components(self.lib)
        card = result.library["card.html"]
        self.assertEqual(card.body, "<div class='card'><slot></slot></div>")
        self.assertEqual(card.styles, ".card { padding: 1em; }")
        self.assertEqual(card.script_source(), "function RUNTIME(self) {}")
        self.assertEqual(card.source, self.lib / "Card.html")

    def test_python_component(self):
        self.write(
            "Badge.py",
            """
            def component():
                return {
                    "body": "<span>{label}</span>",
                    "script": lambda: "function RUNTIME(self) {}",
                }
            """,
        )
        badge = load_components(self.lib).library.lookup("badge")
        self.assertEqual(badge.body, "<span>{label}</span>")
        self.assertEqual(badge.script_source(), "function RUNTIME(self) {}")
        self.assertIsNone(badge.styles)

    def test_module_without_factory_is_reported(self):
        self.write("Helper.py", "VALUE = 1\n")
        result = load_components(self.lib)
        self.assertEqual(result.found, ["Helper.py"])
        self.assertEqual(result.not_defined, ["Helper.py"])
        self.assertEqual(len(result.library), 0)

    def test_lowercase_and_other_files_ignored(self):
        self.write("helpers.html", "<p></p>")
        self.write("Notes.txt", "nothing")
        self.write("Card.css", ".x {}")
        result = load_components(self.lib)
        self.assertEqual(result.found, [])
        self.assertEqual(len(result.library), 0)

    def test_python_module_shadows_markup(self):
        self.write("Nav.html", "<nav>markup</nav>")
        self.write("Nav.py", "def component():\n    return {'body': '<nav>py</nav>'}\n")
        with self.assertLogs("chocola.compiler.components", level="WARNING"):
            result = load_components(self.lib)
        self.assertEqual(result.library["nav.html"].body, "<nav>py</nav>")

    def test_broken_module(self):
        self.write("Broken.py", "raise RuntimeError('nope')\n")
        with self.assertRaises(ComponentLoadError) as cm:
            load_components(self.lib)
        self.assertIn("RuntimeError", cm.exception.message)

    def test_factory_raising_is_a_load_error(self):
        self.write("Bad.py", "def component():\n    return {}['x']\n")
        with self.assertRaises(ComponentLoadError) as cm:
            load_components(self.lib)
        self.assertIn("KeyError", cm.exception.message)
        self.assertEqual(cm.exception.path, str(self.lib / "Bad.py"))

    def test_factory_must_return_mapping(self):
        self.write("Odd.py", "def component():\n    return '<p></p>'\n")
        with self.assertRaises(ComponentLoadError):
            load_components(self.lib)

    def test_missing_directory(self):
        with self.assertRaises(ComponentLoadError) as cm:
            load_components(self.lib / "missing")
        self.assertEqual(cm.exception.path, str(self.lib / "missing"))


if __name__ == "__main__":
    unittest.main()
