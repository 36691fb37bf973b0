import unittest

from chocola.compiler.css import scope_css

SCOPE = "sc-xyz"


class TestScopeCss(unittest.TestCase):
    def test_simple_rule(self):
        self.assertEqual(
            scope_css(".title { color: red; }", SCOPE),
            ".sc-xyz .title { color: red; }",
        )

    def test_every_rule_prefixed(self):
        css = ".a{x:1}\n.b{y:2}"
        self.assertEqual(scope_css(css, SCOPE), ".sc-xyz .a{x:1}\n.sc-xyz .b{y:2}")

    def test_selector_lists(self):
        self.assertEqual(
            scope_css("h1, h2 > span { margin: 0 }", SCOPE),
            ".sc-xyz h1, .sc-xyz h2 > span { margin: 0 }",
        )

    def test_commas_inside_functional_selectors(self):
        self.assertEqual(
            scope_css(":is(.a, .b) p { margin: 0 }", SCOPE),
            ".sc-xyz :is(.a, .b) p { margin: 0 }",
        )

    def test_at_rules_copied_verbatim(self):
        css = "@media (max-width: 600px) { .a { color: red; } }"
        self.assertEqual(scope_css(css, SCOPE), css)

        keyframes = "@keyframes spin { from { opacity: 0 } to { opacity: 1 } }"
        self.assertEqual(scope_css(keyframes, SCOPE), keyframes)

    def test_blockless_at_rule_then_rule(self):
        css = '@import url("x.css");\n.a{b:c}'
        self.assertEqual(scope_css(css, SCOPE), '@import url("x.css");\n.sc-xyz .a{b:c}')

    def test_comments_and_strings(self):
        css = '/* { header } */ .a::after { content: "}{"; }'
        self.assertEqual(
            scope_css(css, SCOPE),
            '/* { header } */ .sc-xyz .a::after { content: "}{"; }',
        )

    def test_empty_input(self):
        self.assertEqual(scope_css("", SCOPE), "")
        self.assertEqual(scope_css("  \n", SCOPE), "  \n")


if __name__ == "__main__":
    unittest.main()
