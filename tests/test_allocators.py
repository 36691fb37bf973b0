import random
import unittest

from chocola.compiler.allocators import (
    BindingIdAllocator,
    CssScopeAllocator,
    RuntimeLetterAllocator,
    index_to_label,
)


class TestIndexToLabel(unittest.TestCase):
    def test_single_letters(self):
        self.assertEqual(index_to_label(0), "a")
        self.assertEqual(index_to_label(1), "b")
        self.assertEqual(index_to_label(25), "z")

    def test_rolls_over_like_spreadsheet_columns(self):
        self.assertEqual(index_to_label(26), "aa")
        self.assertEqual(index_to_label(27), "ab")
        self.assertEqual(index_to_label(51), "az")
        self.assertEqual(index_to_label(52), "ba")
        self.assertEqual(index_to_label(701), "zz")
        self.assertEqual(index_to_label(702), "aaa")

    def test_negative_index_rejected(self):
        with self.assertRaises(ValueError):
            index_to_label(-1)

    def test_labels_are_unique(self):
        labels = [index_to_label(i) for i in range(2000)]
        self.assertEqual(len(set(labels)), 2000)


class TestRuntimeLetterAllocator(unittest.TestCase):
    def test_same_key_same_label(self):
        letters = RuntimeLetterAllocator()
        self.assertEqual(letters.label_for("card.html"), "a")
        self.assertEqual(letters.label_for("badge.html"), "b")
        self.assertEqual(letters.label_for("card.html"), "a")
        self.assertEqual(len(letters), 2)
        self.assertIn("badge.html", letters)

    def test_fresh_allocators_agree(self):
        order = ["nav.html", "card.html", "nav.html", "footer.html"]
        first = RuntimeLetterAllocator()
        second = RuntimeLetterAllocator()
        self.assertEqual(
            [first.label_for(k) for k in order],
            [second.label_for(k) for k in order],
        )


class TestCssScopeAllocator(unittest.TestCase):
    def test_deterministic_and_stable(self):
        a = CssScopeAllocator()
        b = CssScopeAllocator()
        self.assertEqual(a.class_for("card.html"), b.class_for("card.html"))
        self.assertEqual(a.class_for("card.html"), a.class_for("card.html"))
        self.assertTrue(a.class_for("card.html").startswith("sc-"))
        self.assertEqual(len(a.class_for("card.html")), len("sc-") + 6)

    def test_collisions_are_resolved(self):
        # One hex digit leaves only 16 classes, so collisions are certain
        scopes = CssScopeAllocator(length=1)
        classes = [scopes.class_for(f"comp{i}.html") for i in range(12)]
        self.assertEqual(len(set(classes)), 12)


class TestBindingIdAllocator(unittest.TestCase):
    def test_ids_are_unique(self):
        bindings = BindingIdAllocator()
        ids = [bindings.next_id() for _ in range(500)]
        self.assertEqual(len(set(ids)), 500)
        self.assertTrue(all(i.startswith("chid-") and len(i) == 15 for i in ids))

    def test_seeded_rng_is_reproducible(self):
        first = BindingIdAllocator(rng=random.Random(7))
        second = BindingIdAllocator(rng=random.Random(7))
        self.assertEqual(
            [first.next_id() for _ in range(5)], [second.next_id() for _ in range(5)]
        )


if __name__ == "__main__":
    unittest.main()
