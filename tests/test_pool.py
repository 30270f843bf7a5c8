from __future__ import annotations

import unittest

from cfcraffle.exceptions import AllDuplicatesError
from cfcraffle.pool import DuplicateResolution, normalize_names, resolve_duplicates


class NormalizeNamesTests(unittest.TestCase):
    def test_splits_trims_and_drops_blank_lines(self) -> None:
        raw = "  Alice \n\nBob\r\n   \r\n\tCarol\t\n"
        self.assertEqual(normalize_names(raw), ["Alice", "Bob", "Carol"])

    def test_splits_on_bare_carriage_return(self) -> None:
        self.assertEqual(normalize_names("Alice\rBob\r\nCarol"), ["Alice", "Bob", "Carol"])

    def test_other_unicode_separators_stay_inside_a_name(self) -> None:
        for separator in ("\u2028", "\u2029", "\x85", "\x0b", "\x0c", "\x1e"):
            with self.subTest(separator=repr(separator)):
                self.assertEqual(
                    normalize_names(f"Ann{separator}Bo\nCy"), [f"Ann{separator}Bo", "Cy"]
                )

    def test_keeps_duplicates_and_casing(self) -> None:
        self.assertEqual(
            normalize_names("Alice\nalice\nALICE"), ["Alice", "alice", "ALICE"]
        )

    def test_blank_text_yields_nothing(self) -> None:
        self.assertEqual(normalize_names(" \n\t\n"), [])
        self.assertEqual(normalize_names(""), [])

    def test_non_string_raises(self) -> None:
        with self.assertRaises(TypeError):
            normalize_names(["Alice"])  # type: ignore[arg-type]
        with self.assertRaises(ValueError):
            normalize_names(None)  # type: ignore[arg-type]


class ResolveDuplicatesTests(unittest.TestCase):
    def test_first_seen_casing_wins(self) -> None:
        resolution = resolve_duplicates(["Alice", "alice", "ALICE"], [])
        self.assertEqual(resolution, DuplicateResolution(to_insert=["Alice"], skipped=2))

    def test_existing_names_are_filtered_case_insensitively(self) -> None:
        resolution = resolve_duplicates(["bob", "Dana", "CAROL", "dana"], ["Bob", "Carol"])
        self.assertEqual(resolution.to_insert, ["Dana"])
        self.assertEqual(resolution.skipped, 3)

    def test_input_order_is_preserved(self) -> None:
        resolution = resolve_duplicates(["Zoe", "Adam", "Mia"], ["Eve"])
        self.assertEqual(resolution.to_insert, ["Zoe", "Adam", "Mia"])
        self.assertEqual(resolution.skipped, 0)

    def test_all_duplicates_raises_with_skip_count(self) -> None:
        with self.assertRaises(AllDuplicatesError) as ctx:
            resolve_duplicates(["alice", "ALICE"], ["Alice"])
        self.assertEqual(ctx.exception.skipped, 2)
        self.assertEqual(str(ctx.exception), "All names already exist")

    def test_casefold_matches_special_cases(self) -> None:
        resolution = resolve_duplicates(["STRASSE", "Zed"], ["straße"])
        self.assertEqual(resolution.to_insert, ["Zed"])
        self.assertEqual(resolution.skipped, 1)


if __name__ == "__main__":
    unittest.main()
