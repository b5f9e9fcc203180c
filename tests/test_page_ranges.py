from __future__ import annotations

import unittest

from pdf_edit.errors import ParseError, ValidationError
from pdf_edit.page_ranges import PageRange, parse_page_groups, parse_page_list, single_page_ranges


class TestParsePageGroups(unittest.TestCase):
    def test_single_group_with_range_and_number(self) -> None:
        groups = parse_page_groups("1-3,5", page_count=5)
        self.assertEqual([list(g) for g in groups], [[1, 2, 3, 5]])

    def test_out_of_bounds_number_yields_empty_range(self) -> None:
        groups = parse_page_groups("7", page_count=5)
        self.assertEqual(len(groups), 1)
        self.assertTrue(groups[0].is_empty)
        self.assertEqual(len(groups[0]), 0)

    def test_groups_are_split_on_semicolon(self) -> None:
        groups = parse_page_groups("1-3;5", page_count=5)
        self.assertEqual([list(g) for g in groups], [[1, 2, 3], [5]])

    def test_first_seen_order_and_dedup(self) -> None:
        (group,) = parse_page_groups("3,1,3,2-3", page_count=5)
        self.assertEqual(group.pages, (3, 1, 2))

    def test_range_partially_out_of_bounds_is_clipped(self) -> None:
        (group,) = parse_page_groups("4-9", page_count=5)
        self.assertEqual(list(group), [4, 5])

    def test_huge_upper_bound_only_expands_existing_pages(self) -> None:
        groups = parse_page_groups("1-20000000;3-999999999999", page_count=3)
        self.assertEqual([list(g) for g in groups], [[1, 2, 3], [3]])

    def test_page_zero_is_dropped(self) -> None:
        (group,) = parse_page_groups("0,1", page_count=2)
        self.assertEqual(list(group), [1])

    def test_reversed_range_yields_nothing(self) -> None:
        (group,) = parse_page_groups("3-1", page_count=5)
        self.assertTrue(group.is_empty)

    def test_whitespace_and_empty_items_are_tolerated(self) -> None:
        (group,) = parse_page_groups(" 1 , ,2 - 3 ", page_count=5)
        self.assertEqual(list(group), [1, 2, 3])

    def test_empty_group_between_separators(self) -> None:
        groups = parse_page_groups("1;;2", page_count=2)
        self.assertEqual([list(g) for g in groups], [[1], [], [2]])

    def test_indices_are_zero_based(self) -> None:
        self.assertEqual(PageRange(pages=(2, 1)).indices(), [1, 0])

    def test_malformed_tokens_raise_with_token(self) -> None:
        for expression, token in [("a", "a"), ("1-x", "x"), ("1-", ""), ("-2", ""), ("1.5", "1.5")]:
            with self.subTest(expression=expression):
                with self.assertRaises(ParseError) as ctx:
                    parse_page_groups(expression, page_count=5)
                self.assertEqual(ctx.exception.token.strip(), token)
                self.assertEqual(ctx.exception.code, "RANGE_SYNTAX")

    def test_parse_error_is_a_validation_error(self) -> None:
        with self.assertRaises(ValidationError):
            parse_page_groups("1-2-3", page_count=5)

    def test_non_ascii_digits_are_rejected(self) -> None:
        with self.assertRaises(ParseError):
            parse_page_groups("٣", page_count=5)


class TestParsePageList(unittest.TestCase):
    def test_order_and_duplicates_preserved_out_of_range_dropped(self) -> None:
        self.assertEqual(parse_page_list("3,1,5-6,1,99", page_count=10), [3, 1, 5, 6, 1])

    def test_empty_expression_is_empty_list(self) -> None:
        self.assertEqual(parse_page_list("", page_count=3), [])

    def test_groups_are_rejected(self) -> None:
        with self.assertRaises(ParseError):
            parse_page_list("1;2", page_count=3)

    def test_huge_range_is_clipped_to_document(self) -> None:
        self.assertEqual(parse_page_list("2-999999999999", page_count=4), [2, 3, 4])
        self.assertEqual(parse_page_list("500000000-900000000", page_count=4), [])


class TestSinglePageRanges(unittest.TestCase):
    def test_one_range_per_page(self) -> None:
        self.assertEqual([r.pages for r in single_page_ranges(3)], [(1,), (2,), (3,)])

    def test_zero_pages(self) -> None:
        self.assertEqual(single_page_ranges(0), [])


if __name__ == "__main__":
    unittest.main()
