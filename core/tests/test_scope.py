"""Tests for qualified-name helpers."""

import unittest

from core.scope import is_within_scope, normalize_qualified_name, parent_scope, simple_name


class TestNormalizeQualifiedName(unittest.TestCase):
    def test_scope_operator_spacing(self) -> None:
        self.assertEqual(
            normalize_qualified_name("Controller ::~Controller"),
            "Controller::~Controller",
        )

    def test_extra_whitespace(self) -> None:
        self.assertEqual(
            normalize_qualified_name(" outer ::  inner :: value "),
            "outer::inner::value",
        )

    def test_template_spacing_collapsed(self) -> None:
        self.assertEqual(
            normalize_qualified_name("ns::Box<  int,   long >"),
            "ns::Box< int, long >",
        )


class TestScopes(unittest.TestCase):
    def test_parent_scope_uses_last_separator(self) -> None:
        self.assertEqual(parent_scope("my::nested::ns"), "my::nested")
        self.assertEqual(parent_scope("ns::Widget"), "ns")

    def test_parent_scope_global(self) -> None:
        self.assertIsNone(parent_scope("global"))

    def test_simple_name(self) -> None:
        self.assertEqual(simple_name("ns::Widget::draw"), "draw")
        self.assertEqual(simple_name("draw"), "draw")
        self.assertEqual(simple_name(""), "")

    def test_is_within_scope(self) -> None:
        self.assertTrue(is_within_scope("ns", "ns"))
        self.assertTrue(is_within_scope("ns::Widget", "ns"))
        self.assertFalse(is_within_scope("nsx::Widget", "ns"))
        self.assertFalse(is_within_scope("other::ns", "ns"))


if __name__ == "__main__":
    unittest.main()
