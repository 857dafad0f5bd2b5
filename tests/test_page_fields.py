import unittest

from fakes import formula_bool, make_page, rich_text, select, title, url
from shared.errors import PropertyMissingError, PropertyTypeError
from shared.page_fields import (
    FormulaValue,
    MultiSelectValue,
    UnsupportedValue,
    get_date,
    get_formula_boolean,
    get_multi_select,
    get_number,
    get_rich_text,
    get_select,
    get_title,
    get_url,
    parse_property_value,
    plain_text,
    text_payload,
)


class ParsePropertyTests(unittest.TestCase):
    def test_rich_text_concatenates_runs(self):
        raw = {
            "type": "rich_text",
            "rich_text": [{"plain_text": "abc"}, {"plain_text": ", def"}],
        }
        self.assertEqual(parse_property_value(raw).plain_text, "abc, def")

    def test_plain_text_falls_back_to_text_content(self):
        self.assertEqual(plain_text([{"text": {"content": "draft"}}]), "draft")
        self.assertEqual(plain_text(None), "")

    def test_multi_select_and_formula(self):
        value = parse_property_value(
            {"type": "multi_select", "multi_select": [{"name": "Rock"}, {"name": "Jazz"}]}
        )
        self.assertIsInstance(value, MultiSelectValue)
        self.assertEqual(value.names, ("Rock", "Jazz"))

        formula = parse_property_value(formula_bool(True))
        self.assertEqual(formula, FormulaValue("boolean", True))

    def test_unknown_type_is_unsupported(self):
        value = parse_property_value({"type": "people", "people": []})
        self.assertEqual(value, UnsupportedValue("people"))


class PageAccessorTests(unittest.TestCase):
    def setUp(self):
        self.page = make_page("p1", "Blue", "Joni Mitchell", album_ids="a1, a2", rating="5")

    def test_reads_named_properties(self):
        self.assertEqual(get_title(self.page, "Album Name"), "Blue")
        self.assertEqual(get_rich_text(self.page, "Artist"), "Joni Mitchell")
        self.assertEqual(get_rich_text(self.page, "Album ID"), "a1, a2")
        self.assertEqual(get_select(self.page, "Rating"), "5")
        self.assertEqual(get_url(self.page, "URL"), "")

    def test_missing_property_fails_fast(self):
        with self.assertRaises(PropertyMissingError) as ctx:
            get_rich_text(self.page, "Artists")
        self.assertEqual(ctx.exception.page_id, "p1")

    def test_wrong_type_fails_fast(self):
        with self.assertRaises(PropertyTypeError) as ctx:
            get_rich_text(self.page, "Album Name")
        self.assertEqual(ctx.exception.expected, "rich_text")
        self.assertEqual(ctx.exception.actual, "title")

    def test_boolean_formula_without_result_is_false(self):
        self.assertFalse(get_formula_boolean(make_page("p2", "X", "Y", include=None), "Include In Spotify"))
        self.assertTrue(get_formula_boolean(make_page("p3", "X", "Y", include=True), "Include In Spotify"))

    def test_non_boolean_formula_is_rejected(self):
        page = {
            "id": "p4",
            "properties": {"Include In Spotify": {"type": "formula", "formula": {"type": "string", "string": "yes"}}},
        }
        with self.assertRaises(PropertyTypeError):
            get_formula_boolean(page, "Include In Spotify")

    def test_text_payload_shape(self):
        self.assertEqual(
            text_payload("a1"),
            {"rich_text": [{"type": "text", "text": {"content": "a1"}}]},
        )

    def test_number_multi_select_and_date(self):
        page = {
            "id": "p6",
            "properties": {
                "Minutes": {"type": "number", "number": 0},
                "Empty": {"type": "number", "number": None},
                "Genre": {"type": "multi_select", "multi_select": [{"name": "Folk"}]},
                "Date Discovered": {"type": "date", "date": {"start": "2024-05-01", "end": None}},
                "Never": {"type": "date", "date": None},
            },
        }
        self.assertEqual(get_number(page, "Minutes"), 0)
        self.assertIsNone(get_number(page, "Empty"))
        self.assertEqual(get_multi_select(page, "Genre"), ["Folk"])
        self.assertEqual(get_date(page, "Date Discovered"), "2024-05-01")
        self.assertIsNone(get_date(page, "Never"))

    def test_builders_round_out_page(self):
        page = {"id": "p5", "properties": {"T": title("x"), "R": rich_text(""), "U": url("u"), "S": select(None)}}
        self.assertEqual(get_rich_text(page, "R"), "")
        self.assertEqual(get_url(page, "U"), "u")
        self.assertIsNone(get_select(page, "S"))


if __name__ == "__main__":
    unittest.main()
