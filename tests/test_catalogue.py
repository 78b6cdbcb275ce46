import tempfile
import unittest
from decimal import Decimal
from pathlib import Path

import pandas as pd

from inventory_api.barcode_resolver import resolve
from inventory_api.catalogue import build_catalogue, load_catalogue

CSV = """Item Code,Brand,Description,Price,Sub Dept
0061414100003,Acme,Widget,2.5,Hardware
12345,Foo,Short code,"$1,234.50",Misc
2708805000000,Deli,Smoked ham,9.99,Deli
"""


class BuildCatalogueTests(unittest.TestCase):
    def test_valid_rows(self) -> None:
        df = pd.DataFrame(
            [
                {"Item Code": "0061414100003", "Brand": "Acme", "Description": "Widget", "Price": "2.5"},
                {"Item Code": "12345", "Brand": "Foo", "Description": "Thing", "Price": "$1,234.5"},
            ]
        )
        catalogue = build_catalogue(df)
        self.assertEqual(len(catalogue), 2)
        self.assertEqual(catalogue.get("0061414100003").price, Decimal("2.50"))
        self.assertEqual(catalogue.get("0000000012345").price, Decimal("1234.50"))
        self.assertIn("0000000012345", catalogue)
        self.assertEqual(catalogue.get("0061414100003").subdept, "")

    def test_invalid_rows_are_skipped(self) -> None:
        df = pd.DataFrame(
            [
                {"Item Code": "", "Brand": "A", "Description": "no code", "Price": "1"},
                {"Item Code": "12345678901234", "Brand": "B", "Description": "too long", "Price": "1"},
                {"Item Code": "111", "Brand": "C", "Description": "bad price", "Price": "abc"},
                {"Item Code": "222", "Brand": "D", "Description": "negative", "Price": "-1"},
                {"Item Code": "333", "Brand": "E", "Description": "ok", "Price": ""},
            ]
        )
        with self.assertLogs("inventory-api", level="WARNING") as logs:
            catalogue = build_catalogue(df)
        self.assertEqual(len(catalogue), 1)
        self.assertEqual(catalogue.get("0000000000333").price, Decimal("0.00"))
        self.assertTrue(any("Skipped 4 invalid catalogue rows" in line for line in logs.output))

    def test_duplicate_codes_keep_last(self) -> None:
        df = pd.DataFrame(
            [
                {"Item Code": "555", "Brand": "Old", "Description": "x", "Price": "1"},
                {"Item Code": "0000000000555", "Brand": "New", "Description": "y", "Price": "2"},
            ]
        )
        with self.assertLogs("inventory-api", level="WARNING"):
            catalogue = build_catalogue(df)
        self.assertEqual(catalogue.get("0000000000555").brand, "New")

    def test_codes_keyed_like_scans(self) -> None:
        df = pd.DataFrame(
            [
                {"Item Code": "614141000036", "Brand": "Acme", "Description": "Widget", "Price": "2.50"},
                {"Item Code": "27088050000", "Brand": "Deli", "Description": "Smoked ham", "Price": "9.99"},
            ]
        )
        catalogue = build_catalogue(df)
        self.assertEqual(sorted(e.code for e in catalogue), ["0061414100003", "2708805000000"])

        upc = resolve("614141000036", catalogue.lookup)
        self.assertTrue(upc.found)
        self.assertEqual(upc.code, "0061414100003")

        label = resolve("27088050707", catalogue.lookup)
        self.assertTrue(label.found)
        self.assertEqual(label.entry.description, "Smoked ham")
        self.assertEqual(label.price, Decimal("7.07"))

    def test_missing_code_column(self) -> None:
        with self.assertRaises(ValueError):
            build_catalogue(pd.DataFrame([{"Code": "1"}]))

    def test_as_dict_and_iteration(self) -> None:
        df = pd.DataFrame([{"Item Code": "1", "Brand": "A", "Description": "B", "Price": "3"}])
        catalogue = build_catalogue(df)
        data = catalogue.as_dict()
        self.assertEqual(data["0000000000001"]["brand"], "A")
        self.assertEqual([e.code for e in catalogue], ["0000000000001"])
        self.assertIsNone(catalogue.lookup("9999999999999"))


class LoadCatalogueTests(unittest.TestCase):
    def test_missing_file_gives_empty_catalogue(self) -> None:
        with self.assertLogs("inventory-api", level="ERROR"):
            catalogue = load_catalogue("/nonexistent/item_list.csv")
        self.assertEqual(len(catalogue), 0)

    def test_load_from_csv(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "item_list.csv"
            path.write_text(CSV, encoding="utf-8")
            catalogue = load_catalogue(path)
        self.assertEqual(len(catalogue), 3)
        self.assertEqual(catalogue.get("0061414100003").subdept, "Hardware")
        self.assertEqual(catalogue.get("0000000012345").price, Decimal("1234.50"))
        self.assertEqual(catalogue.get("2708805000000").description, "Smoked ham")


if __name__ == "__main__":
    unittest.main()
