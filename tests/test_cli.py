import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from inventory_api import cli

CSV = """Item Code,Brand,Description,Price
0061414100003,Acme,Widget,2.50
2708805000000,Deli,Smoked ham,9.99
"""


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.catalogue = Path(self._tmp.name) / "item_list.csv"
        self.catalogue.write_text(CSV, encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_cli(self, *argv: str) -> tuple[int, str]:
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main(["--catalogue", str(self.catalogue), *argv])
        return code, out.getvalue()

    def test_resolve_text(self) -> None:
        code, out = self.run_cli("resolve", "614141000036", "27088050707")
        self.assertEqual(code, 0)
        self.assertIn("0061414100003  found", out)
        self.assertIn("Acme Widget", out)
        self.assertIn("2708805000000  scale", out)
        self.assertIn("7.07", out)

    def test_resolve_json(self) -> None:
        code, out = self.run_cli("resolve", "--json", "4006381333931", "abc")
        self.assertEqual(code, 1)
        rows = json.loads(out)
        self.assertEqual(rows[0]["code"], "4006381333931")
        self.assertFalse(rows[0]["found"])
        self.assertIsNone(rows[0]["price"])
        self.assertIn("error", rows[1])

    def test_check_catalogue(self) -> None:
        code, out = self.run_cli("check-catalogue")
        self.assertEqual(code, 0)
        self.assertIn("items=2", out)

    def test_catalogue_after_subcommand(self) -> None:
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main(["resolve", "614141000036", "--catalogue", str(self.catalogue)])
        self.assertEqual(code, 0)
        self.assertIn("0061414100003  found", out.getvalue())

        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main(["check-catalogue", "--catalogue", str(self.catalogue)])
        self.assertEqual(code, 0)
        self.assertIn("items=2", out.getvalue())

    def test_check_missing_catalogue(self) -> None:
        self.catalogue.unlink()
        code, _ = self.run_cli("check-catalogue")
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
