"""
CHANGE LOG
- 2026-02-11 — Catalog normalization: slugify, price parsing, product defaults, search/sort.
"""

from __future__ import annotations

from django.test import SimpleTestCase

from storefront.catalog import normalize_product, parse_price, search_products, slugify


class SlugifyTests(SimpleTestCase):
    def test_accents_and_punctuation(self):
        self.assertEqual(slugify("Robe d'été"), "robe-d-ete")
        self.assertEqual(slugify("  Sac   Cuir!! "), "sac-cuir")
        self.assertEqual(slugify("Ça coûte 20€"), "ca-coute-20")

    def test_documented_examples(self):
        self.assertEqual(slugify("Pull Premium"), "pull-premium")
        self.assertEqual(slugify("Déjà Vu!!"), "deja-vu")

    def test_idempotent(self):
        for value in ("Pull Premium", "Déjà Vu!!", "  --Robe d'été--  ", "Ça coûte 20€", "already-a-slug"):
            with self.subTest(value=value):
                once = slugify(value)
                self.assertEqual(slugify(once), once)

    def test_empty_and_symbols_only(self):
        self.assertEqual(slugify(""), "")
        self.assertEqual(slugify("***"), "")
        self.assertEqual(slugify(None), "")


class ParsePriceTests(SimpleTestCase):
    def test_european_string(self):
        self.assertEqual(parse_price("49,90 €"), 49.9)

    def test_negative_clamped_to_zero(self):
        self.assertEqual(parse_price("-5"), 0)
        self.assertEqual(parse_price(-12.5), 0)

    def test_numbers_rounded(self):
        self.assertEqual(parse_price(19.999), 20.0)
        self.assertEqual(parse_price(7), 7.0)

    def test_garbage_is_zero(self):
        self.assertEqual(parse_price("free"), 0)
        self.assertEqual(parse_price(None), 0)
        self.assertEqual(parse_price(True), 0)
        self.assertEqual(parse_price(float("nan")), 0)
        self.assertEqual(parse_price({"amount": 3}), 0)


class NormalizeProductTests(SimpleTestCase):
    def test_defaults_for_empty_input(self):
        product = normalize_product({}, 2)
        self.assertEqual(product["title"], "Product 3")
        self.assertEqual(product["id"], "product-3")
        self.assertEqual(product["price"], 0)
        self.assertTrue(product["active"])
        self.assertEqual(product["link"], "product.html?id=product-3")

    def test_id_derived_from_title(self):
        product = normalize_product({"title": "Robe Été", "price": "12.5"}, 0)
        self.assertEqual(product["id"], "robe-ete")
        self.assertEqual(product["price"], 12.5)

    def test_only_explicit_false_deactivates(self):
        self.assertFalse(normalize_product({"title": "A", "active": False}, 0)["active"])
        self.assertTrue(normalize_product({"title": "A", "active": 0}, 0)["active"])
        self.assertTrue(normalize_product({"title": "A", "active": None}, 0)["active"])

    def test_normalization_is_a_fixed_point(self):
        raw = {"id": "Sac Cuir", "title": " Sac Cuir ", "price": "49,90 €", "tag": "new", "active": True}
        once = normalize_product(raw, 0)
        self.assertEqual(normalize_product(once, 0), once)


class SearchProductsTests(SimpleTestCase):
    def setUp(self):
        self.products = [
            normalize_product({"title": "Robe Été", "price": 30, "tag": "summer"}, 0),
            normalize_product({"title": "Bague", "price": 10}, 1),
            normalize_product({"title": "Collier", "price": 20, "active": False}, 2),
        ]

    def test_inactive_products_are_hidden(self):
        ids = [p["id"] for p in search_products(self.products)]
        self.assertEqual(ids, ["robe-ete", "bague"])

    def test_query_ignores_accents_and_case(self):
        ids = [p["id"] for p in search_products(self.products, "ETE")]
        self.assertEqual(ids, ["robe-ete"])
        ids = [p["id"] for p in search_products(self.products, "summer")]
        self.assertEqual(ids, ["robe-ete"])

    def test_sort_orders(self):
        self.assertEqual([p["price"] for p in search_products(self.products, sort="price-asc")], [10, 30])
        self.assertEqual([p["price"] for p in search_products(self.products, sort="price-desc")], [30, 10])
        self.assertEqual([p["title"] for p in search_products(self.products, sort="name-asc")], ["Bague", "Robe Été"])
