import unittest

from services.portfolio_service import (
    build_portfolio_summary,
    group_by_type,
    invested_value,
    net_worth,
    profit_loss,
)


MIXED = [
    {"type": "STOCK", "quantity": 10, "buyPrice": 100, "currentPrice": 200, "currency": "INR"},
    {"type": "STOCK", "quantity": 1, "buyPrice": 10, "currentPrice": 20, "currency": "USD"},
]


class TestPortfolioAggregates(unittest.TestCase):
    def test_net_worth_empty_or_missing(self):
        self.assertEqual(net_worth([]), 0)
        self.assertEqual(net_worth(None), 0)
        self.assertEqual(invested_value(None), 0)
        self.assertEqual(group_by_type(None), {})

    def test_invested_value_ignores_current_price(self):
        assets = [
            {"quantity": 10, "buy_price": 100, "current_price": 200, "currency": "INR"},
            {"quantity": 1, "buy_price": 10, "current_price": 50, "currency": "USD"},
        ]
        self.assertEqual(invested_value(assets), 1835)

    def test_net_worth_prefers_current_price(self):
        self.assertEqual(net_worth(MIXED), 3670)

    def test_net_worth_falls_back_to_buy_price(self):
        assets = [
            {"quantity": 10, "buy_price": 100, "currency": "INR"},
            {"quantity": 1, "buy_price": 10, "current_price": None, "currency": "USD"},
        ]
        self.assertEqual(net_worth(assets), 1835)

    def test_profit_loss(self):
        self.assertEqual(profit_loss(MIXED), 3670 - 1835)

    def test_group_by_type_only_present_keys(self):
        assets = [
            {"type": "STOCK", "quantity": 10, "buy_price": 100, "currency": "INR"},
            {"type": "STOCK", "quantity": 10, "buy_price": 100, "currency": "INR"},
            {"type": "GOLD", "quantity": 5, "buy_price": 1000, "currency": "INR"},
        ]
        grouped = group_by_type(assets)
        self.assertEqual(grouped, {"STOCK": 2000, "GOLD": 5000})
        self.assertNotIn("MF", grouped)
        self.assertNotIn("CASH", grouped)

    def test_group_by_type_uses_current_price(self):
        grouped = group_by_type([
            {"type": "MF", "quantity": 2, "buy_price": 10, "current_price": 15, "currency": "INR"},
        ])
        self.assertEqual(grouped["MF"], 30)

    def test_summary_shape(self):
        summary = build_portfolio_summary(MIXED)
        self.assertEqual(summary["currency"], "INR")
        self.assertEqual(summary["count"], 2)
        self.assertEqual(summary["net_worth"], 3670)
        self.assertEqual(summary["invested_value"], 1835)
        self.assertEqual(summary["profit_loss"], 1835)
        self.assertEqual(summary["profit_loss_pct"], 100.0)
        self.assertEqual(summary["by_type"], {"STOCK": 3670})
        self.assertEqual(summary["allocation"][0]["weight"], 100.0)

    def test_summary_empty(self):
        summary = build_portfolio_summary([])
        self.assertEqual(summary["net_worth"], 0)
        self.assertIsNone(summary["profit_loss_pct"])
        self.assertEqual(summary["allocation"], [])


if __name__ == "__main__":
    unittest.main()
