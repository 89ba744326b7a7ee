"""ProfitGuard: return profit/loss estimates for Shopify merchants."""

__version__ = "1.0.0"
