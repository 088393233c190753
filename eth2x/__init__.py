"""2x leveraged ETH vault — position accounting and rebalancing engine."""

__version__ = "0.1.0"
