"""Order and order-item coupons for the shop backend."""

__version__ = "1.0.0"
