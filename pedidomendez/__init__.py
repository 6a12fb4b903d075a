"""Order, catalogue and user services with an in-memory notification hub."""

__version__ = "1.0.0"

__all__ = ["catalog", "hub", "message", "notifications", "orders", "users"]