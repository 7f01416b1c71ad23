"""Shop, service and schedule management."""

from barberbook.shops.manager import ShopManager, ensure_owner

__all__ = ["ShopManager", "ensure_owner"]
