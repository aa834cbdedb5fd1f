"""Repository for the Order aggregate: the single source of truth for order state.

The base repository provides ``add`` and ``get``. The finders below cover the
read paths of the storefront: admin listing, guest lookup by mobile number and
the signed-in customer's order history.
"""

from ordering.domain import ordering
from ordering.order.order import Order


@ordering.repository(part_of=Order)
class OrderRepository:
    def list_recent(self, limit: int = 100) -> list[Order]:
        """All orders, newest first."""
        return self._dao.query.order_by("-created_at").limit(limit).all().items

    def find_by_mobile(self, mobile: str) -> list[Order]:
        """Orders placed with a given mobile number, newest first."""
        return self._dao.query.filter(customer_mobile=mobile.strip()).order_by("-created_at").all().items

    def find_for_customer(self, user_id: str, email: str | None = None) -> list[Order]:
        """Orders linked to a signed-in user, plus guest orders placed with their email."""
        orders = {str(o.id): o for o in self._dao.query.filter(user_id=user_id).all().items}
        if email:
            for order in self._dao.query.filter(customer_email=email).all().items:
                orders.setdefault(str(order.id), order)
        return sorted(orders.values(), key=lambda o: o.created_at, reverse=True)
