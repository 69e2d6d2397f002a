"""Repositories for the catalogue aggregates."""

from marketplace.catalogue.merchant import Merchant
from marketplace.catalogue.product import Product
from marketplace.domain import marketplace


@marketplace.repository(part_of=Merchant)
class MerchantRepository:
    def find_active(self) -> list[Merchant]:
        return self._dao.query.filter(active=True).limit(None).all().items


@marketplace.repository(part_of=Product)
class ProductRepository:
    def find_by_merchant(self, merchant_id) -> list[Product]:
        return self._dao.query.filter(merchant_id=str(merchant_id)).limit(None).all().items
