"""Product aggregate: a merchant's listing that orders snapshot at purchase time."""

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from marketplace.catalogue.events import ProductListed, ProductUpdated
from marketplace.domain import marketplace
from marketplace.shared.clock import now


@marketplace.aggregate
class Product:
    merchant_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    description = Text()
    price = Float(required=True, min_value=0.0)
    is_alcohol = Boolean(default=False)
    alcohol_content = Float(min_value=0.0, max_value=100.0)
    volume_ml = Float(min_value=0.0)
    available = Boolean(default=True)
    listed_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def list_for(cls, merchant_id, name, price, is_alcohol=False, **details):
        listed_at = now()
        product = cls(
            merchant_id=merchant_id,
            name=name,
            price=round(price, 2),
            is_alcohol=is_alcohol,
            listed_at=listed_at,
            updated_at=listed_at,
            **details,
        )
        product.raise_(
            ProductListed(
                product_id=str(product.id),
                merchant_id=str(merchant_id),
                name=name,
                price=product.price,
                is_alcohol=is_alcohol,
                listed_at=listed_at,
            )
        )
        return product

    def update_listing(self, price=None, available=None) -> None:
        if price is None and available is None:
            raise ValidationError({"product": ["Nothing to update"]})
        if price is not None:
            self.price = round(price, 2)
        if available is not None:
            self.available = available
        self.updated_at = now()
        self.raise_(
            ProductUpdated(
                product_id=str(self.id),
                merchant_id=str(self.merchant_id),
                price=self.price,
                available=self.available,
                updated_at=self.updated_at,
            )
        )
