"""Domain events for the Merchant and Product aggregates."""

from protean.fields import Boolean, DateTime, Float, Identifier, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Merchant")
class MerchantRegistered:
    """A merchant was onboarded and can start listing products."""

    __version__ = 1

    merchant_id: Identifier(required=True)
    name: String(required=True)
    address: String()
    latitude: Float()
    longitude: Float()
    registered_at: DateTime(required=True)


@marketplace.event(part_of="Product")
class ProductListed:
    __version__ = 1

    product_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    name: String(required=True)
    price: Float(required=True)
    is_alcohol: Boolean(required=True)
    listed_at: DateTime(required=True)


@marketplace.event(part_of="Product")
class ProductUpdated:
    """Price or availability of a listed product changed."""

    __version__ = 1

    product_id: Identifier(required=True)
    merchant_id: Identifier(required=True)
    price: Float(required=True)
    available: Boolean(required=True)
    updated_at: DateTime(required=True)
