"""Merchant onboarding and product listing."""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.access.guard import Operation, Resource, require
from marketplace.catalogue.merchant import Merchant
from marketplace.catalogue.product import Product
from marketplace.domain import marketplace
from marketplace.shared.lookup import load


@marketplace.command(part_of="Merchant")
class RegisterMerchant:
    name: String(required=True, max_length=150)
    description: Text()
    address: String(max_length=255)
    phone: String(max_length=20)
    email: String(max_length=254)
    latitude: Float()
    longitude: Float()
    opening_time: String(max_length=5)
    closing_time: String(max_length=5)


@marketplace.command(part_of="Product")
class ListProduct:
    merchant_id: Identifier(required=True)
    name: String(required=True, max_length=200)
    description: Text()
    price: Float(required=True, min_value=0.0)
    is_alcohol: Boolean(default=False)
    alcohol_content: Float()
    volume_ml: Float()


@marketplace.command(part_of="Product")
class UpdateProduct:
    """Change a product's price and/or availability."""

    product_id: Identifier(required=True)
    price: Float(min_value=0.0)
    available: Boolean()


@marketplace.command_handler(part_of=Merchant)
class MerchantCommandHandler:
    @handle(RegisterMerchant)
    def register_merchant(self, command):
        # Creating a merchant has no owner yet, so only ANY scope (admins) passes
        require(Resource.MERCHANT_CATALOG, Operation.CREATE)

        merchant = Merchant.register(
            name=command.name,
            address=command.address,
            latitude=command.latitude,
            longitude=command.longitude,
            description=command.description,
            phone=command.phone,
            email=command.email,
            opening_time=command.opening_time,
            closing_time=command.closing_time,
        )
        current_domain.repository_for(Merchant).add(merchant)
        return str(merchant.id)


@marketplace.command_handler(part_of=Product)
class ProductCommandHandler:
    @handle(ListProduct)
    def list_product(self, command):
        require(Resource.MERCHANT_CATALOG, Operation.CREATE, command.merchant_id)
        load(Merchant, command.merchant_id)

        product = Product.list_for(
            merchant_id=command.merchant_id,
            name=command.name,
            price=command.price,
            is_alcohol=command.is_alcohol,
            description=command.description,
            alcohol_content=command.alcohol_content,
            volume_ml=command.volume_ml,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        product = load(Product, command.product_id)
        require(Resource.MERCHANT_CATALOG, Operation.UPDATE, product.merchant_id)

        product.update_listing(price=command.price, available=command.available)
        current_domain.repository_for(Product).add(product)
