from storefront.models import Product, Specifications


# Helper to make a product with sensible defaults
def make_product(id="p1", **overrides) -> Product:
    fields = dict(
        id=id,
        name=f"Product {id}",
        slug=f"product-{id}",
        description="",
        long_description="",
        price=100.0,
        category="decor",
        images=[],
        in_stock=False,
        featured=False,
        specifications=Specifications(dimensions="", material="", color=""),
        tags=[],
    )
    fields.update(overrides)
    return Product(**fields)
