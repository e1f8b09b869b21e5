# apps/catalog/services.py
from .models import Product


def get_products_by_ids(ids):
    """
    Read-only catalog lookup used at checkout.

    Returns one dict per product that exists; ids that do not resolve are
    simply absent from the result.
    """
    products = Product.objects.filter(id__in=list(ids))
    return [
        {
            "id": str(p.id),
            "name": p.name,
            "image": p.image_url,
            "price": p.price,
            "external_code": p.external_code,
        }
        for p in products
    ]
