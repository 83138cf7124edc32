from . import (  # noqa: F401
    crud_auth,
    crud_category,
    crud_discount,
    crud_product,
    crud_product_discount,
    crud_user,
)
