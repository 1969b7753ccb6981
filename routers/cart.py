from fastapi import APIRouter, Depends, Path, Response
from starlette import status
from utils.deps import db_dependency, user_dependency
from middleware.csrf import csrf_reusable_dependency
from schemas.cart_schemas import AddToCartRequest, UpdateCartItemRequest, CartItemResponse, CartMutationResponse
from services.authorization import RequireOwnership, ensure_owner
from services.cart_service import CartService
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/cart",
    tags=["cart"]
)


# cart items are owned through their cart
_item_owner = RequireOwnership(CartService.resolve_item_owner, param="id", resource="cart item")
_cart_owner = RequireOwnership(param="user_id", resource="cart")


def _cart_item_view(item) -> dict:
    return CartItemResponse.model_validate(item).model_dump()


@router.post("/add", status_code=status.HTTP_201_CREATED, response_model=CartMutationResponse)
async def add_to_cart(body: AddToCartRequest, response: Response, user: user_dependency,
                      _: csrf_reusable_dependency, db: db_dependency):
    """
    Add a product to a customer's cart. 201 for a new line, 200 when the
    quantity of an existing (product, size) line was increased.
    """
    ensure_owner(user, body.user_id, "cart", body.user_id)

    item, created = CartService.add_to_cart(
        db,
        customer_id=body.user_id,
        product_id=body.product_id,
        quantity=body.quantity,
        size=body.size,
        description=body.description
    )

    if created:
        return {"message": "Item added to cart", "data": _cart_item_view(item)}

    response.status_code = status.HTTP_200_OK
    return {"message": "Cart item quantity updated", "data": _cart_item_view(item)}


@router.get("/{user_id}", dependencies=[Depends(_cart_owner)])
async def get_cart(db: db_dependency, user_id: int = Path(gt=0)):
    return CartService.get_cart(db, user_id)


@router.put("/update/{id}", status_code=status.HTTP_200_OK, response_model=CartMutationResponse,
            dependencies=[Depends(_item_owner)])
async def update_cart_item(body: UpdateCartItemRequest, _: csrf_reusable_dependency,
                           db: db_dependency, id: int = Path(gt=0)):
    item = CartService.update_cart_item(
        db, id,
        quantity=body.quantity,
        size=body.size,
        description=body.description
    )

    return {"message": "Cart item updated", "data": _cart_item_view(item)}


@router.delete("/remove/{id}", status_code=status.HTTP_200_OK, dependencies=[Depends(_item_owner)])
async def remove_cart_item(user: user_dependency, _: csrf_reusable_dependency,
                           db: db_dependency, id: int = Path(gt=0)):
    CartService.remove_cart_item(db, id)

    logger.info("Cart item removed", extra={"cart_item_id": id, "principal_id": user.id})

    return {"message": "Item removed from cart"}


@router.delete("/clear/{user_id}", status_code=status.HTTP_200_OK,
               dependencies=[Depends(_cart_owner)])
async def clear_cart(_: csrf_reusable_dependency, db: db_dependency, user_id: int = Path(gt=0)):
    removed = CartService.clear_cart(db, user_id)

    logger.info("Cart cleared", extra={"customer_id": user_id, "removed_items": removed})

    return {"message": "Cart cleared"}
