from typing import Optional
from fastapi import APIRouter, HTTPException, Path, Query, Request
from starlette import status
from utils.deps import db_dependency
from middleware.csrf import csrf_dependency, csrf_reusable_dependency
from middleware.rate_limiter import limiter, UPLOAD_LIMIT
from models.categories import Category
from models.products import Product
from schemas.product_schemas import ProductRequest, ProductResponse
from services.authorization import admin_dependency
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/products",
    tags=["products"]
)


def _get_product(db, product_id: int) -> Product:
    model = db.get(Product, product_id)
    if not model:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return model


def _require_category(db, category_id: int) -> None:
    if db.get(Category, category_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")


@router.get("/", response_model=list[ProductResponse])
async def get_all_products(db: db_dependency, category_id: Optional[int] = Query(default=None, alias="categoryId")):
    query = db.query(Product)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.created_at.desc(), Product.id.desc()).all()


@router.get("/{id}", response_model=ProductResponse)
async def get_product(db: db_dependency, id: int = Path(gt=0)):
    return _get_product(db, id)


@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(UPLOAD_LIMIT)
async def create_product(request: Request, body: ProductRequest, admin: admin_dependency,
                         _: csrf_reusable_dependency, db: db_dependency):
    """Images are URLs of already stored files (one or two per product)."""
    _require_category(db, body.category_id)

    model = Product(
        name=body.name,
        category_id=body.category_id,
        price=body.price,
        sizes=body.sizes,
        descriptions=body.descriptions,
        images=body.images,
        created_by=admin.id
    )
    db.add(model)
    db.commit()
    db.refresh(model)

    logger.info("Product created", extra={"product_id": model.id, "admin_id": admin.id})
    return model


@router.put("/{id}", response_model=ProductResponse)
@limiter.limit(UPLOAD_LIMIT)
async def update_product(request: Request, body: ProductRequest, admin: admin_dependency,
                         _: csrf_reusable_dependency, db: db_dependency, id: int = Path(gt=0)):
    model = _get_product(db, id)
    _require_category(db, body.category_id)

    model.name = body.name
    model.category_id = body.category_id
    model.price = body.price
    model.sizes = body.sizes
    model.descriptions = body.descriptions
    model.images = body.images
    db.commit()
    db.refresh(model)

    logger.info("Product updated", extra={"product_id": id, "admin_id": admin.id})
    return model


@router.delete("/{id}", status_code=status.HTTP_200_OK)
async def delete_product(admin: admin_dependency, _: csrf_dependency,
                         db: db_dependency, id: int = Path(gt=0)):
    model = _get_product(db, id)
    db.delete(model)
    db.commit()

    logger.info("Product deleted", extra={"product_id": id, "admin_id": admin.id})
    return {"message": "Product deleted successfully"}


@router.delete("/{id}/images/{image_index}", status_code=status.HTTP_200_OK)
async def delete_product_image(admin: admin_dependency, _: csrf_dependency, db: db_dependency,
                               image_index: int, id: int = Path(gt=0)):
    """Drops one image by position; a product always keeps at least one image."""
    model = _get_product(db, id)
    images = list(model.images or [])

    if image_index < 0 or image_index >= len(images):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid image index")
    if len(images) == 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="A product must keep at least one image")

    removed = images.pop(image_index)
    model.images = images
    db.commit()

    logger.info("Product image deleted", extra={"product_id": id, "image": removed, "admin_id": admin.id})
    return {"message": "Image deleted successfully", "images": images}
