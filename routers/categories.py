from fastapi import APIRouter, HTTPException, Path
from starlette import status
from sqlalchemy.exc import IntegrityError
from utils.deps import db_dependency
from middleware.csrf import csrf_dependency, csrf_reusable_dependency
from models.categories import Category
from models.products import Product
from schemas.product_schemas import CategoryCreate, CategoryResponse
from services.authorization import admin_dependency
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/categories",
    tags=["categories"]
)


def _get_category(db, category_id: int) -> Category:
    model = db.get(Category, category_id)
    if not model:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return model


@router.get("/", response_model=list[CategoryResponse])
async def get_all_categories(db: db_dependency):
    return db.query(Category).order_by(Category.name).all()


@router.get("/{id}", response_model=CategoryResponse)
async def get_category(db: db_dependency, id: int = Path(gt=0)):
    return _get_category(db, id)


@router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryCreate, admin: admin_dependency,
                          _: csrf_reusable_dependency, db: db_dependency):
    """Pictures are URLs of already stored files."""
    model = Category(
        name=body.name.strip(),
        description=body.description,
        pics=body.pics,
        special_category=body.special_category
    )
    db.add(model)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category already exists")

    db.refresh(model)
    logger.info("Category created", extra={"category_id": model.id, "admin_id": admin.id})
    return model


@router.put("/{id}", response_model=CategoryResponse)
async def update_category(body: CategoryCreate, admin: admin_dependency,
                          _: csrf_reusable_dependency, db: db_dependency, id: int = Path(gt=0)):
    """Replaces name, description, pictures and the featured flag."""
    model = _get_category(db, id)

    model.name = body.name.strip()
    model.description = body.description
    model.pics = body.pics
    model.special_category = body.special_category
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category already exists")

    db.refresh(model)
    logger.info("Category updated", extra={"category_id": id, "admin_id": admin.id})
    return model


@router.delete("/{id}", status_code=status.HTTP_200_OK)
async def delete_category(admin: admin_dependency, _: csrf_dependency,
                          db: db_dependency, id: int = Path(gt=0)):
    model = _get_category(db, id)

    if db.query(Product.id).filter(Product.category_id == id).first() is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category still has products")

    db.delete(model)
    db.commit()

    logger.info("Category deleted", extra={"category_id": id, "admin_id": admin.id})
    return {"message": "Category deleted successfully"}
