from fastapi import APIRouter, Depends, HTTPException, Path
from starlette import status
from sqlalchemy.exc import IntegrityError
from utils.deps import db_dependency
from middleware.csrf import csrf_dependency, csrf_reusable_dependency
from models.users import User
from core.roles import Role
from schemas.user_schemas import CustomerResponse, UpdateCustomerRequest
from services.authorization import RequireOwnership, admin_dependency
from utils.hashing import get_password_hash
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/customers",
    tags=["customers"]
)

_customer_owner = RequireOwnership(param="id", resource="customer")


def _get_customer(db, customer_id: int) -> User:
    model = db.query(User).filter(User.id == customer_id, User.role == Role.CUSTOMER).one_or_none()
    if not model:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return model


@router.get("/", response_model=list[CustomerResponse])
async def get_all_customers(admin: admin_dependency, db: db_dependency):
    return db.query(User).filter(User.role == Role.CUSTOMER).order_by(User.id).all()


@router.get("/{id}", response_model=CustomerResponse, dependencies=[Depends(_customer_owner)])
async def get_customer(db: db_dependency, id: int = Path(gt=0)):
    return _get_customer(db, id)


@router.put("/{id}", response_model=CustomerResponse, dependencies=[Depends(_customer_owner)])
async def update_customer(body: UpdateCustomerRequest, _: csrf_reusable_dependency,
                          db: db_dependency, id: int = Path(gt=0)):
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    model = _get_customer(db, id)

    if "password" in changes:
        model.hashed_password = get_password_hash(changes.pop("password"))
    if "email" in changes:
        changes["email"] = changes["email"].lower().strip()
    for field, value in changes.items():
        setattr(model, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already in use")

    db.refresh(model)
    logger.info("Customer updated", extra={"customer_id": id, "fields": sorted(body.model_dump(exclude_none=True))})
    return model


@router.delete("/{id}", status_code=status.HTTP_200_OK)
async def delete_customer(admin: admin_dependency, _: csrf_dependency,
                          db: db_dependency, id: int = Path(gt=0)):
    model = _get_customer(db, id)

    db.delete(model)
    db.commit()

    logger.info("Customer deleted", extra={"customer_id": id, "admin_id": admin.id})

    return {"message": "Customer deleted successfully"}
