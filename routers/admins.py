from fastapi import APIRouter, Depends, HTTPException, Path
from starlette import status
from sqlalchemy.exc import IntegrityError
from utils.deps import db_dependency
from middleware.csrf import csrf_dependency, csrf_reusable_dependency
from models.users import User
from core.roles import Role, ADMIN_ROLES
from schemas.auth_schemas import CreateUserRequest
from schemas.user_schemas import AdminResponse, CreateAdminRequest, UpdateAdminRequest
from services.auth_service import AuthService
from services.authorization import ADMIN_ONLY, require_role, admin_dependency, super_admin_dependency
from utils.hashing import get_password_hash
from utils.logger import get_logger

logger = get_logger(__name__)


# every route in here is back-office only
router = APIRouter(
    prefix="/admins",
    tags=["admins"],
    dependencies=[Depends(require_role(*ADMIN_ONLY))]
)


def _get_admin(db, admin_id: int) -> User:
    model = db.query(User).filter(User.id == admin_id, User.role.in_(ADMIN_ROLES)).one_or_none()
    if not model:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Admin not found")
    return model


@router.get("/", response_model=list[AdminResponse])
async def get_all_admins(db: db_dependency):
    return db.query(User).filter(User.role.in_(ADMIN_ROLES)).order_by(User.id).all()


@router.get("/{id}", response_model=AdminResponse)
async def get_admin(db: db_dependency, id: int = Path(gt=0)):
    return _get_admin(db, id)


@router.post("/", response_model=AdminResponse, status_code=status.HTTP_201_CREATED)
async def create_admin(body: CreateAdminRequest, creator: super_admin_dependency,
                       _: csrf_dependency, db: db_dependency):
    model = AuthService.create_user(
        CreateUserRequest(name=body.name, email=body.email, password=body.password),
        db,
        role=body.role
    )

    logger.info("Admin created", extra={"admin_id": model.id, "created_by": creator.id, "role": model.role.value})

    return model


@router.put("/{id}", response_model=AdminResponse)
async def update_admin(body: UpdateAdminRequest, admin: admin_dependency,
                       _: csrf_reusable_dependency, db: db_dependency, id: int = Path(gt=0)):
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    if "role" in changes and admin.role != Role.SUPER_ADMIN:
        logger.warning("Role change denied", extra={"principal_id": admin.id, "target_admin_id": id})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="Forbidden: Only a super admin can change roles")

    model = _get_admin(db, id)

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
    return model


@router.delete("/{id}", status_code=status.HTTP_200_OK)
async def delete_admin(admin: admin_dependency, _: csrf_dependency,
                       db: db_dependency, id: int = Path(gt=0)):
    if id == admin.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="You cannot delete your own account")

    model = _get_admin(db, id)
    db.delete(model)
    db.commit()

    logger.info("Admin deleted", extra={"admin_id": id, "deleted_by": admin.id})

    return {"message": "Admin deleted successfully"}
