import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.database import get_db
from storefront.models.user import User
from storefront.schemas.user import (
    CustomerStatusUpdate,
    PendingCustomerUpdate,
    StaffCreate,
    StaffUpdate,
    UserResponse,
    STAFF_ROLES,
    USER_STATUSES,
)
from storefront.core.dependencies import require_role
from storefront.core.errors import bad_request, conflict, not_found, server_error, validation_exception
from storefront.core.security import hash_password
from storefront.utils.pagination import paginate
from storefront.utils.parsing import normalize_text, read_json_body, resolve_record_id
from storefront.utils.responses import serialize, serialize_one

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _customer_page(db: Session, status_value: Optional[str], page, limit):
    query = db.query(User).filter(User.role == "user")
    if status_value in USER_STATUSES:
        query = query.filter(User.status == status_value)
    return paginate(query, [User.created_at.desc(), User.id.desc()], page, limit)


@router.get("/customer-list", status_code=status.HTTP_200_OK, summary="List customers")
async def get_customers(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_value: Optional[str] = Query(None, alias="status", description="block or not_block"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(["admin"])),
):
    try:
        customers, pagination = _customer_page(db, status_value, page, limit)
        return {
            "message": "Customer list fetched successfully",
            "data": serialize(UserResponse, customers),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching customers: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch customer list")


@router.get("/block-user", status_code=status.HTTP_200_OK, summary="List blocked customers")
async def get_blocked_customers(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(["admin"])),
):
    try:
        customers, pagination = _customer_page(db, "block", page, limit)
        return {
            "message": "Blocked customer list fetched successfully",
            "data": serialize(UserResponse, customers),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching blocked customers: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch blocked customer list")


@router.patch("/block-user", status_code=status.HTTP_200_OK, summary="Block or unblock a customer")
async def update_customer_status(
    update: CustomerStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(["admin"])),
):
    try:
        customer = db.query(User).filter(User.id == update.user_id, User.role == "user").first()
        if not customer:
            raise not_found("User not found")

        customer.status = update.status
        db.commit()
        db.refresh(customer)

        logger.info(f"Admin {current_user.email} set customer {customer.id} to {customer.status}")
        return {"message": "Customer status updated successfully", "data": serialize_one(UserResponse, customer)}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating customer status: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update customer")


def _email_taken(db: Session, email: str, user_id: int) -> bool:
    return db.query(User).filter(User.email == email, User.id != user_id).first() is not None


# ---------------------------------------------------------------- staff accounts

@router.get("/user-role", status_code=status.HTTP_200_OK, summary="Get one staff account or list them")
async def get_staff(
    id: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    status_value: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Substring of the email"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(["admin"])),
):
    """
    With ``id`` return that account; otherwise page through every non-customer
    account, optionally narrowed by role, status and email search. Unknown
    role or status values are ignored.
    """
    try:
        if id is not None:
            user_id = resolve_record_id(id)
            user = db.query(User).filter(User.id == user_id).first() if user_id else None
            if not user:
                raise not_found("User not found")
            return {"message": "User fetched successfully", "data": serialize_one(UserResponse, user)}

        query = db.query(User).filter(User.role != "user")
        role_value = normalize_text(role)
        if role_value in STAFF_ROLES:
            query = query.filter(User.role == role_value)
        if normalize_text(status_value) in USER_STATUSES:
            query = query.filter(User.status == normalize_text(status_value))
        if normalize_text(search):
            query = query.filter(User.email.like(f"%{normalize_text(search)}%"))

        users, pagination = paginate(query, [User.created_at.desc(), User.id.desc()], page, limit)
        return {
            "message": "User role list fetched successfully",
            "data": serialize(UserResponse, users),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching staff accounts: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch user role list")


@router.post("/user-role", status_code=status.HTTP_201_CREATED, summary="Create a staff account")
async def create_staff(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(["admin"])),
):
    body = await read_json_body(request)
    try:
        staff_data = StaffCreate.model_validate(body)
    except ValidationError as e:
        raise validation_exception(e)

    try:
        if db.query(User).filter(User.email == staff_data.email).first():
            raise conflict("User already exists with this email", field="email")

        user = User(
            email=staff_data.email,
            hashed_password=hash_password(staff_data.password),
            role=staff_data.role,
            status=staff_data.status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info(f"Admin {current_user.email} created {user.role} account {user.email} (ID: {user.id})")
        return {"message": "User created successfully", "data": serialize_one(UserResponse, user)}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error creating staff account: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to create user")


@router.put("/user-role", status_code=status.HTTP_200_OK, summary="Update a staff account")
@router.patch("/user-role", status_code=status.HTTP_200_OK, summary="Update a staff account")
async def update_staff(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(["admin"])),
):
    body = await read_json_body(request)
    user_id = resolve_record_id(id, body, "id", "userId")
    if user_id is None:
        raise bad_request("Valid user id is required")

    try:
        staff_data = StaffUpdate.model_validate(body)
    except ValidationError as e:
        raise validation_exception(e)

    try:
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise not_found("User not found")

        updates = staff_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        if "email" in updates and _email_taken(db, updates["email"], user.id):
            raise conflict("Email is already in use", field="email")

        password = updates.pop("password", None)
        if password:
            user.hashed_password = hash_password(password)
        for key, value in updates.items():
            setattr(user, key, value)

        db.commit()
        db.refresh(user)

        logger.info(f"Admin {current_user.email} updated account {user.id}")
        return {"message": "User updated successfully", "data": serialize_one(UserResponse, user)}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating staff account: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update user")


@router.delete("/user-role", status_code=status.HTTP_200_OK, summary="Delete a staff account")
async def delete_staff(
    request: Request,
    id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(["admin"])),
):
    try:
        body = await read_json_body(request)
        user_id = resolve_record_id(id, body, "id", "userId")
        if user_id is None:
            raise bad_request("Valid user id is required")

        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise not_found("User not found")

        db.delete(user)
        db.commit()

        logger.info(f"Admin {current_user.email} deleted account {user_id}")
        return {"message": "User deleted successfully", "id": user_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting staff account: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete user")


# ---------------------------------------------------------------- pending customers

def _pending_customers(db: Session):
    return db.query(User).filter(User.role == "user", User.status == "not_block")


@router.get("/pending-customer-list", status_code=status.HTTP_200_OK, summary="List customers not yet blocked")
async def get_pending_customers(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(["admin"])),
):
    try:
        customers, pagination = paginate(
            _pending_customers(db), [User.created_at.desc(), User.id.desc()], page, limit
        )
        return {
            "message": "Pending customer list fetched successfully",
            "data": serialize(UserResponse, customers),
            "pagination": pagination,
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error fetching pending customers: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to fetch pending customer list")


@router.put("/pending-customer-list", status_code=status.HTTP_200_OK, summary="Update a pending customer")
@router.patch("/pending-customer-list", status_code=status.HTTP_200_OK, summary="Update a pending customer")
async def update_pending_customer(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(["admin"])),
):
    """
    Change a pending customer's email or status. Setting ``block`` moves the
    customer off this list and onto /block-user.
    """
    body = await read_json_body(request)
    customer_id = resolve_record_id(user_id, body, "userId", "user_id", "id")
    if customer_id is None:
        raise bad_request("Valid userId is required")

    try:
        customer_data = PendingCustomerUpdate.model_validate(body)
    except ValidationError as e:
        raise validation_exception(e)

    try:
        customer = _pending_customers(db).filter(User.id == customer_id).first()
        if not customer:
            raise not_found("Pending customer not found")

        updates = customer_data.updates()
        if not updates:
            raise bad_request("At least one field is required to update")

        if "email" in updates and _email_taken(db, updates["email"], customer.id):
            raise conflict("Email is already in use", field="email")

        for key, value in updates.items():
            setattr(customer, key, value)

        db.commit()
        db.refresh(customer)

        logger.info(f"Admin {current_user.email} updated pending customer {customer.id}")
        return {"message": "Pending customer updated successfully", "data": serialize_one(UserResponse, customer)}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error updating pending customer: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to update pending customer")


@router.delete("/pending-customer-list", status_code=status.HTTP_200_OK, summary="Delete a pending customer")
async def delete_pending_customer(
    request: Request,
    user_id: Optional[str] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(["admin"])),
):
    try:
        body = await read_json_body(request)
        customer_id = resolve_record_id(user_id, body, "userId", "user_id", "id")
        if customer_id is None:
            raise bad_request("Valid userId is required")

        customer = _pending_customers(db).filter(User.id == customer_id).first()
        if not customer:
            raise not_found("Pending customer not found")

        db.delete(customer)
        db.commit()

        logger.info(f"Admin {current_user.email} deleted pending customer {customer_id}")
        return {"message": "Pending customer deleted successfully", "id": customer_id}

    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.error(f"Unexpected error deleting pending customer: {str(e)}", exc_info=True)
        raise server_error(e, "Failed to delete pending customer")
