import hashlib
import logging
import math
import os
import re
import secrets
from typing import Optional
from datetime import datetime, timedelta, timezone
from fastapi import FastAPI, HTTPException, Depends, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, EmailStr
from pymongo import ReturnDocument
from bson import ObjectId

from database import db, create_document, get_documents, doc_to_json, to_object_id
from errors import ApiError, ConflictError, InternalError, NotFoundError, ValidationError
from schemas import (
    User as UserSchema, UserCreate, UserUpdate, PasswordChange, PasswordResetRequest, PasswordReset,
    RoleUpdate, BulkUserAction,
    Category as CategorySchema, CategoryCreate, CategoryUpdate, CategoryBulkUpdate,
    Product as ProductSchema, ProductCreate, ProductUpdate, ReviewCreate,
    Order as OrderSchema, OrderCreate, OrderStatusUpdate,
)
import api_features
import orders as order_service
import reviews as review_service
import sales

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SECRET_KEY = os.getenv("SECRET_KEY", "supersecretkey")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))
RESET_TOKEN_EXPIRE_MINUTES = 15
PRODUCTS_PER_PAGE = int(os.getenv("PRODUCTS_PER_PAGE", api_features.DEFAULT_PAGE_SIZE))
SALES_MONTHS_CHRONOLOGICAL = os.getenv("SALES_MONTHS_CHRONOLOGICAL", "false").lower() in ("1", "true", "yes")

# Called with the updated order after a status change (receipt email, PDF...).
ORDER_NOTIFIER = None

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login")

app = FastAPI(title="SneakPeak Store API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Helpers
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserOut(BaseModel):
    id: str
    name: str
    email: EmailStr
    avatar_url: Optional[str] = None
    role: str = "user"


def collection(name: str):
    if db is None:
        raise InternalError("Database not configured")
    return db[name]


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def user_out(user: dict) -> UserOut:
    return UserOut(
        id=str(user["_id"]),
        name=user.get("name"),
        email=user.get("email"),
        avatar_url=user.get("avatar_url"),
        role=user.get("role", "user"),
    )


def public_user(user: dict) -> dict:
    hidden = ("password_hash", "reset_token_hash", "reset_token_expires")
    return doc_to_json({k: v for k, v in user.items() if k not in hidden})


def get_current_user(token: str = Depends(oauth2_scheme)) -> UserOut:
    credentials_exception = HTTPException(status_code=401, detail="Could not validate credentials")
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None or not ObjectId.is_valid(user_id):
            raise credentials_exception
    except JWTError:
        raise credentials_exception
    user = collection("user").find_one({"_id": ObjectId(user_id)})
    if not user:
        raise credentials_exception
    if not user.get("is_active", True):
        raise HTTPException(status_code=401, detail="Account is deactivated")
    return user_out(user)


def require_admin(current: UserOut = Depends(get_current_user)) -> UserOut:
    if current.role != "admin":
        raise HTTPException(status_code=403, detail=f"Role ({current.role}) is not allowed to access this resource")
    return current


def name_pattern(name: str) -> dict:
    return {"$regex": f"^{re.escape(name)}$", "$options": "i"}


def pagination(page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit)
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total": total,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
        "limit": limit,
    }


@app.get("/")
def read_root():
    return {"message": "SneakPeak store backend is running"}


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }
    try:
        if db is not None:
            response["database"] = "✅ Available"
            response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
            response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"
            response["connection_status"] = "Connected"
            try:
                collections = db.list_collection_names()
                response["collections"] = collections[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                response["database"] = f"⚠️ Connected but Error: {str(e)[:50]}"
    except Exception as e:
        response["database"] = f"❌ Error: {str(e)[:50]}"
    return response


# Auth
@app.post("/api/register", response_model=UserOut, status_code=201)
def register(payload: UserCreate):
    users = collection("user")
    if users.find_one({"email": payload.email}):
        raise ConflictError("Email already registered")
    user = UserSchema(
        name=payload.name,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
        avatar_url=payload.avatar_url,
    )
    user_id = create_document("user", user)
    logger.info("User registered: %s", user_id)
    return user_out(users.find_one({"_id": ObjectId(user_id)}))


@app.post("/api/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends()):
    user = collection("user").find_one({"email": form_data.username})
    if not user or not verify_password(form_data.password, user.get("password_hash", "")):
        raise HTTPException(400, "Incorrect email or password")
    if not user.get("is_active", True):
        raise HTTPException(401, "Account is deactivated")
    access_token = create_access_token({"sub": str(user["_id"])})
    return Token(access_token=access_token)


@app.get("/api/me", response_model=UserOut)
def me(current: UserOut = Depends(get_current_user)):
    return current


@app.put("/api/me", response_model=UserOut)
def update_me(payload: UserUpdate, current: UserOut = Depends(get_current_user)):
    return _update_user(current.id, payload)


@app.put("/api/me/password", response_model=Token)
def change_password(payload: PasswordChange, current: UserOut = Depends(get_current_user)):
    users = collection("user")
    user = users.find_one({"_id": ObjectId(current.id)})
    if not user:
        raise NotFoundError("User not found")
    if not verify_password(payload.old_password, user.get("password_hash", "")):
        raise ValidationError("Old password is incorrect")
    users.update_one(
        {"_id": user["_id"]},
        {"$set": {"password_hash": get_password_hash(payload.new_password), "updated_at": datetime.now(timezone.utc)}},
    )
    return Token(access_token=create_access_token({"sub": current.id}))


@app.post("/api/password/reset")
def request_password_reset(payload: PasswordResetRequest):
    users = collection("user")
    user = users.find_one({"email": payload.email})
    if not user:
        raise NotFoundError("User not found")
    reset_token = secrets.token_urlsafe(32)
    users.update_one({"_id": user["_id"]}, {"$set": {
        "reset_token_hash": hashlib.sha256(reset_token.encode()).hexdigest(),
        "reset_token_expires": datetime.now(timezone.utc) + timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES),
    }})
    return {"message": "Password reset token generated", "reset_token": reset_token}


@app.post("/api/password/reset/{token}")
def reset_password(token: str, payload: PasswordReset):
    users = collection("user")
    user = users.find_one({
        "reset_token_hash": hashlib.sha256(token.encode()).hexdigest(),
        "reset_token_expires": {"$gt": datetime.now(timezone.utc)},
    })
    if not user:
        raise ValidationError("Invalid or expired token")
    users.update_one(
        {"_id": user["_id"]},
        {
            "$set": {"password_hash": get_password_hash(payload.password), "updated_at": datetime.now(timezone.utc)},
            "$unset": {"reset_token_hash": "", "reset_token_expires": ""},
        },
    )
    return {"message": "Password has been reset"}


# Users (admin)
def _update_user(user_id: str, payload: UserUpdate) -> UserOut:
    users = collection("user")
    oid = to_object_id(user_id)
    update = {k: v for k, v in payload.model_dump().items() if v is not None}
    if "email" in update and users.find_one({"email": update["email"], "_id": {"$ne": oid}}):
        raise ConflictError("Email already in use")
    update["updated_at"] = datetime.now(timezone.utc)
    user = users.find_one_and_update({"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER)
    if not user:
        raise NotFoundError("User not found")
    return user_out(user)


@app.get("/api/admin/users")
def list_users(admin: UserOut = Depends(require_admin)):
    users = [public_user(u) for u in collection("user").find({})]
    return {"count": len(users), "users": users}


@app.get("/api/admin/users/stats")
def user_stats(admin: UserOut = Depends(require_admin)):
    users = collection("user")
    total = users.count_documents({})
    active = users.count_documents({"is_active": True})
    by_role = {}
    for u in users.find({}, {"role": 1}):
        role = u.get("role", "user")
        by_role[role] = by_role.get(role, 0) + 1
    recent = users.count_documents({"created_at": {"$gte": datetime.now(timezone.utc) - timedelta(days=30)}})
    return {
        "total_users": total,
        "active_users": active,
        "inactive_users": total - active,
        "admin_users": by_role.get("admin", 0),
        "recent_users": recent,
        "users_by_role": [
            {"role": role, "count": count, "percentage": round(count / total * 100) if total else 0}
            for role, count in sorted(by_role.items())
        ],
        "last_updated": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/api/admin/users/bulk")
def bulk_users(payload: BulkUserAction, admin: UserOut = Depends(require_admin)):
    if not payload.user_ids:
        raise ValidationError("user_ids must be a non-empty list")
    ids = [to_object_id(i) for i in payload.user_ids]
    users = collection("user")
    if payload.action == "delete":
        affected = users.delete_many({"_id": {"$in": ids}}).deleted_count
    else:
        result = users.update_many({"_id": {"$in": ids}}, {"$set": {"is_active": payload.action == "activate"}})
        affected = result.modified_count
    logger.info("Bulk %s on %s users by %s", payload.action, affected, admin.id)
    return {"action": payload.action, "affected_count": affected, "processed_ids": payload.user_ids}


@app.get("/api/users/{user_id}")
def get_user(user_id: str, current: UserOut = Depends(get_current_user)):
    user = collection("user").find_one({"_id": to_object_id(user_id)})
    if not user:
        raise NotFoundError("User not found")
    return public_user(user)


@app.put("/api/admin/users/{user_id}", response_model=UserOut)
def update_user(user_id: str, payload: UserUpdate, admin: UserOut = Depends(require_admin)):
    return _update_user(user_id, payload)


@app.delete("/api/admin/users/{user_id}")
def delete_user(user_id: str, admin: UserOut = Depends(require_admin)):
    res = collection("user").delete_one({"_id": to_object_id(user_id)})
    if res.deleted_count == 0:
        raise NotFoundError("User not found")
    return {"status": "deleted"}


@app.patch("/api/admin/users/{user_id}/role", response_model=UserOut)
def change_user_role(user_id: str, payload: RoleUpdate, admin: UserOut = Depends(require_admin)):
    user = collection("user").find_one_and_update(
        {"_id": to_object_id(user_id)},
        {"$set": {"role": payload.role, "updated_at": datetime.now(timezone.utc)}},
        return_document=ReturnDocument.AFTER,
    )
    if not user:
        raise NotFoundError("User not found")
    return user_out(user)


@app.patch("/api/admin/users/{user_id}/status")
def toggle_user_status(user_id: str, admin: UserOut = Depends(require_admin)):
    users = collection("user")
    user = users.find_one({"_id": to_object_id(user_id)})
    if not user:
        raise NotFoundError("User not found")
    is_active = not user.get("is_active", True)
    users.update_one({"_id": user["_id"]}, {"$set": {"is_active": is_active}})
    return {"id": user_id, "is_active": is_active}


# Categories
def product_count(category_id) -> int:
    return collection("product").count_documents({"category": str(category_id)})


@app.get("/api/categories")
def list_categories(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    search: Optional[str] = None,
    active_only: bool = True,
):
    categories = collection("category")
    filter_q = {"is_active": True} if active_only else {}
    search = (search or "").strip()
    if search:
        filter_q["name"] = {"$regex": re.escape(search), "$options": "i"}

    total = categories.count_documents(filter_q)
    meta = pagination(page, limit, total)
    if page > meta["total_pages"] > 0:
        raise ValidationError(f"Page {page} does not exist. Only {meta['total_pages']} pages available")

    cursor = categories.find(filter_q).sort("name", 1).skip((page - 1) * limit).limit(limit)
    items = []
    for doc in cursor:
        doc.pop("created_by", None)
        doc.pop("updated_by", None)
        doc["product_count"] = product_count(doc["_id"])
        items.append(doc_to_json(doc))
    return {"categories": items, "pagination": meta, "filters": {"search": search, "active_only": active_only}}


@app.get("/api/categories/{category_id}")
def get_category(category_id: str):
    category = collection("category").find_one({"_id": to_object_id(category_id)})
    if not category:
        raise NotFoundError("Category not found")
    if not category.get("is_active", True):
        raise NotFoundError("Category is no longer available")
    category["product_count"] = product_count(category["_id"])
    return doc_to_json(category)


@app.get("/api/admin/categories")
def admin_list_categories(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    include_inactive: bool = False,
    admin: UserOut = Depends(require_admin),
):
    categories = collection("category")
    filter_q = {} if include_inactive else {"is_active": True}
    search = (search or "").strip()
    if search:
        filter_q["$or"] = [
            {"name": {"$regex": re.escape(search), "$options": "i"}},
            {"description": {"$regex": re.escape(search), "$options": "i"}},
        ]
    total = categories.count_documents(filter_q)
    cursor = categories.find(filter_q).sort("updated_at", -1).skip((page - 1) * limit).limit(limit)
    return {"categories": [doc_to_json(c) for c in cursor], "pagination": pagination(page, limit, total)}


@app.post("/api/admin/categories", status_code=201)
def create_category(payload: CategoryCreate, admin: UserOut = Depends(require_admin)):
    name = payload.name.strip()
    if len(name) < 2:
        raise ValidationError("Category name is required and must be at least 2 characters")
    categories = collection("category")
    if categories.find_one({"name": name_pattern(name)}):
        raise ConflictError("Category with this name already exists")
    category = CategorySchema(
        name=name,
        description=payload.description.strip() if payload.description else None,
        image=payload.image,
        is_active=payload.is_active,
        created_by=admin.id,
    )
    category_id = create_document("category", category)
    logger.info("Category created: %s by user %s", name, admin.id)
    return doc_to_json(categories.find_one({"_id": ObjectId(category_id)}))


@app.put("/api/admin/categories/{category_id}")
def update_category(category_id: str, payload: CategoryUpdate, admin: UserOut = Depends(require_admin)):
    categories = collection("category")
    oid = to_object_id(category_id)
    category = categories.find_one({"_id": oid})
    if not category:
        raise NotFoundError("Category not found")

    update = {k: v for k, v in payload.model_dump().items() if v is not None}
    if "name" in update:
        update["name"] = update["name"].strip()
        if len(update["name"]) < 2:
            raise ValidationError("Category name must be at least 2 characters")
        if categories.find_one({"name": name_pattern(update["name"]), "_id": {"$ne": oid}}):
            raise ConflictError("Category with this name already exists")
    if "description" in update:
        update["description"] = update["description"].strip()
    update["updated_by"] = admin.id
    update["updated_at"] = datetime.now(timezone.utc)

    category = categories.find_one_and_update({"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER)
    logger.info("Category updated: %s by user %s", category["name"], admin.id)
    return doc_to_json(category)


@app.delete("/api/admin/categories/{category_id}")
def delete_category(category_id: str, admin: UserOut = Depends(require_admin)):
    categories = collection("category")
    category = categories.find_one({"_id": to_object_id(category_id)})
    if not category:
        raise NotFoundError("Category not found")
    count = product_count(category["_id"])
    if count > 0:
        raise ConflictError(
            f'Cannot delete category "{category["name"]}". It has {count} products. Please reassign products first.'
        )
    now = datetime.now(timezone.utc)
    categories.update_one(
        {"_id": category["_id"]},
        {"$set": {"is_active": False, "deleted_at": now, "updated_by": admin.id, "updated_at": now}},
    )
    logger.warning("Category soft-deleted: %s by user %s", category["name"], admin.id)
    return {"message": f'Category "{category["name"]}" has been deactivated'}


@app.patch("/api/admin/categories/{category_id}/restore")
def restore_category(category_id: str, admin: UserOut = Depends(require_admin)):
    categories = collection("category")
    category = categories.find_one({"_id": to_object_id(category_id)})
    if not category:
        raise NotFoundError("Category not found")
    if category.get("is_active", True):
        raise ValidationError("Category is already active")
    category = categories.find_one_and_update(
        {"_id": category["_id"]},
        {"$set": {"is_active": True, "deleted_at": None, "updated_by": admin.id, "updated_at": datetime.now(timezone.utc)}},
        return_document=ReturnDocument.AFTER,
    )
    logger.info("Category restored: %s by user %s", category["name"], admin.id)
    return doc_to_json(category)


@app.post("/api/admin/categories/bulk-update")
def bulk_update_categories(payload: CategoryBulkUpdate, admin: UserOut = Depends(require_admin)):
    if not payload.category_ids:
        raise ValidationError("category_ids must be a non-empty list")
    ids = [to_object_id(i) for i in payload.category_ids]
    updates = {k: v for k, v in payload.updates.model_dump().items() if v is not None}
    if not updates:
        raise ValidationError("Updates object is required")
    if "name" in updates:
        raise ValidationError("Category names cannot be bulk updated")
    updates["updated_by"] = admin.id
    updates["updated_at"] = datetime.now(timezone.utc)
    result = collection("category").update_many({"_id": {"$in": ids}}, {"$set": updates})
    logger.info("Bulk updated %s categories by user %s", result.modified_count, admin.id)
    return {"matched_count": result.matched_count, "modified_count": result.modified_count}


# Products
def _check_category(category_id: Optional[str]):
    if category_id is None:
        return
    if not collection("category").find_one({"_id": to_object_id(category_id), "is_active": True}):
        raise NotFoundError("Category not found")


@app.get("/api/products")
def list_products(request: Request):
    result = api_features.list_products(collection("product"), dict(request.query_params), PRODUCTS_PER_PAGE)
    return {
        "products": doc_to_json(result.items),
        "page": result.page,
        "res_per_page": result.page_size,
        "filtered_products_count": result.filtered_count,
        "products_count": result.total_count,
    }


@app.get("/api/products/{product_id}")
def get_product(product_id: str):
    product = collection("product").find_one({"_id": to_object_id(product_id)})
    if not product:
        raise NotFoundError("Product not found")
    return doc_to_json(product)


@app.get("/api/admin/products")
def admin_list_products(admin: UserOut = Depends(require_admin)):
    return {"products": doc_to_json(get_documents("product"))}


@app.post("/api/admin/products", status_code=201)
def create_product(payload: ProductCreate, admin: UserOut = Depends(require_admin)):
    if not payload.images:
        raise ValidationError("Please upload at least one product image")
    _check_category(payload.category)
    product_id = create_document("product", ProductSchema(**payload.model_dump()))
    logger.info("Product created: %s by user %s", product_id, admin.id)
    return doc_to_json(collection("product").find_one({"_id": ObjectId(product_id)}))


@app.put("/api/admin/products/{product_id}")
def update_product(product_id: str, payload: ProductUpdate, admin: UserOut = Depends(require_admin)):
    update = {k: v for k, v in payload.model_dump().items() if v is not None}
    if "images" in update and not update["images"]:
        raise ValidationError("Please upload at least one product image")
    _check_category(update.get("category"))
    update["updated_at"] = datetime.now(timezone.utc)
    product = collection("product").find_one_and_update(
        {"_id": to_object_id(product_id)},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )
    if not product:
        raise NotFoundError("Product not found")
    return doc_to_json(product)


@app.delete("/api/admin/products/{product_id}")
def delete_product(product_id: str, admin: UserOut = Depends(require_admin)):
    res = collection("product").delete_one({"_id": to_object_id(product_id)})
    if res.deleted_count == 0:
        raise NotFoundError("Product not found")
    return {"status": "deleted"}


@app.get("/api/admin/products/sales")
def product_sales(admin: UserOut = Depends(require_admin)):
    return sales.product_sales(collection("order"))


# Reviews
def _review_summary(product: dict) -> dict:
    return {
        "product_id": str(product["_id"]),
        "ratings": product.get("ratings", 0),
        "num_of_reviews": product.get("num_of_reviews", 0),
    }


@app.get("/api/products/{product_id}/reviews")
def get_reviews(product_id: str):
    return {"reviews": doc_to_json(review_service.get_reviews(collection("product"), product_id))}


@app.post("/api/products/{product_id}/reviews")
def add_review(product_id: str, payload: ReviewCreate, current: UserOut = Depends(get_current_user)):
    product = review_service.add_or_update_review(
        collection("product"),
        product_id,
        {"id": current.id, "name": current.name},
        payload.rating,
        payload.comment,
    )
    return _review_summary(product)


@app.delete("/api/products/{product_id}/reviews/{review_id}")
def delete_review(product_id: str, review_id: str, current: UserOut = Depends(get_current_user)):
    products = collection("product")
    product = products.find_one({"_id": to_object_id(product_id)})
    if not product:
        raise NotFoundError("Product not found")
    review = review_service.find_review(product, review_id)
    if review is None:
        raise NotFoundError("Review not found")
    if review.get("user_id") != current.id and current.role != "admin":
        raise HTTPException(status_code=403, detail="You can only delete your own reviews")
    return _review_summary(review_service.delete_review(products, product_id, review_id))


# Orders
@app.post("/api/orders", status_code=201)
def create_order(payload: OrderCreate, current: UserOut = Depends(get_current_user)):
    order = OrderSchema(**payload.model_dump(), user_id=current.id, paid_at=datetime.now(timezone.utc))
    order_id = create_document("order", order)
    logger.info("Order %s placed by user %s", order_id, current.id)
    return doc_to_json(collection("order").find_one({"_id": ObjectId(order_id)}))


@app.get("/api/orders/me")
def my_orders(current: UserOut = Depends(get_current_user)):
    orders = collection("order").find({"user_id": current.id}).sort("created_at", -1)
    return {"orders": doc_to_json(list(orders))}


@app.get("/api/orders/{order_id}")
def get_order(order_id: str, current: UserOut = Depends(get_current_user)):
    order = collection("order").find_one({"_id": to_object_id(order_id)})
    if not order:
        raise NotFoundError("No order found with this id")
    if order.get("user_id") != current.id and current.role != "admin":
        raise HTTPException(status_code=403, detail="Forbidden")
    return doc_to_json(order)


@app.get("/api/admin/orders")
def all_orders(admin: UserOut = Depends(require_admin)):
    orders = list(collection("order").find({}).sort("created_at", -1))
    return {"total_amount": sales.orders_total_amount(orders), "orders": doc_to_json(orders)}


@app.get("/api/admin/orders/total")
def total_orders(admin: UserOut = Depends(require_admin)):
    return {"total_orders": sales.total_orders(collection("order"))}


@app.get("/api/admin/orders/sales")
def total_sales(admin: UserOut = Depends(require_admin)):
    return {"total_sales": sales.total_sales(collection("order"))}


@app.get("/api/admin/orders/customer-sales")
def customer_sales(admin: UserOut = Depends(require_admin)):
    return {"customer_sales": sales.customer_sales(collection("order"), collection("user"))}


@app.get("/api/admin/orders/sales-per-month")
def sales_per_month(chronological: Optional[bool] = None, admin: UserOut = Depends(require_admin)):
    if chronological is None:
        chronological = SALES_MONTHS_CHRONOLOGICAL
    return {"sales_per_month": sales.sales_per_month(collection("order"), chronological=chronological)}


@app.put("/api/admin/orders/{order_id}")
def update_order(order_id: str, payload: OrderStatusUpdate, admin: UserOut = Depends(require_admin)):
    order = order_service.update_order_status(collection("order"), collection("product"), order_id, payload.status)
    notified = order_service.notify_status_change(order, ORDER_NOTIFIER)
    return {"order": doc_to_json(order), "notified": notified}


@app.delete("/api/admin/orders/{order_id}")
def delete_order(order_id: str, admin: UserOut = Depends(require_admin)):
    res = collection("order").delete_one({"_id": to_object_id(order_id)})
    if res.deleted_count == 0:
        raise NotFoundError("No order found with this id")
    return {"status": "deleted"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
