"""
Product reviews and the rating aggregates derived from them.

A product keeps its reviews embedded, one per user, together with
`ratings` (mean review score, 0 when there are none) and `num_of_reviews`.
Both are recomputed on every review write. Writes are guarded by the
product's `revision` counter: if another request changed the reviews in the
meantime the write is rejected with a ConflictError.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from better_profanity import profanity
from bson import ObjectId

from database import to_object_id
from errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def clean_comment(text: Optional[str]) -> str:
    if not text:
        return ""
    return profanity.censor(text)


def review_aggregates(reviews: List[dict]) -> dict:
    if not reviews:
        return {"ratings": 0, "num_of_reviews": 0}
    total = sum(r["rating"] for r in reviews)
    return {"ratings": total / len(reviews), "num_of_reviews": len(reviews)}


def _validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5")
    return rating


def _load_product(products, product_id) -> dict:
    product = products.find_one({"_id": to_object_id(product_id)})
    if not product:
        raise NotFoundError("Product not found")
    return product


def _save_reviews(products, product: dict, reviews: List[dict]) -> dict:
    update = {"reviews": reviews, **review_aggregates(reviews)}
    seen = product["revision"] if "revision" in product else {"$exists": False}
    result = products.update_one(
        {"_id": product["_id"], "revision": seen},
        {"$set": update, "$inc": {"revision": 1}},
    )
    if result.matched_count == 0:
        raise ConflictError("Product reviews were changed by another request, please retry")
    return products.find_one({"_id": product["_id"]})


def get_reviews(products, product_id) -> List[dict]:
    return _load_product(products, product_id).get("reviews") or []


def add_or_update_review(products, product_id, user: dict, rating, comment: Optional[str]) -> dict:
    """Post `user`'s review of a product, replacing their earlier one if any.

    `user` needs `id` and `name`. Returns the updated product document.
    """
    rating = _validate_rating(rating)
    product = _load_product(products, product_id)
    filtered = clean_comment(comment)
    user_id = str(user["id"])

    reviews = [dict(r) for r in product.get("reviews") or []]
    existing = next((r for r in reviews if str(r.get("user_id")) == user_id), None)
    if existing is not None:
        existing["rating"] = rating
        existing["comment"] = filtered
    else:
        reviews.append({
            "_id": ObjectId(),
            "user_id": user_id,
            "name": user.get("name"),
            "rating": rating,
            "comment": filtered,
            "created_at": datetime.now(timezone.utc),
        })

    updated = _save_reviews(products, product, reviews)
    logger.info("Review %s on product %s by user %s", "updated" if existing else "added", product["_id"], user_id)
    return updated


def delete_review(products, product_id, review_id) -> dict:
    product = _load_product(products, product_id)
    review_oid = to_object_id(review_id)

    reviews = product.get("reviews") or []
    remaining = [r for r in reviews if r.get("_id") != review_oid]
    if len(remaining) == len(reviews):
        raise NotFoundError("Review not found")

    updated = _save_reviews(products, product, remaining)
    logger.info("Review %s deleted from product %s", review_oid, product["_id"])
    return updated


def find_review(product: dict, review_id) -> Optional[dict]:
    review_oid = to_object_id(review_id)
    return next((r for r in product.get("reviews") or [] if r.get("_id") == review_oid), None)
