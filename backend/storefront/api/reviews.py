"""
Reviews API Endpoints
Product reviews; every change refreshes the product's rating

Author: Online Store Team
Date: 2025-02-20
"""
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from typing import Optional

from storefront.api.common import hard_delete_or_404, page_envelope, soft_delete_or_404
from storefront.core.auth import get_current_user, require_admin, require_super_admin
from storefront.core.pagination import PageParams, pagination
from storefront.core.uploads import save_optional_image
from storefront.domain.product import ReviewUpdate
from storefront.domain.user import User
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.review_repository import ReviewRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/products/{product_id}/reviews")
async def get_product_reviews(
    product_id: int,
    keyword: Optional[str] = Query(None, description="Search review text"),
    page: PageParams = Depends(pagination(10, 100))
):
    reviews, total = ReviewRepository().find_by_product(
        product_id,
        keyword=keyword,
        limit=page.page_size,
        offset=page.offset
    )
    return page_envelope("reviews", reviews, total, page)


@router.post("/products/{product_id}/reviews", status_code=status.HTTP_201_CREATED)
async def create_product_review(
    product_id: int,
    rating: int = Form(..., ge=1, le=5),
    comment: str = Form(..., min_length=1),
    avatar: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user)
):
    """One live review per user and product; the avatar upload is optional"""
    comment = comment.strip()
    if not comment:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Comment is required")

    if not ProductRepository().find_by_id(product_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    repo = ReviewRepository()
    if repo.find_user_review(product_id, user.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Product already reviewed")

    avatar_url = await save_optional_image(avatar, "avatar")

    review = repo.create(
        product_id=product_id,
        user_id=user.id,
        name=user.display_name,
        rating=rating,
        comment=comment,
        avatar=avatar_url or user.profile_image
    )
    logger.info(f"User {user.id} reviewed product {product_id} ({rating} stars)")
    return review


@router.put("/{review_id}")
async def update_review(review_id: int, payload: ReviewUpdate, user: User = Depends(get_current_user)):
    """Authors may edit their own live reviews; anything else is a 404"""
    repo = ReviewRepository()
    review = repo.find_by_id(review_id)
    if not review or review.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")

    fields = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "comment" in fields:
        fields["comment"] = fields["comment"].strip()
        if not fields["comment"]:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Comment is required")

    return repo.update(review, fields)


@router.delete("/{review_id}")
async def delete_review(review_id: int, _admin=Depends(require_admin)):
    return soft_delete_or_404(ReviewRepository(), review_id, "Review")


@router.delete("/{review_id}/hard")
async def hard_delete_review(review_id: int, _super_admin=Depends(require_super_admin)):
    return hard_delete_or_404(ReviewRepository(), review_id, "Review")
