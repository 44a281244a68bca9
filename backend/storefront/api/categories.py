"""
Categories API Endpoints
Public catalog navigation plus admin management

Author: Online Store Team
Date: 2025-02-14
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import Optional

from storefront.api.common import (
    deleted_page, get_or_404, hard_delete_or_404, page_envelope, restore_or_400, soft_delete_or_404
)
from storefront.core.auth import require_admin, require_super_admin
from storefront.core.pagination import PageParams, pagination
from storefront.domain.catalog import CategoryCreate, CategoryUpdate
from storefront.repositories.category_repository import CategoryRepository

router = APIRouter()


@router.get("/")
async def get_categories(
    keyword: Optional[str] = Query(None, description="Search by name"),
    page: PageParams = Depends(pagination(10, 100))
):
    """Live categories sorted by name"""
    repo = CategoryRepository()
    categories, total = repo.find_all(keyword=keyword, limit=page.page_size, offset=page.offset)
    return page_envelope("categories", categories, total, page)


@router.get("/deleted/list")
async def get_deleted_categories(
    page: PageParams = Depends(pagination(10, 100)),
    _admin=Depends(require_admin)
):
    return deleted_page(CategoryRepository(), "categories", page)


@router.get("/{category_id}")
async def get_category(category_id: int):
    return get_or_404(CategoryRepository(), category_id, "Category")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_category(payload: CategoryCreate, _admin=Depends(require_admin)):
    """Create a category; names are unique (case-insensitive)"""
    repo = CategoryRepository()
    if repo.find_by_name(payload.name):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category already exists")
    return repo.create(payload)


@router.put("/{category_id}")
async def update_category(category_id: int, payload: CategoryUpdate, _admin=Depends(require_admin)):
    repo = CategoryRepository()
    get_or_404(repo, category_id, "Category")

    if payload.name:
        existing = repo.find_by_name(payload.name)
        if existing and existing.id != category_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category already exists")

    return repo.update(category_id, payload)


@router.delete("/{category_id}")
async def delete_category(category_id: int, _admin=Depends(require_admin)):
    return soft_delete_or_404(CategoryRepository(), category_id, "Category")


@router.put("/{category_id}/restore")
async def restore_category(category_id: int, _admin=Depends(require_admin)):
    return restore_or_400(CategoryRepository(), category_id, "Category")


@router.delete("/{category_id}/hard")
async def hard_delete_category(category_id: int, _super_admin=Depends(require_super_admin)):
    return hard_delete_or_404(CategoryRepository(), category_id, "Category")
