"""
Suppliers API Endpoints
Admin management of product suppliers, plus a public name list

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
from storefront.domain.catalog import SupplierCreate, SupplierUpdate
from storefront.repositories.supplier_repository import SupplierRepository

router = APIRouter()


@router.get("/public/list")
async def get_supplier_names():
    """id + name of live suppliers for storefront filters"""
    return SupplierRepository().list_names()


@router.get("/")
async def get_suppliers(
    keyword: Optional[str] = Query(None, description="Search by name or email"),
    page: PageParams = Depends(pagination(10, 100)),
    _admin=Depends(require_admin)
):
    repo = SupplierRepository()
    suppliers, total = repo.find_all(keyword=keyword, limit=page.page_size, offset=page.offset)
    return page_envelope("suppliers", suppliers, total, page)


@router.get("/deleted/list")
async def get_deleted_suppliers(
    page: PageParams = Depends(pagination(10, 100)),
    _admin=Depends(require_admin)
):
    return deleted_page(SupplierRepository(), "suppliers", page)


@router.get("/{supplier_id}")
async def get_supplier(supplier_id: int, _admin=Depends(require_admin)):
    return get_or_404(SupplierRepository(), supplier_id, "Supplier")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_supplier(payload: SupplierCreate, _admin=Depends(require_admin)):
    repo = SupplierRepository()
    if repo.find_by_email(payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Supplier already exists")
    return repo.create(payload)


@router.put("/{supplier_id}")
async def update_supplier(supplier_id: int, payload: SupplierUpdate, _admin=Depends(require_admin)):
    repo = SupplierRepository()
    get_or_404(repo, supplier_id, "Supplier")

    if payload.email:
        existing = repo.find_by_email(payload.email)
        if existing and existing.id != supplier_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    return repo.update(supplier_id, payload)


@router.delete("/{supplier_id}")
async def delete_supplier(supplier_id: int, _admin=Depends(require_admin)):
    return soft_delete_or_404(SupplierRepository(), supplier_id, "Supplier")


@router.put("/{supplier_id}/restore")
async def restore_supplier(supplier_id: int, _admin=Depends(require_admin)):
    return restore_or_400(SupplierRepository(), supplier_id, "Supplier")


@router.delete("/{supplier_id}/hard")
async def hard_delete_supplier(supplier_id: int, _super_admin=Depends(require_super_admin)):
    return hard_delete_or_404(SupplierRepository(), supplier_id, "Supplier")
