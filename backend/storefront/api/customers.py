"""
Customers API Endpoints
Admin management of customers, including the phone-keyed lookup / upsert
used by the point-of-sale checkout

Author: Online Store Team
Date: 2025-02-14
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from typing import Optional

from storefront.api.common import (
    deleted_page, get_or_404, hard_delete_or_404, page_envelope, restore_or_400, soft_delete_or_404
)
from storefront.core.auth import require_admin, require_super_admin
from storefront.core.pagination import PageParams, pagination
from storefront.domain.customer import CustomerCreate, CustomerPhoneUpsert, CustomerUpdate
from storefront.repositories.customer_repository import CustomerRepository

router = APIRouter()


@router.get("/")
async def get_customers(
    keyword: Optional[str] = Query(None, description="Search by name, email or phone"),
    page: PageParams = Depends(pagination(10, 100)),
    _admin=Depends(require_admin)
):
    repo = CustomerRepository()
    customers, total = repo.find_all(keyword=keyword, limit=page.page_size, offset=page.offset)
    return page_envelope("customers", customers, total, page)


@router.get("/deleted/list")
async def get_deleted_customers(
    page: PageParams = Depends(pagination(10, 100)),
    _admin=Depends(require_admin)
):
    return deleted_page(CustomerRepository(), "customers", page)


@router.get("/phone/{phone}")
async def get_customer_by_phone(phone: str, _admin=Depends(require_admin)):
    customer = CustomerRepository().find_by_phone(phone)
    if not customer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    return customer


@router.post("/phone/{phone}")
async def upsert_customer_by_phone(phone: str, payload: CustomerPhoneUpsert, _admin=Depends(require_admin)):
    """
    Update the live customer with this phone, or create one.

    Creating requires name and email. An email owned by another live
    customer is a 409 either way.
    """
    repo = CustomerRepository()
    customer = repo.find_by_phone(phone)

    if customer:
        if payload.email and repo.email_in_use(payload.email, exclude_id=customer.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

        updated = repo.update(customer.id, CustomerUpdate(**payload.model_dump(exclude_none=True)))
        return {"message": "Customer updated", "customer": updated.model_dump(mode="json")}

    if not payload.name or not payload.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name and email are required to create a customer"
        )
    if repo.email_in_use(payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    created = repo.create(CustomerCreate(
        name=payload.name,
        email=payload.email,
        phone=phone.strip(),
        address=payload.address
    ))
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"message": "Customer created", "customer": created.model_dump(mode="json")}
    )


@router.get("/{customer_id}")
async def get_customer(customer_id: int, _admin=Depends(require_admin)):
    return get_or_404(CustomerRepository(), customer_id, "Customer")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_customer(payload: CustomerCreate, _admin=Depends(require_admin)):
    repo = CustomerRepository()
    if repo.email_in_use(payload.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Customer already exists")
    return repo.create(payload)


@router.put("/{customer_id}")
async def update_customer(customer_id: int, payload: CustomerUpdate, _admin=Depends(require_admin)):
    repo = CustomerRepository()
    get_or_404(repo, customer_id, "Customer")

    if payload.email and repo.email_in_use(payload.email, exclude_id=customer_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    return repo.update(customer_id, payload)


@router.delete("/{customer_id}")
async def delete_customer(customer_id: int, _admin=Depends(require_admin)):
    return soft_delete_or_404(CustomerRepository(), customer_id, "Customer")


@router.put("/{customer_id}/restore")
async def restore_customer(customer_id: int, _admin=Depends(require_admin)):
    return restore_or_400(CustomerRepository(), customer_id, "Customer")


@router.delete("/{customer_id}/hard")
async def hard_delete_customer(customer_id: int, _super_admin=Depends(require_super_admin)):
    return hard_delete_or_404(CustomerRepository(), customer_id, "Customer")
