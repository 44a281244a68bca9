"""
Products API Endpoints
Public catalog browsing plus admin product management

Author: Online Store Team
Date: 2025-02-14
"""
import json
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from pydantic import ValidationError
from typing import Any, Dict, List, Optional

from storefront.api.common import deleted_page, hard_delete_or_404, restore_or_400, soft_delete_or_404
from storefront.core.auth import require_admin, require_super_admin
from storefront.core.errors import format_validation_errors
from storefront.core.pagination import PageParams, pagination
from storefront.core.uploads import save_image, save_optional_image
from storefront.domain.product import Product, ProductCreate, ProductFilters, ProductUpdate
from storefront.domain.user import User
from storefront.repositories.product_repository import ProductRepository
from storefront.repositories.review_repository import ReviewRepository

logger = logging.getLogger(__name__)

router = APIRouter()

# Form fields that carry JSON documents
_JSON_FORM_FIELDS = ("images", "features", "specs", "deal")


def product_filters(
    keyword: Optional[str] = Query(None, description="Search by name; numbers also match a price range"),
    category: Optional[int] = Query(None, description="Category ID"),
    brand: Optional[str] = Query(None, description="Exact brand"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    in_stock: Optional[bool] = Query(None, alias="inStock")
) -> ProductFilters:
    return ProductFilters(
        keyword=keyword,
        category_id=category,
        brand=brand,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock
    )


def _with_reviews(products: List[Product]) -> List[Dict[str, Any]]:
    reviews = ReviewRepository().find_for_products([product.id for product in products])
    result = []
    for product in products:
        data = product.to_dict()
        data["reviews"] = [review.model_dump(mode="json") for review in reviews.get(product.id, [])]
        result.append(data)
    return result


def _form_payload(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Drop absent form fields and decode the JSON-encoded ones"""
    payload = {}
    for key, value in raw.items():
        if value is None:
            continue
        if key in _JSON_FORM_FIELDS and isinstance(value, str):
            try:
                value = json.loads(value) if value.strip() else None
            except json.JSONDecodeError:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"{key}: must be valid JSON"
                )
        payload[key] = value
    return payload


def _validation_error(exc: ValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=format_validation_errors(exc.errors()))


@router.get("/")
async def get_products(
    filters: ProductFilters = Depends(product_filters),
    page: PageParams = Depends(pagination(9, 500))
):
    """Live products with their reviews"""
    products, total = ProductRepository().find_all(filters, limit=page.page_size, offset=page.offset)
    return {
        "products": _with_reviews(products),
        "page": page.page_number,
        "pages": page.pages(total),
        "total": total
    }


@router.get("/featured/list")
async def get_featured_products(
    filters: ProductFilters = Depends(product_filters),
    page: PageParams = Depends(pagination(9, 500))
):
    """Same filters as the main list, without reviews"""
    products, total = ProductRepository().find_all(filters, limit=page.page_size, offset=page.offset)
    return {
        "products": [product.to_dict() for product in products],
        "page": page.page_number,
        "pages": page.pages(total),
        "total": total
    }


@router.get("/top/rated")
async def get_top_rated_products():
    return [product.to_dict() for product in ProductRepository().find_top_rated(limit=3)]


@router.get("/stats/overview")
async def get_stats_overview():
    return ProductRepository().get_stats()


@router.get("/deleted/list")
async def get_deleted_products(
    page: PageParams = Depends(pagination(10, 100)),
    _admin=Depends(require_admin)
):
    return deleted_page(ProductRepository(), "products", page)


@router.get("/{product_id}")
async def get_product(product_id: int):
    product = ProductRepository().find_by_id(product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return _with_reviews([product])[0]


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_product(
    name: str = Form(...),
    price: float = Form(...),
    image: Optional[UploadFile] = File(None),
    original_price: Optional[float] = Form(None),
    brand: Optional[str] = Form(None),
    category_id: Optional[int] = Form(None),
    supplier_id: Optional[int] = Form(None),
    description: Optional[str] = Form(None),
    count_in_stock: Optional[int] = Form(None),
    featured: Optional[bool] = Form(None),
    images: Optional[str] = Form(None),
    features: Optional[str] = Form(None),
    specs: Optional[str] = Form(None),
    deal: Optional[str] = Form(None),
    user: User = Depends(require_admin)
):
    """
    Create a product from a multipart form

    The main image file is required; images / features / specs / deal
    are JSON-encoded form fields.
    """
    if image is None or not image.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Product image is required")

    payload = _form_payload({
        "name": name, "price": price, "original_price": original_price, "brand": brand,
        "category_id": category_id, "supplier_id": supplier_id, "description": description,
        "count_in_stock": count_in_stock, "featured": featured,
        "images": images, "features": features, "specs": specs, "deal": deal,
    })
    try:
        data = ProductCreate(**payload)
    except ValidationError as e:
        raise _validation_error(e)

    image_url = await save_image(image, "image")
    product = ProductRepository().create(data, image=image_url, user_id=user.id)

    logger.info(f"Product {product.id} created by user {user.id}")
    return product.to_dict()


@router.put("/{product_id}")
async def update_product(
    product_id: int,
    image: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    original_price: Optional[float] = Form(None),
    brand: Optional[str] = Form(None),
    category_id: Optional[int] = Form(None),
    supplier_id: Optional[int] = Form(None),
    description: Optional[str] = Form(None),
    count_in_stock: Optional[int] = Form(None),
    featured: Optional[bool] = Form(None),
    images: Optional[str] = Form(None),
    features: Optional[str] = Form(None),
    specs: Optional[str] = Form(None),
    deal: Optional[str] = Form(None),
    _admin=Depends(require_admin)
):
    """Partial update; only the fields sent are changed, plus an optional new image"""
    repo = ProductRepository()
    if not repo.find_by_id(product_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")

    payload = _form_payload({
        "name": name, "price": price, "original_price": original_price, "brand": brand,
        "category_id": category_id, "supplier_id": supplier_id, "description": description,
        "count_in_stock": count_in_stock, "featured": featured,
        "images": images, "features": features, "specs": specs, "deal": deal,
    })
    try:
        fields = ProductUpdate(**payload).model_dump(exclude_unset=True)
    except ValidationError as e:
        raise _validation_error(e)

    if "name" in fields and fields["name"]:
        fields["name"] = fields["name"].strip()

    image_url = await save_optional_image(image, "image")
    if image_url:
        fields["image"] = image_url

    product = repo.update(product_id, fields)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product.to_dict()


@router.delete("/{product_id}")
async def delete_product(product_id: int, _admin=Depends(require_admin)):
    return soft_delete_or_404(ProductRepository(), product_id, "Product")


@router.put("/{product_id}/restore")
async def restore_product(product_id: int, _admin=Depends(require_admin)):
    return restore_or_400(ProductRepository(), product_id, "Product")


@router.delete("/{product_id}/hard")
async def hard_delete_product(product_id: int, _super_admin=Depends(require_super_admin)):
    return hard_delete_or_404(ProductRepository(), product_id, "Product")
