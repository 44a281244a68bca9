"""
Helpers shared by the resource routers: list envelopes and the
soft delete / restore / hard delete responses.
"""
from typing import Any, List

from fastapi import HTTPException, status

from storefront.core.pagination import PageParams
from storefront.repositories.base import SoftDeleteRepository


def page_envelope(key: str, items: List[Any], total: int, page: PageParams, with_total: bool = False) -> dict:
    """{<key>: [...], page, pages} (plus total when asked)"""
    body = {
        key: [item.model_dump(mode="json") if hasattr(item, "model_dump") else item for item in items],
        "page": page.page_number,
        "pages": page.pages(total)
    }
    if with_total:
        body["total"] = total
    return body


def get_or_404(repo: SoftDeleteRepository, entity_id: int, label: str):
    entity = repo.find_by_id(entity_id)
    if not entity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return entity


def deleted_page(repo: SoftDeleteRepository, key: str, page: PageParams) -> dict:
    items, total = repo.find_deleted(limit=page.page_size, offset=page.offset)
    return page_envelope(key, items, total, page, with_total=True)


def soft_delete_or_404(repo: SoftDeleteRepository, entity_id: int, label: str) -> dict:
    if not repo.soft_delete(entity_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return {"message": f"{label} removed"}


def restore_or_400(repo: SoftDeleteRepository, entity_id: int, label: str) -> dict:
    """404 for an unknown id, 400 when the row is not deleted"""
    entity = repo.find_by_id(entity_id, include_deleted=True)
    if not entity:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    if not entity.is_deleted:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{label} is not deleted")

    repo.restore(entity_id)
    return {"message": f"{label} restored", label.lower(): repo.find_by_id(entity_id).model_dump(mode="json")}


def hard_delete_or_404(repo: SoftDeleteRepository, entity_id: int, label: str) -> dict:
    if not repo.hard_delete(entity_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return {"message": f"{label} permanently deleted"}
