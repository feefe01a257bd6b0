# justgold/routers/categories.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from justgold.core.auth import require_admin
from justgold.database import get_session
from justgold.repositories.category_repo import CategoryRepository
from justgold.schemas.category import CategoryCreate, CategoryRead, CategoryTreeRead
from justgold.services.category_service import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])

repo = CategoryRepository()
service = CategoryService(repo)


@router.get("", response_model=list[CategoryTreeRead])
def list_categories(session: Session = Depends(get_session)):
    """
    Category tree: top-level categories with nested subcategories (public).
    """
    return service.list_tree(session)


@router.post(
    "",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
):
    """
    Create a category or, with `parent_id`, a subcategory (admin only).
    """
    return service.create_category(session, payload)


@router.get(
    "/orphans",
    response_model=list[CategoryRead],
    dependencies=[Depends(require_admin)],
)
def list_orphans(session: Session = Depends(get_session)):
    """Subcategories whose parent no longer exists (admin only)."""
    return service.find_orphans(session)
