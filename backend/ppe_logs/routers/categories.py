"""Equipment category catalogue."""
from fastapi import APIRouter

from ..schemas import CategoryOut
from ..services.classifier import CATEGORY_TAGS, category_label

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryOut])
def list_categories():
    return [CategoryOut(tag=tag, label=category_label(tag)) for tag in CATEGORY_TAGS]
