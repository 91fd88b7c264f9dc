"""
Instance Search Service - unified CCT / name search over the seven instance catalogs
"""
import logging
import math
import unicodedata
from typing import Any, Dict, Optional

from infra_api.core.config import get_settings
from infra_api.core.errors import InvalidInstanceType, ValidationFailed
from infra_api.models.infrastructure import INSTANCE_MODELS, instance_kind

logger = logging.getLogger(__name__)


def name_sort_key(name: Optional[str]):
    """Alphabetical key ignoring case and accents ("Álvaro" sorts with "a")"""
    decomposed = unicodedata.normalize("NFKD", name or "")
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return base.casefold(), name or ""


def search_instances(
    repository,
    term: Optional[str],
    page: int = 1,
    limit: int = 10,
    instance_type_id: Optional[int] = None
) -> Dict[str, Any]:
    """
    Search every catalog (or only one) by CCT or name

    Args:
        repository: SqlHierarchyRepository
        term: text to look for; "*" or blank returns every active row
        page: 1-based page number
        limit: page size, capped at SEARCH_MAX_LIMIT
        instance_type_id: restrict the search to one catalog

    Returns:
        {"items": [...], "pagination": {...}} sorted by name
    """
    settings = get_settings()
    if page < 1:
        raise ValidationFailed("Page must be greater than or equal to 1")
    limit = min(max(limit, 1), settings.SEARCH_MAX_LIMIT)

    term = (term or "").strip()
    search_all = term in ("", "*")

    if instance_type_id is not None:
        kind = instance_kind(instance_type_id)
        if kind is None:
            raise InvalidInstanceType(instance_type_id)
        kinds = [kind]
    else:
        kinds = list(INSTANCE_MODELS)

    results = []
    for kind in kinds:
        type_row = repository.find_instance_type(int(kind))
        type_name = type_row.name if type_row is not None else settings.INSTANCE_TYPES.get(int(kind), kind.name)

        instances = repository.search_instances(
            kind, None if search_all else term, settings.SEARCH_PER_TABLE_LIMIT
        )
        for instance in instances:
            node = repository.find_by_instance(instance.id, int(kind))
            results.append({
                "instance_id": instance.id,
                "cct": instance.cct or "",
                "name": instance.name,
                "instance_type": {"id": int(kind), "name": type_name},
                "hierarchy_node_id": node.id if node is not None else None,
                "hierarchy": {"id": node.id, "parent_id": node.parent_id} if node is not None else None,
            })

    results.sort(key=lambda item: name_sort_key(item["name"]))

    total = len(results)
    start = (page - 1) * limit
    total_pages = math.ceil(total / limit) if total else 0
    items = results[start:start + limit]

    logger.info(
        f"[Search] \"{term}\": {total} instances found (page {page}/{total_pages}, showing {len(items)})"
    )
    return {
        "items": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_previous": page > 1,
        },
    }
