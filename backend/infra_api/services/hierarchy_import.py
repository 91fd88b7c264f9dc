"""
Hierarchy Import - bulk load hierarchy nodes from CSV
"""
import logging
import os
from typing import IO, List, Optional, Union

import pandas as pd
from sqlalchemy.orm import Session

from infra_api.core.errors import ValidationFailed
from infra_api.crud.hierarchy import create_nodes_batch
from infra_api.models.hierarchy import HierarchyNode
from infra_api.schemas.hierarchy import HierarchyBatchItem

logger = logging.getLogger(__name__)

INSTANCE_COLUMN = "id_instancia"
TYPE_COLUMN = "id_ct_infraestructura_tipo_instancia"
PARENT_COLUMN = "id_dependencia"
REQUIRED_COLUMNS = (INSTANCE_COLUMN, TYPE_COLUMN)


def load_hierarchy_csv(source: Union[str, IO], encoding: str = "utf-8") -> List[HierarchyBatchItem]:
    """Read a hierarchy CSV (path or file object) into batch items; a blank parent means a root node"""
    if isinstance(source, str) and not os.path.exists(source):
        raise ValidationFailed(f"CSV file not found: {source}")

    try:
        df = pd.read_csv(source, encoding=encoding, dtype=str, keep_default_na=False)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise ValidationFailed(f"Unreadable CSV: {e}")
    # Clean column names (strip whitespace)
    df.columns = df.columns.str.strip()

    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise ValidationFailed(f"CSV is missing columns: {', '.join(missing)}")

    if PARENT_COLUMN not in df.columns:
        df[PARENT_COLUMN] = ""

    items = []
    for row_number, record in enumerate(df.to_dict("records"), start=2):
        try:
            parent = str(record[PARENT_COLUMN]).strip()
            items.append(HierarchyBatchItem(
                instance_id=int(str(record[INSTANCE_COLUMN]).strip()),
                instance_type_id=int(str(record[TYPE_COLUMN]).strip()),
                parent_id=int(parent) if parent else None,
            ))
        except ValueError as e:
            raise ValidationFailed(f"Invalid value on CSV line {row_number}: {e}")

    logger.info(f"[Import] {len(items)} hierarchy rows read")
    return items


def import_hierarchy_csv(db: Session, source: Union[str, IO], user_id: Optional[int] = None) -> List[HierarchyNode]:
    """Load a CSV and create all of its nodes in one transaction"""
    items = load_hierarchy_csv(source)
    return create_nodes_batch(db, items, user_id=user_id)
