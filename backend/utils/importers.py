# backend/utils/importers.py
"""Column layouts and bulk-create callbacks for the spreadsheet import screens."""
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from schemas.product import CompetitorPriceIn, ProductCreate
from utils.errors import BackendError
from utils.inventory import add_competitor_prices, create_product, create_product_type, type_key, types_by_name
from utils.spreadsheet import ColumnSpec

logger = logging.getLogger(__name__)

PRODUCT_TYPE_COLUMNS = [
    ColumnSpec(key="name", label="Nome", required=True, value_type="string"),
]

PRODUCT_COLUMNS = [
    ColumnSpec(key="name", label="Produto", required=True, value_type="string"),
    ColumnSpec(key="type", label="Tipo", required=True, value_type="string"),
    ColumnSpec(key="cost_price", label="Custo", required=True, value_type="number"),
    ColumnSpec(key="profit_rate", label="Taxa de Lucro", required=True, value_type="number"),
    ColumnSpec(key="sale_price", label="Valor de Venda", required=True, value_type="number"),
    ColumnSpec(key="competitor_price", label="Valor Concorrente", required=False, value_type="number"),
    ColumnSpec(key="competitor_name", label="Nome Concorrente", required=False, value_type="string"),
]

# entity -> (columns, template file name)
IMPORT_LAYOUTS = {
    "product-types": (PRODUCT_TYPE_COLUMNS, "modelo_tipos_produto"),
    "products": (PRODUCT_COLUMNS, "modelo_produtos"),
}


def import_product_types(db: Session, records: List[Dict[str, Any]]) -> int:
    for item in records:
        create_product_type(db, str(item["name"]))
    return len(records)


def import_products(db: Session, records: List[Dict[str, Any]]) -> int:
    """
    One product (plus optional competitor price) per record, committed one by
    one. A failing record leaves the earlier ones in place.
    """
    known_types = types_by_name(db)
    if not known_types:
        raise BackendError("Create at least one product type before importing products.")

    for item in records:
        type_name = str(item.get("type") or "")
        product_type = known_types.get(type_key(type_name))
        if product_type is None:
            raise BackendError(f'Type "{type_name}" not found. Check that the type exists.')

        product = create_product(db, ProductCreate(
            name=str(item["name"]),
            type_id=product_type.id,
            cost_price=item["cost_price"],
            profit_rate=item["profit_rate"],
            sale_price=item["sale_price"],
            quantity=0,
            is_kit=False,
        ))

        if item.get("competitor_price") and item.get("competitor_name"):
            add_competitor_prices(db, product.id, [
                CompetitorPriceIn(competitor_name=str(item["competitor_name"]), price=item["competitor_price"])
            ])
        logger.debug("Imported product %s (%s)", product.name, product.id)
    return len(records)


IMPORTERS = {
    "product-types": import_product_types,
    "products": import_products,
}
