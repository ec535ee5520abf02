"""
Domain services for products, orders, employees and transactions.

Every function takes the database handle as its first argument so routes
can inject it and tests can swap in an in-memory store.
"""
import logging
import re
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import create_document, get_documents, oid, to_str_id, utcnow
from errors import BadRequestError, NotFoundError
from schemas import OrderIn, OrderItemIn

logger = logging.getLogger(__name__)

PRODUCTS = "product"
ORDERS = "order"
ORDER_ITEMS = "orderitem"
EMPLOYEES = "employee"
TRANSACTIONS = "transaction"

LABELS = {
    PRODUCTS: "Product",
    ORDERS: "Order",
    ORDER_ITEMS: "Order item",
    EMPLOYEES: "Employee",
    TRANSACTIONS: "Transaction",
}

# Transactions are listed by when they happened, everything else by creation
SORT_FIELDS = {TRANSACTIONS: "date"}


def _object_id(doc_id: str):
    _id = oid(doc_id)
    if not _id:
        raise NotFoundError(f"Resource not found with id of {doc_id}")
    return _id


# -----------------------------
# Generic CRUD
# -----------------------------
def list_documents(db: Database, collection: str, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    docs = get_documents(db, collection, filter_dict, sort_field=SORT_FIELDS.get(collection, "createdAt"))
    return [to_str_id(d) for d in docs]


def get_document(db: Database, collection: str, doc_id: str) -> Dict[str, Any]:
    doc = db[collection].find_one({"_id": _object_id(doc_id)})
    if not doc:
        raise NotFoundError(f"{LABELS[collection]} not found")
    return to_str_id(doc)


def create_entity(db: Database, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
    doc = create_document(db, collection, data)
    logger.info(f"Created {collection} {doc['_id']}")
    return to_str_id(doc)


def update_entity(db: Database, collection: str, doc_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
    _id = _object_id(doc_id)
    changes = {**patch, "updatedAt": utcnow()}
    updated = db[collection].find_one_and_update(
        {"_id": _id}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    if not updated:
        raise NotFoundError(f"{LABELS[collection]} not found for update")
    logger.info(f"Updated {collection} {doc_id}: {sorted(patch)}")
    return to_str_id(updated)


def delete_entity(db: Database, collection: str, doc_id: str) -> None:
    res = db[collection].delete_one({"_id": _object_id(doc_id)})
    if res.deleted_count == 0:
        raise NotFoundError(f"{LABELS[collection]} not found for deletion")
    logger.info(f"Deleted {collection} {doc_id}")


def _name_search(field: str, query: Optional[str]) -> Dict[str, Any]:
    if not query:
        return {}
    return {field: {"$regex": re.escape(query), "$options": "i"}}


# -----------------------------
# Products
# -----------------------------
def list_products(db: Database, search: Optional[str] = None) -> List[Dict[str, Any]]:
    return list_documents(db, PRODUCTS, _name_search("name", search))


# -----------------------------
# Employees
# -----------------------------
def list_employees(db: Database, search: Optional[str] = None) -> List[Dict[str, Any]]:
    return list_documents(db, EMPLOYEES, _name_search("firstName", search))


# -----------------------------
# Orders & order items
# -----------------------------
def _require_product(db: Database, product_id: str) -> None:
    _id = oid(product_id)
    if not _id or not db[PRODUCTS].find_one({"_id": _id}, {"_id": 1}):
        raise BadRequestError(f"Product {product_id} not found")


def _item_document(order_id: str, item: OrderItemIn) -> Dict[str, Any]:
    total = item.total_price
    if total is None:
        total = round(item.quantity * item.unit_price, 2)
    return {
        "orderId": order_id,
        "productId": item.product_id,
        "quantity": item.quantity,
        "unitPrice": item.unit_price,
        "totalPrice": total,
    }


def create_order(db: Database, payload: OrderIn) -> Dict[str, Any]:
    """Create an order and its items.

    Product references are checked before anything is written. If writing an
    item fails, the order and the items already written are removed again so
    no half-created order is left behind.
    """
    items = payload.items or []
    for item in items:
        _require_product(db, item.product_id)

    order = create_entity(db, ORDERS, payload.model_dump(by_alias=True, exclude={"items"}))
    try:
        for item in items:
            create_document(db, ORDER_ITEMS, _item_document(order["id"], item))
    except PyMongoError:
        logger.exception(f"Writing items for order {order['id']} failed, rolling back")
        db[ORDER_ITEMS].delete_many({"orderId": order["id"]})
        db[ORDERS].delete_one({"_id": oid(order["id"])})
        raise
    return order


def delete_order(db: Database, order_id: str) -> None:
    delete_entity(db, ORDERS, order_id)
    db[ORDER_ITEMS].delete_many({"orderId": order_id})


def list_order_items(db: Database, order_id: str) -> List[Dict[str, Any]]:
    get_document(db, ORDERS, order_id)
    docs = db[ORDER_ITEMS].find({"orderId": order_id}).sort("_id", 1)
    return [to_str_id(d) for d in docs]


def add_order_item(db: Database, order_id: str, item: OrderItemIn) -> Dict[str, Any]:
    get_document(db, ORDERS, order_id)
    _require_product(db, item.product_id)
    return create_entity(db, ORDER_ITEMS, _item_document(order_id, item))


# -----------------------------
# Dashboard
# -----------------------------
def get_dashboard_kpis(db: Database) -> Dict[str, Any]:
    pipeline = [
        {"$match": {"type": "income"}},
        {"$group": {"_id": None, "total": {"$sum": "$amount"}}},
    ]
    rows = list(db[TRANSACTIONS].aggregate(pipeline))
    total_revenue = float(rows[0]["total"]) if rows else 0.0

    return {
        "totalRevenue": round(total_revenue, 2),
        "activeOrders": db[ORDERS].count_documents({"status": "pending"}),
        "inventoryItems": db[PRODUCTS].count_documents({}),
        "employees": db[EMPLOYEES].count_documents({}),
    }
