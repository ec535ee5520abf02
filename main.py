import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database

# Local imports
from auth import get_current_user_id, get_user, login_user, register_user, require_roles
from config import settings
from database import ensure_indexes, get_db
from errors import register_error_handlers
from logging_setup import configure_logging, log_requests
from schemas import (
    AuthResponse,
    DashboardKPIs,
    EmployeeIn,
    EmployeeOut,
    EmployeeUpdate,
    LoginRequest,
    MessageResponse,
    OrderIn,
    OrderItemIn,
    OrderItemOut,
    OrderOut,
    OrderUpdate,
    ProductIn,
    ProductOut,
    ProductUpdate,
    RegisterRequest,
    TransactionIn,
    TransactionOut,
    TransactionUpdate,
    UserOut,
)
from storage import (
    EMPLOYEES,
    ORDERS,
    PRODUCTS,
    TRANSACTIONS,
    add_order_item,
    create_entity,
    create_order,
    delete_entity,
    delete_order,
    get_dashboard_kpis,
    get_document,
    list_documents,
    list_employees,
    list_order_items,
    list_products,
    update_entity,
)
from validation import patch_fields

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.using_default_secret:
        logger.warning("JWT_SECRET is not set; signing tokens with the insecure default secret")
    ensure_indexes(get_db())
    yield


app = FastAPI(title="Business Dashboard API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(log_requests)
register_error_handlers(app)

# HR and Finance are management-only, everything else is open to any signed-in user
protected = [Depends(get_current_user_id)]
management_only = [Depends(require_roles("admin", "manager"))]


@app.get("/")
def read_root():
    return {"message": "Business Dashboard API running"}


@app.get("/health")
def health(db: Database = Depends(get_db)):
    db.command("ping")
    return {"status": "ok", "database": db.name}


# -----------------------------
# Auth
# -----------------------------
@app.post("/api/auth/register", response_model=AuthResponse, status_code=201)
def register(payload: RegisterRequest, db: Database = Depends(get_db)):
    return register_user(db, payload)


@app.post("/api/auth/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Database = Depends(get_db)):
    return login_user(db, payload)


@app.post("/api/auth/logout", response_model=MessageResponse, dependencies=protected)
def logout():
    # Tokens are stateless; the client discards its copy.
    return {"message": "Logged out successfully"}


@app.get("/api/auth/me", response_model=UserOut)
def me(user_id: str = Depends(get_current_user_id), db: Database = Depends(get_db)):
    return get_user(db, user_id)


# -----------------------------
# Dashboard
# -----------------------------
@app.get("/api/dashboard/kpis", response_model=DashboardKPIs, dependencies=protected)
def dashboard_kpis(db: Database = Depends(get_db)):
    return get_dashboard_kpis(db)


# -----------------------------
# Products
# -----------------------------
@app.get("/api/products", response_model=List[ProductOut], dependencies=protected)
def get_products(
    search: Optional[str] = Query(None, description="Case-insensitive match on name"),
    db: Database = Depends(get_db),
):
    return list_products(db, search)


@app.get("/api/products/{product_id}", response_model=ProductOut, dependencies=protected)
def get_product(product_id: str, db: Database = Depends(get_db)):
    return get_document(db, PRODUCTS, product_id)


@app.post("/api/products", response_model=ProductOut, status_code=201, dependencies=protected)
def create_product(payload: ProductIn, db: Database = Depends(get_db)):
    return create_entity(db, PRODUCTS, payload.model_dump(by_alias=True))


@app.put("/api/products/{product_id}", response_model=ProductOut, dependencies=protected)
def update_product(product_id: str, payload: ProductUpdate, db: Database = Depends(get_db)):
    return update_entity(db, PRODUCTS, product_id, patch_fields(payload))


@app.delete("/api/products/{product_id}", status_code=204, dependencies=protected)
def delete_product(product_id: str, db: Database = Depends(get_db)):
    delete_entity(db, PRODUCTS, product_id)
    return Response(status_code=204)


# -----------------------------
# Orders
# -----------------------------
@app.get("/api/orders", response_model=List[OrderOut], dependencies=protected)
def get_orders(db: Database = Depends(get_db)):
    return list_documents(db, ORDERS)


@app.get("/api/orders/{order_id}", response_model=OrderOut, dependencies=protected)
def get_order(order_id: str, db: Database = Depends(get_db)):
    return get_document(db, ORDERS, order_id)


@app.post("/api/orders", response_model=OrderOut, status_code=201, dependencies=protected)
def post_order(payload: OrderIn, db: Database = Depends(get_db)):
    return create_order(db, payload)


@app.put("/api/orders/{order_id}", response_model=OrderOut, dependencies=protected)
def update_order(order_id: str, payload: OrderUpdate, db: Database = Depends(get_db)):
    return update_entity(db, ORDERS, order_id, patch_fields(payload))


@app.delete("/api/orders/{order_id}", status_code=204, dependencies=protected)
def remove_order(order_id: str, db: Database = Depends(get_db)):
    delete_order(db, order_id)
    return Response(status_code=204)


@app.get("/api/orders/{order_id}/items", response_model=List[OrderItemOut], dependencies=protected)
def get_order_items(order_id: str, db: Database = Depends(get_db)):
    return list_order_items(db, order_id)


@app.post("/api/orders/{order_id}/items", response_model=OrderItemOut, status_code=201, dependencies=protected)
def post_order_item(order_id: str, payload: OrderItemIn, db: Database = Depends(get_db)):
    return add_order_item(db, order_id, payload)


# -----------------------------
# Employees
# -----------------------------
@app.get("/api/employees", response_model=List[EmployeeOut], dependencies=management_only)
def get_employees(
    search: Optional[str] = Query(None, description="Case-insensitive match on first name"),
    db: Database = Depends(get_db),
):
    return list_employees(db, search)


@app.get("/api/employees/{employee_id}", response_model=EmployeeOut, dependencies=management_only)
def get_employee(employee_id: str, db: Database = Depends(get_db)):
    return get_document(db, EMPLOYEES, employee_id)


@app.post("/api/employees", response_model=EmployeeOut, status_code=201, dependencies=management_only)
def create_employee(payload: EmployeeIn, db: Database = Depends(get_db)):
    return create_entity(db, EMPLOYEES, payload.model_dump(by_alias=True))


@app.put("/api/employees/{employee_id}", response_model=EmployeeOut, dependencies=management_only)
def update_employee(employee_id: str, payload: EmployeeUpdate, db: Database = Depends(get_db)):
    return update_entity(db, EMPLOYEES, employee_id, patch_fields(payload))


@app.delete("/api/employees/{employee_id}", status_code=204, dependencies=management_only)
def delete_employee(employee_id: str, db: Database = Depends(get_db)):
    delete_entity(db, EMPLOYEES, employee_id)
    return Response(status_code=204)


# -----------------------------
# Transactions
# -----------------------------
@app.get("/api/transactions", response_model=List[TransactionOut], dependencies=management_only)
def get_transactions(db: Database = Depends(get_db)):
    return list_documents(db, TRANSACTIONS)


@app.get("/api/transactions/{transaction_id}", response_model=TransactionOut, dependencies=management_only)
def get_transaction(transaction_id: str, db: Database = Depends(get_db)):
    return get_document(db, TRANSACTIONS, transaction_id)


@app.post("/api/transactions", response_model=TransactionOut, status_code=201, dependencies=management_only)
def create_transaction(payload: TransactionIn, db: Database = Depends(get_db)):
    return create_entity(db, TRANSACTIONS, payload.model_dump(by_alias=True))


@app.put("/api/transactions/{transaction_id}", response_model=TransactionOut, dependencies=management_only)
def update_transaction(transaction_id: str, payload: TransactionUpdate, db: Database = Depends(get_db)):
    return update_entity(db, TRANSACTIONS, transaction_id, patch_fields(payload))


@app.delete("/api/transactions/{transaction_id}", status_code=204, dependencies=management_only)
def delete_transaction(transaction_id: str, db: Database = Depends(get_db)):
    delete_entity(db, TRANSACTIONS, transaction_id)
    return Response(status_code=204)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
