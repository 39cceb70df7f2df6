"""Admin back office. Every mutation is written to the audit log."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status

from freshpick.api.dependencies import (
    Audit,
    Blogs,
    Brands,
    Categories,
    Customers,
    Messages,
    Orders,
    Page,
    Products,
    RecurringOrders,
    Suppliers,
)
from freshpick.api.responses import paginated, success
from freshpick.core.auth import AdminUser, require_admin
from freshpick.core.dependencies import get_request_meta
from freshpick.schemas.admin import CustomerUpdate
from freshpick.schemas.catalog import (
    BlogCreate,
    BlogUpdate,
    BrandCreate,
    BrandUpdate,
    CategoryCreate,
    CategoryUpdate,
    ProductCreate,
    ProductUpdate,
    SupplierCreate,
    SupplierUpdate,
)
from freshpick.schemas.messages import MessageCreate
from freshpick.schemas.orders import OrderStatus, OrderUpdate, RecurringOrderUpdate
from freshpick.services.audit_service import AuditService, RequestMeta, ResourceType
from freshpick.services.auth_service import public_user
from freshpick.services.product_service import product_view
from freshpick.utils.documents import to_public

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@dataclass
class Auditor:
    audit: AuditService
    user: dict[str, Any]
    meta: RequestMeta

    def __call__(
        self,
        action: str,
        resource_type: ResourceType,
        resource_id: str | None,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
    ) -> None:
        self.audit.record(
            user_id=self.user["_id"],
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            before=before,
            after=after,
            meta=self.meta,
        )


def get_auditor(
    admin: AdminUser,
    audit: Audit,
    meta: Annotated[RequestMeta, Depends(get_request_meta)],
) -> Auditor:
    return Auditor(audit=audit, user=admin, meta=meta)


Audited = Annotated[Auditor, Depends(get_auditor)]


# Categories


@router.get("/categories")
def list_categories(
    categories: Categories,
    page: Page,
    search: str | None = None,
    is_active: bool | None = None,
) -> dict:
    items, pagination = categories.list_categories(
        page=page.page, limit=page.limit, search=search, is_active=is_active
    )
    return paginated(items, pagination)


@router.post("/categories", status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryCreate, categories: Categories, audited: Audited) -> dict:
    category = categories.create(payload)
    audited("create", "category", category["_id"], after=category)
    return success(to_public(category), "Category created successfully")


@router.get("/categories/{category_id}")
def get_category(category_id: str, categories: Categories) -> dict:
    return success(to_public(categories.get(category_id)))


@router.put("/categories/{category_id}")
def update_category(
    category_id: str,
    payload: CategoryUpdate,
    categories: Categories,
    audited: Audited,
) -> dict:
    before, after = categories.update(category_id, payload)
    audited("update", "category", category_id, before=before, after=after)
    return success(to_public(after), "Category updated successfully")


@router.delete("/categories/{category_id}")
def delete_category(category_id: str, categories: Categories, audited: Audited) -> dict:
    category = categories.delete(category_id)
    audited("delete", "category", category_id, before=category)
    return success(None, "Category deleted successfully")


# Products


@router.get("/products")
def list_products(
    products: Products,
    page: Page,
    search: str | None = None,
    category_id: str | None = None,
    supplier_id: str | None = None,
    archived: bool = False,
    in_stock: bool | None = None,
    sort: str = "newest",
) -> dict:
    items, pagination = products.list_products(
        page=page.page,
        limit=page.limit,
        search=search,
        category_id=category_id,
        supplier_id=supplier_id,
        archived=archived,
        in_stock=in_stock,
        sort=sort,
    )
    return paginated(items, pagination)


@router.get("/products/low-stock")
def list_low_stock(products: Products) -> dict:
    return success(products.list_low_stock())


@router.post("/products", status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreate, products: Products, audited: Audited) -> dict:
    product = products.create(payload)
    audited("create", "product", product["_id"], after=product)
    return success(product_view(product), "Product created successfully")


@router.get("/products/{ref}")
def get_product(ref: str, products: Products) -> dict:
    return success(products.get_view(ref))


@router.put("/products/{ref}")
def update_product(ref: str, payload: ProductUpdate, products: Products, audited: Audited) -> dict:
    before, after = products.update(ref, payload)
    audited("update", "product", after["_id"], before=before, after=after)
    return success(product_view(after), "Product updated successfully")


@router.delete("/products/{ref}")
def delete_product(ref: str, products: Products, audited: Audited, permanent: bool = False) -> dict:
    """Archive a product, or remove it for good with ``?permanent=true``."""
    if permanent:
        product = products.delete(ref)
        audited("delete", "product", product["_id"], before=product)
        return success(None, "Product permanently deleted")
    before, after = products.archive(ref)
    audited("archive", "product", after["_id"], before=before, after=after)
    return success(product_view(after), "Product archived")


# Orders


@router.get("/orders")
def list_orders(
    orders: Orders,
    page: Page,
    status_filter: Annotated[OrderStatus | None, Query(alias="status")] = None,
    customer_id: str | None = None,
    search: str | None = None,
) -> dict:
    items, pagination = orders.admin_list(
        page=page.page,
        limit=page.limit,
        status=status_filter,
        customer_id=customer_id,
        search=search,
    )
    return paginated([to_public(o) for o in items], pagination)


@router.get("/orders/recurring")
def list_recurring(
    recurring: RecurringOrders,
    customer_id: str | None = None,
    schedule_status: str | None = None,
) -> dict:
    templates = recurring.list_templates(customer_id=customer_id, schedule_status=schedule_status)
    return success([to_public(t) for t in templates])


@router.get("/orders/recurring/stats")
def recurring_stats(recurring: RecurringOrders) -> dict:
    return success(recurring.get_stats())


@router.post("/orders/recurring/process")
def process_recurring(recurring: RecurringOrders, audited: Audited) -> dict:
    report = recurring.process_recurring_orders()
    audited("process_recurring", "order", None, after=report.to_dict())
    return success(report.to_dict(), f"Processed {report.processed} recurring order(s)")


@router.put("/orders/recurring/{order_id}")
def update_recurring(
    order_id: str,
    payload: RecurringOrderUpdate,
    recurring: RecurringOrders,
    audited: Audited,
) -> dict:
    before, after = recurring.update_template(order_id, payload, audited.user)
    audited("update", "order", order_id, before=before, after=after)
    return success(to_public(after), "Recurring order updated")


@router.get("/orders/{order_id}")
def get_order(order_id: str, orders: Orders) -> dict:
    return success(to_public(orders.get(order_id)))


@router.put("/orders/{order_id}")
def update_order(order_id: str, payload: OrderUpdate, orders: Orders, audited: Audited) -> dict:
    before, after = orders.admin_update(order_id, payload)
    audited("update", "order", order_id, before=before, after=after)
    return success(to_public(after), "Order updated successfully")


# Customers


@router.get("/customers")
def list_customers(
    customers: Customers,
    page: Page,
    search: str | None = None,
    role: str | None = None,
    is_banned: bool | None = None,
) -> dict:
    items, pagination = customers.list_customers(
        page=page.page, limit=page.limit, search=search, role=role, is_banned=is_banned
    )
    return paginated(items, pagination)


@router.get("/customers/{customer_id}")
def get_customer(customer_id: str, customers: Customers) -> dict:
    return success(public_user(customers.get(customer_id)))


@router.put("/customers/{customer_id}")
def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    customers: Customers,
    audited: Audited,
) -> dict:
    before, after = customers.update(customer_id, payload, acting_user=audited.user)
    audited("update", "customer", customer_id, before=before, after=after)
    return success(public_user(after), "Customer updated successfully")


@router.delete("/customers/{customer_id}")
def delete_customer(customer_id: str, customers: Customers, audited: Audited) -> dict:
    customer = customers.delete(customer_id, acting_user=audited.user)
    audited("delete", "customer", customer_id, before=customer)
    return success(None, "Customer deleted successfully")


# Suppliers


@router.get("/suppliers")
def list_suppliers(
    suppliers: Suppliers,
    page: Page,
    search: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> dict:
    items, pagination = suppliers.list_suppliers(
        page=page.page, limit=page.limit, search=search, status=status_filter
    )
    return paginated(items, pagination)


@router.post("/suppliers", status_code=status.HTTP_201_CREATED)
def create_supplier(payload: SupplierCreate, suppliers: Suppliers, audited: Audited) -> dict:
    supplier = suppliers.create(payload)
    audited("create", "supplier", supplier["_id"], after=supplier)
    return success(to_public(supplier), "Supplier created successfully")


@router.get("/suppliers/{supplier_id}")
def get_supplier(supplier_id: str, suppliers: Suppliers) -> dict:
    return success(to_public(suppliers.get(supplier_id)))


@router.put("/suppliers/{supplier_id}")
def update_supplier(
    supplier_id: str,
    payload: SupplierUpdate,
    suppliers: Suppliers,
    audited: Audited,
) -> dict:
    before, after = suppliers.update(supplier_id, payload)
    audited("update", "supplier", supplier_id, before=before, after=after)
    return success(to_public(after), "Supplier updated successfully")


@router.delete("/suppliers/{supplier_id}")
def delete_supplier(supplier_id: str, suppliers: Suppliers, audited: Audited) -> dict:
    supplier = suppliers.delete(supplier_id)
    audited("delete", "supplier", supplier_id, before=supplier)
    return success(None, "Supplier deleted successfully")


# Blogs


@router.get("/blogs")
def list_blogs(
    blogs: Blogs,
    page: Page,
    search: str | None = None,
    published: bool | None = None,
) -> dict:
    items, pagination = blogs.list_all(page=page.page, limit=page.limit, search=search, published=published)
    return paginated(items, pagination)


@router.post("/blogs", status_code=status.HTTP_201_CREATED)
def create_blog(payload: BlogCreate, blogs: Blogs, audited: Audited) -> dict:
    post = blogs.create(payload, audited.user)
    audited("create", "blog", post["_id"], after=post)
    return success(to_public(post), "Blog post created successfully")


@router.get("/blogs/{blog_id}")
def get_blog(blog_id: str, blogs: Blogs) -> dict:
    return success(to_public(blogs.get(blog_id)))


@router.put("/blogs/{blog_id}")
def update_blog(blog_id: str, payload: BlogUpdate, blogs: Blogs, audited: Audited) -> dict:
    before, after = blogs.update(blog_id, payload)
    audited("update", "blog", blog_id, before=before, after=after)
    return success(to_public(after), "Blog post updated successfully")


@router.delete("/blogs/{blog_id}")
def delete_blog(blog_id: str, blogs: Blogs, audited: Audited) -> dict:
    post = blogs.soft_delete(blog_id)
    audited("delete", "blog", blog_id, before=post)
    return success(None, "Blog post deleted successfully")


# Brands


@router.get("/brands")
def list_brands(brands: Brands) -> dict:
    return success([to_public(b) for b in brands.list_brands()])


@router.post("/brands", status_code=status.HTTP_201_CREATED)
def create_brand(payload: BrandCreate, brands: Brands, audited: Audited) -> dict:
    brand = brands.create(payload)
    audited("create", "brand", brand["_id"], after=brand)
    return success(to_public(brand), "Brand created successfully")


@router.put("/brands/{brand_id}")
def update_brand(brand_id: str, payload: BrandUpdate, brands: Brands, audited: Audited) -> dict:
    before, after = brands.update(brand_id, payload)
    audited("update", "brand", brand_id, before=before, after=after)
    return success(to_public(after), "Brand updated successfully")


@router.delete("/brands/{brand_id}")
def delete_brand(brand_id: str, brands: Brands, audited: Audited) -> dict:
    brand = brands.delete(brand_id)
    audited("delete", "brand", brand_id, before=brand)
    return success(None, "Brand deleted successfully")


# Messages


@router.get("/contact-messages")
def list_contact_messages(
    messages: Messages,
    page: Page,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
) -> dict:
    items, pagination = messages.list_contact_messages(page=page.page, limit=page.limit, status=status_filter)
    return paginated([to_public(m) for m in items], pagination)


@router.post("/messages", status_code=status.HTTP_201_CREATED)
def send_message(payload: MessageCreate, messages: Messages, audited: Audited) -> dict:
    message = messages.send(audited.user, payload)
    audited("create", "message", message["_id"], after=message)
    return success(to_public(message), "Message sent successfully")


# Audit log


@router.get("/audit-logs")
def list_audit_logs(
    audit: Audit,
    page: Page,
    resource_type: str | None = None,
    user_id: str | None = None,
) -> dict:
    items, pagination = audit.list_entries(
        page=page.page, limit=page.limit, resource_type=resource_type, user_id=user_id
    )
    return paginated(items, pagination)
