"""Service and query-parameter dependencies for the routers."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Query

from freshpick.adapters.llm.factory import create_llm_client
from freshpick.adapters.store.base import AbstractDocumentStore
from freshpick.core.config import settings
from freshpick.core.dependencies import get_store
from freshpick.services.address_book_service import AddressBookService
from freshpick.services.audit_service import AuditService
from freshpick.services.auth_service import AuthService
from freshpick.services.bag_service import BagService
from freshpick.services.blog_service import BlogService
from freshpick.services.brand_service import BrandService
from freshpick.services.category_service import CategoryService
from freshpick.services.customer_service import CustomerService
from freshpick.services.message_service import MessageService
from freshpick.services.newsletter_service import NewsletterService
from freshpick.services.order_service import OrderService
from freshpick.services.product_enhancement_service import ProductEnhancementService
from freshpick.services.product_service import ProductService
from freshpick.services.recurring_order_service import RecurringOrderService
from freshpick.services.review_service import ReviewService
from freshpick.services.role_service import RoleService
from freshpick.services.supplier_service import SupplierService
from freshpick.services.wishlist_service import WishlistService
from freshpick.utils.pagination import normalize_page
from freshpick.utils.simple_cache import SimpleTTLCache

Store = Annotated[AbstractDocumentStore, Depends(get_store)]


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int


def get_page_params(
    page: Annotated[int | None, Query(ge=1)] = None,
    limit: Annotated[int | None, Query(ge=1)] = None,
) -> PageParams:
    page, limit = normalize_page(
        page,
        limit,
        default_limit=settings.app.default_page_size,
        max_limit=settings.app.max_page_size,
    )
    return PageParams(page=page, limit=limit)


Page = Annotated[PageParams, Depends(get_page_params)]


def get_auth_service(store: Store) -> AuthService:
    return AuthService(store)


def get_product_service(store: Store) -> ProductService:
    return ProductService(store)


def get_category_service(store: Store) -> CategoryService:
    return CategoryService(store)


def get_supplier_service(store: Store) -> SupplierService:
    return SupplierService(store)


def get_blog_service(store: Store) -> BlogService:
    return BlogService(store)


def get_bag_service(store: Store) -> BagService:
    return BagService(store)


def get_order_service(store: Store) -> OrderService:
    return OrderService(store)


def get_recurring_order_service(store: Store) -> RecurringOrderService:
    return RecurringOrderService(store)


def get_customer_service(store: Store) -> CustomerService:
    return CustomerService(store)


def get_role_service(store: Store) -> RoleService:
    return RoleService(store)


def get_newsletter_service(store: Store) -> NewsletterService:
    return NewsletterService(store)


def get_brand_service(store: Store) -> BrandService:
    return BrandService(store)


def get_review_service(store: Store) -> ReviewService:
    return ReviewService(store)


def get_wishlist_service(store: Store) -> WishlistService:
    return WishlistService(store)


def get_address_book_service(store: Store) -> AddressBookService:
    return AddressBookService(store)


def get_message_service(store: Store) -> MessageService:
    return MessageService(store)


def get_audit_service(store: Store) -> AuditService:
    return AuditService(store)


@lru_cache(maxsize=1)
def get_enhancement_service() -> ProductEnhancementService:
    """One enhancer (and cache) per process."""
    return ProductEnhancementService(
        llm=create_llm_client(),
        cache=SimpleTTLCache(ttl_seconds=3600, max_entries=1024),
    )


Auth = Annotated[AuthService, Depends(get_auth_service)]
Products = Annotated[ProductService, Depends(get_product_service)]
Categories = Annotated[CategoryService, Depends(get_category_service)]
Suppliers = Annotated[SupplierService, Depends(get_supplier_service)]
Blogs = Annotated[BlogService, Depends(get_blog_service)]
Bags = Annotated[BagService, Depends(get_bag_service)]
Orders = Annotated[OrderService, Depends(get_order_service)]
RecurringOrders = Annotated[RecurringOrderService, Depends(get_recurring_order_service)]
Customers = Annotated[CustomerService, Depends(get_customer_service)]
Roles = Annotated[RoleService, Depends(get_role_service)]
Newsletter = Annotated[NewsletterService, Depends(get_newsletter_service)]
Audit = Annotated[AuditService, Depends(get_audit_service)]
Enhancer = Annotated[ProductEnhancementService, Depends(get_enhancement_service)]
Brands = Annotated[BrandService, Depends(get_brand_service)]
Reviews = Annotated[ReviewService, Depends(get_review_service)]
Wishlists = Annotated[WishlistService, Depends(get_wishlist_service)]
AddressBook = Annotated[AddressBookService, Depends(get_address_book_service)]
Messages = Annotated[MessageService, Depends(get_message_service)]
