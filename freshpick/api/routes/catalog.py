"""Public catalogue: products, brands, categories, blog posts and reviews."""

from __future__ import annotations

from typing import Annotated, Literal

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from freshpick.api.dependencies import Blogs, Brands, Categories, Enhancer, Page, Products, Reviews
from freshpick.api.responses import paginated, success
from freshpick.core.auth import AdminUser, CurrentUser
from freshpick.schemas.catalog import ReviewCreate
from freshpick.schemas.enhancement import ProductDetailsRequest
from freshpick.utils.documents import to_public

router = APIRouter(tags=["Catalog"])


@router.get("/products")
def list_products(
    products: Products,
    page: Page,
    search: str | None = None,
    category_id: str | None = None,
    supplier_id: str | None = None,
    min_price: Annotated[float | None, Query(ge=0)] = None,
    max_price: Annotated[float | None, Query(ge=0)] = None,
    in_stock: bool | None = None,
    sort: Literal["price-asc", "price-desc", "newest", "oldest"] = "newest",
) -> dict:
    items, pagination = products.list_products(
        page=page.page,
        limit=page.limit,
        search=search,
        category_id=category_id,
        supplier_id=supplier_id,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        sort=sort,
    )
    return paginated(items, pagination)


@router.get("/products/exists/{sku}")
def sku_exists(sku: str, products: Products) -> dict:
    return success({"sku": sku.upper(), "exists": products.sku_exists(sku)})


@router.post("/products/enhance-details")
async def enhance_product_details(
    payload: ProductDetailsRequest,
    enhancer: Enhancer,
    _admin: AdminUser,
) -> dict:
    enhanced = await enhancer.enhance(payload)
    return success(enhanced.model_dump(), "Product details enhanced")


@router.get("/products/brands")
def list_brands(brands: Brands) -> dict:
    return success([to_public(b) for b in brands.list_brands()])


@router.get("/products/brands/{brand_id}")
def get_brand(brand_id: str, brands: Brands) -> dict:
    return success(to_public(brands.get(brand_id)))


@router.get("/products/{ref}")
def get_product(ref: str, products: Products) -> dict:
    return success(products.get_view(ref))


@router.get("/categories")
def list_categories(categories: Categories) -> dict:
    return success(categories.list_active())


@router.get("/blogs")
def list_blogs(
    blogs: Blogs,
    page: Page,
    search: str | None = None,
    category: str | None = None,
    tag: str | None = None,
) -> dict:
    items, pagination = blogs.list_published(
        page=page.page,
        limit=page.limit,
        search=search,
        category=category,
        tag=tag,
    )
    return paginated(items, pagination)


@router.get("/blogs/{slug}")
def read_blog(slug: str, blogs: Blogs) -> dict:
    return success(to_public(blogs.read_by_slug(slug)))


@router.get("/reviews")
def list_reviews(product_id: str, reviews: Reviews, page: Page) -> dict:
    items, summary, pagination = reviews.list_for_product(product_id, page=page.page, limit=page.limit)
    return success({"items": items, "summary": summary, "pagination": pagination.to_dict()})


@router.post("/reviews")
def submit_review(payload: ReviewCreate, user: CurrentUser, reviews: Reviews) -> JSONResponse:
    review, created = reviews.submit(user, payload)
    body = success(review, "Review submitted successfully" if created else "Review updated successfully")
    return JSONResponse(body, status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK)
