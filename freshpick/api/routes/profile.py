"""The signed-in customer's wishlist and saved addresses."""

from __future__ import annotations

from fastapi import APIRouter, status

from freshpick.api.dependencies import AddressBook, Wishlists
from freshpick.api.responses import success
from freshpick.core.auth import CurrentUser
from freshpick.schemas.profile import SavedAddressCreate, SavedAddressUpdate, WishlistAdd

router = APIRouter(tags=["Profile"])


@router.get("/wishlist")
def get_wishlist(user: CurrentUser, wishlists: Wishlists) -> dict:
    return success(wishlists.list_products(user))


@router.post("/wishlist")
def add_to_wishlist(payload: WishlistAdd, user: CurrentUser, wishlists: Wishlists) -> dict:
    return success(wishlists.add(user, payload.product), "Product added to wishlist")


@router.delete("/wishlist/{product_id}")
def remove_from_wishlist(product_id: str, user: CurrentUser, wishlists: Wishlists) -> dict:
    return success(wishlists.remove(user, product_id), "Product removed from wishlist")


@router.get("/profile/addresses")
def list_addresses(user: CurrentUser, address_book: AddressBook) -> dict:
    return success(address_book.list_addresses(user))


@router.post("/profile/addresses", status_code=status.HTTP_201_CREATED)
def add_address(payload: SavedAddressCreate, user: CurrentUser, address_book: AddressBook) -> dict:
    return success(address_book.add(user, payload), "Address added successfully")


@router.put("/profile/addresses/{address_id}")
def update_address(
    address_id: str,
    payload: SavedAddressUpdate,
    user: CurrentUser,
    address_book: AddressBook,
) -> dict:
    return success(address_book.update(user, address_id, payload), "Address updated successfully")


@router.delete("/profile/addresses/{address_id}")
def delete_address(address_id: str, user: CurrentUser, address_book: AddressBook) -> dict:
    return success(address_book.delete(user, address_id), "Address deleted successfully")
