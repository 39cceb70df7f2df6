"""Customer bags (saved carts)."""

from __future__ import annotations

from fastapi import APIRouter, status

from freshpick.api.dependencies import Bags
from freshpick.api.responses import success
from freshpick.core.auth import CurrentUser
from freshpick.schemas.bags import BagCreate, BagItemInput, BagUpdate, ReorderRequest

router = APIRouter(prefix="/bags", tags=["Bags"])


@router.get("")
def list_bags(user: CurrentUser, bags: Bags) -> dict:
    return success(bags.list_bags(user))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_bag(payload: BagCreate, user: CurrentUser, bags: Bags) -> dict:
    return success(bags.create(user, payload), "Bag created successfully")


@router.post("/reorder", status_code=status.HTTP_201_CREATED)
def reorder(payload: ReorderRequest, user: CurrentUser, bags: Bags) -> dict:
    bag, unavailable = bags.reorder(user, payload)
    message = "Bag created from order"
    if unavailable:
        message += f"; {len(unavailable)} item(s) unavailable"
    return success({"bag": bag, "unavailable_items": unavailable}, message)


@router.get("/{bag_id}")
def get_bag(bag_id: str, user: CurrentUser, bags: Bags) -> dict:
    return success(bags.get(bag_id, user))


@router.put("/{bag_id}")
def update_bag(bag_id: str, payload: BagUpdate, user: CurrentUser, bags: Bags) -> dict:
    return success(bags.update(bag_id, user, payload), "Bag updated successfully")


@router.delete("/{bag_id}")
def delete_bag(bag_id: str, user: CurrentUser, bags: Bags) -> dict:
    bags.delete(bag_id, user)
    return success(None, "Bag deleted successfully")


@router.post("/{bag_id}/items")
def add_item(bag_id: str, payload: BagItemInput, user: CurrentUser, bags: Bags) -> dict:
    return success(bags.add_item(bag_id, user, payload), "Item added to bag")


@router.delete("/{bag_id}/items/{product_id}")
def remove_item(bag_id: str, product_id: str, user: CurrentUser, bags: Bags) -> dict:
    return success(bags.remove_item(bag_id, user, product_id), "Item removed from bag")
