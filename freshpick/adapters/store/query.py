"""MongoDB query and update semantics for plain Python documents.

Supported filters: field equality (including membership in arrays), dotted
paths through embedded documents and arrays, ``$eq $ne $gt $gte $lt $lte
$in $nin $exists $regex $options $elemMatch $size``, and the logical
``$and $or $nor``.

Supported updates: ``$set $unset $inc $push ($each) $addToSet $pull``.
"""

from __future__ import annotations

import re
from functools import cmp_to_key
from typing import Any

from freshpick.adapters.store.base import Document, Filter, SortSpec, Update

_MISSING = object()


def _lookup(value: Any, parts: list[str]) -> list[Any]:
    """Resolve a dotted path, fanning out over arrays like MongoDB does."""
    if not parts:
        return [value]
    head, rest = parts[0], parts[1:]
    if isinstance(value, dict):
        if head not in value:
            return []
        return _lookup(value[head], rest)
    if isinstance(value, list):
        if head.isdigit():
            index = int(head)
            return _lookup(value[index], rest) if index < len(value) else []
        resolved: list[Any] = []
        for item in value:
            if isinstance(item, (dict, list)):
                resolved.extend(_lookup(item, parts))
        return resolved
    return []


def get_values(document: Document, path: str) -> list[Any]:
    return _lookup(document, path.split("."))


def _candidates(values: list[Any]) -> list[Any]:
    """Values an operator compares against: each value plus array members."""
    if not values:
        return [None]
    out: list[Any] = []
    for value in values:
        out.append(value)
        if isinstance(value, list):
            out.extend(value)
    return out


def _compare(left: Any, right: Any) -> int | None:
    if left is None or right is None:
        return None
    if isinstance(left, bool) != isinstance(right, bool):
        return None
    try:
        if left < right:
            return -1
        if left > right:
            return 1
        return 0
    except TypeError:
        return None


def _regex(pattern: Any, options: str = "") -> re.Pattern[str]:
    if isinstance(pattern, re.Pattern):
        return pattern
    flags = 0
    if "i" in options:
        flags |= re.IGNORECASE
    if "m" in options:
        flags |= re.MULTILINE
    if "s" in options:
        flags |= re.DOTALL
    return re.compile(pattern, flags)


def _is_operator_dict(condition: Any) -> bool:
    return (
        isinstance(condition, dict)
        and bool(condition)
        and all(isinstance(k, str) and k.startswith("$") for k in condition)
    )


def _match_operators(values: list[Any], condition: dict[str, Any]) -> bool:
    candidates = _candidates(values)
    for operator, operand in condition.items():
        if operator == "$eq":
            if not any(c == operand for c in candidates):
                return False
        elif operator == "$ne":
            if any(c == operand for c in candidates):
                return False
        elif operator in ("$gt", "$gte", "$lt", "$lte"):
            wanted = {"$gt": (1,), "$gte": (0, 1), "$lt": (-1,), "$lte": (-1, 0)}[operator]
            if not any(_compare(c, operand) in wanted for c in candidates):
                return False
        elif operator == "$in":
            if not any(_in(c, operand) for c in candidates):
                return False
        elif operator == "$nin":
            if any(_in(c, operand) for c in candidates):
                return False
        elif operator == "$exists":
            if bool(values) != bool(operand):
                return False
        elif operator == "$regex":
            pattern = _regex(operand, condition.get("$options", ""))
            if not any(isinstance(c, str) and pattern.search(c) for c in candidates):
                return False
        elif operator == "$options":
            continue
        elif operator == "$elemMatch":
            if not any(
                isinstance(value, list) and any(_elem_matches(item, operand) for item in value)
                for value in values
            ):
                return False
        elif operator == "$size":
            if not any(isinstance(value, list) and len(value) == operand for value in values):
                return False
        elif operator == "$not":
            if _match_condition(values, operand):
                return False
        else:
            raise ValueError(f"Unsupported query operator: {operator}")
    return True


def _in(candidate: Any, operand: list[Any]) -> bool:
    for option in operand:
        if isinstance(option, re.Pattern):
            if isinstance(candidate, str) and option.search(candidate):
                return True
        elif candidate == option:
            return True
    return False


def _elem_matches(item: Any, condition: Any) -> bool:
    if _is_operator_dict(condition):
        return _match_operators([item], condition)
    if isinstance(item, dict) and isinstance(condition, dict):
        return matches(item, condition)
    return item == condition


def _match_condition(values: list[Any], condition: Any) -> bool:
    if _is_operator_dict(condition):
        return _match_operators(values, condition)
    if isinstance(condition, re.Pattern):
        return any(isinstance(c, str) and condition.search(c) for c in _candidates(values))
    return any(c == condition for c in _candidates(values))


def matches(document: Document, filter: Filter | None) -> bool:
    """Return True when ``document`` satisfies ``filter``."""
    if not filter:
        return True
    for key, condition in filter.items():
        if key == "$and":
            if not all(matches(document, sub) for sub in condition):
                return False
        elif key == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
        elif key == "$nor":
            if any(matches(document, sub) for sub in condition):
                return False
        elif key.startswith("$"):
            raise ValueError(f"Unsupported top-level operator: {key}")
        elif not _match_condition(get_values(document, key), condition):
            return False
    return True


def _parent(document: Document, path: str, *, create: bool) -> tuple[Any, str]:
    parts = path.split(".")
    node: Any = document
    for part in parts[:-1]:
        if isinstance(node, list) and part.isdigit():
            node = node[int(part)]
            continue
        child = node.get(part, _MISSING)
        if child is _MISSING or child is None:
            if not create:
                return None, parts[-1]
            child = {}
            node[part] = child
        node = child
    return node, parts[-1]


def _get(document: Document, path: str) -> Any:
    node, leaf = _parent(document, path, create=False)
    if isinstance(node, dict):
        return node.get(leaf, _MISSING)
    if isinstance(node, list) and leaf.isdigit() and int(leaf) < len(node):
        return node[int(leaf)]
    return _MISSING


def _set(document: Document, path: str, value: Any) -> None:
    node, leaf = _parent(document, path, create=True)
    if isinstance(node, list):
        node[int(leaf)] = value
    else:
        node[leaf] = value


def _pull_matches(item: Any, condition: Any) -> bool:
    if _is_operator_dict(condition):
        return _match_operators([item], condition)
    if isinstance(condition, dict) and isinstance(item, dict):
        return matches(item, condition)
    return item == condition


def apply_update(document: Document, update: Update) -> None:
    """Mutate ``document`` in place according to ``update``."""
    for operator, fields in update.items():
        if not operator.startswith("$"):
            raise ValueError("Update documents must only contain operators")
        for path, value in fields.items():
            if operator == "$set":
                _set(document, path, value)
            elif operator == "$unset":
                node, leaf = _parent(document, path, create=False)
                if isinstance(node, dict):
                    node.pop(leaf, None)
            elif operator == "$inc":
                current = _get(document, path)
                _set(document, path, (0 if current is _MISSING or current is None else current) + value)
            elif operator in ("$push", "$addToSet"):
                current = _get(document, path)
                items = list(current) if isinstance(current, list) else []
                new_items = value["$each"] if isinstance(value, dict) and "$each" in value else [value]
                for item in new_items:
                    if operator == "$addToSet" and item in items:
                        continue
                    items.append(item)
                _set(document, path, items)
            elif operator == "$pull":
                current = _get(document, path)
                if isinstance(current, list):
                    _set(document, path, [item for item in current if not _pull_matches(item, value)])
            else:
                raise ValueError(f"Unsupported update operator: {operator}")


def _sort_value(document: Document, field: str) -> Any:
    values = get_values(document, field)
    return values[0] if values else None


def _cmp_values(left: Any, right: Any) -> int:
    # Missing and null sort first, as in MongoDB ascending order.
    if left is None and right is None:
        return 0
    if left is None:
        return -1
    if right is None:
        return 1
    result = _compare(left, right)
    if result is None:
        return _compare(str(left), str(right)) or 0
    return result


def sort_documents(documents: list[Document], sort: SortSpec | None) -> list[Document]:
    if not sort:
        return documents

    def compare(a: Document, b: Document) -> int:
        for field, direction in sort:
            result = _cmp_values(_sort_value(a, field), _sort_value(b, field))
            if result:
                return result if direction >= 0 else -result
        return 0

    return sorted(documents, key=cmp_to_key(compare))
