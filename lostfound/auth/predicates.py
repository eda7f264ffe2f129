"""Authorization predicates.

Pure functions over an ``EffectiveIdentity``; no I/O.  The admin bypass
lives in ``is_admin`` and applies to the any-of check and the item check.
``has_permission`` is a plain membership test.
"""

from lostfound.auth.identity import EffectiveIdentity
from lostfound.auth.permissions import (
    DELETE_ALL_ITEMS,
    DELETE_OWN_ITEMS,
    DELIVER_ITEMS,
    EDIT_ALL_ITEMS,
    EDIT_OWN_ITEMS,
    REVERT_DELIVERED_STATUS,
    VIEW_ALL_ITEMS,
    VIEW_OWN_ITEMS,
)


# action → (all-items permission, own-items permission or None)
ITEM_ACTIONS: dict[str, tuple[str, str | None]] = {
    "view": (VIEW_ALL_ITEMS, VIEW_OWN_ITEMS),
    "edit": (EDIT_ALL_ITEMS, EDIT_OWN_ITEMS),
    "delete": (DELETE_ALL_ITEMS, DELETE_OWN_ITEMS),
    "deliver": (DELIVER_ITEMS, None),
    "revert": (REVERT_DELIVERED_STATUS, None),
}


def is_admin(identity: EffectiveIdentity) -> bool:
    return identity.is_admin


def has_permission(identity: EffectiveIdentity, name: str) -> bool:
    """True iff ``name`` is in the reconciled grant set; no admin bypass."""
    return name in identity.permissions


def has_any_permission(identity: EffectiveIdentity, names) -> bool:
    """True when the identity holds at least one of ``names``.

    Admins pass for any input, an empty ``names`` included.
    """
    if is_admin(identity):
        return True
    return any(name in identity.permissions for name in names)


def owns(identity: EffectiveIdentity, owner_id: str | None) -> bool:
    return owner_id is not None and owner_id == identity.account_id


def can_act_on_item(identity: EffectiveIdentity, action: str, owner_id: str | None) -> bool:
    """Own-vs-all check for an item action.

    admin OR ``<action>_all`` OR (``<action>_own`` AND the caller found the item).
    """
    try:
        all_tier, own_tier = ITEM_ACTIONS[action]
    except KeyError:
        raise ValueError(f"Unknown item action: {action}")

    if is_admin(identity) or has_permission(identity, all_tier):
        return True
    return own_tier is not None and has_permission(identity, own_tier) and owns(identity, owner_id)
