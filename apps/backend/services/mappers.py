"""
Row -> wire DTO mapping.

Rows come back from Supabase with snake_case columns; the front-ends speak
camelCase. Nothing here touches the database.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

ADDRESS_UNAVAILABLE = "Address Unavailable"

DEFAULT_STYLE: Dict[str, Any] = {
    "primaryColor": None,
    "secondaryColor": None,
    "logoUrl": None,
    "backgroundImageUrl": None,
    "punchIcons": None,
}


def merchant_to_dto(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "name": row.get("name"),
        "address": row.get("address") or "",
        "slug": row.get("slug"),
        "logoUrl": row.get("logo_url") or "",
        "createdAt": row.get("created_at"),
    }


def merchant_user_to_dto(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "merchantId": row["merchant_id"],
        "login": row["login"],
        "role": row.get("role"),
        "isActive": bool(row.get("is_active", True)),
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
    }


def loyalty_program_to_dto(row: Dict[str, Any], merchant: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "merchantId": row["merchant_id"],
        "name": row["name"],
        "description": row.get("description"),
        "requiredPunches": row["required_punches"],
        "rewardDescription": row["reward_description"],
        "isActive": bool(row.get("is_active", True)),
        "merchant": merchant_to_dto(merchant) if merchant else None,
        "createdAt": row.get("created_at"),
    }


def style_to_dto(row: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not row:
        return dict(DEFAULT_STYLE)
    return {
        "primaryColor": row.get("primary_color"),
        "secondaryColor": row.get("secondary_color"),
        "logoUrl": row.get("logo_url"),
        "backgroundImageUrl": row.get("background_image_url"),
        "punchIcons": row.get("punch_icons"),
    }


def punch_card_to_dto(
    card: Dict[str, Any],
    program: Dict[str, Any],
    merchant: Dict[str, Any],
    styles: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "id": card["id"],
        "userId": card["user_id"],
        "loyaltyProgramId": card["loyalty_program_id"],
        "shopName": merchant.get("name"),
        "shopAddress": merchant.get("address") or ADDRESS_UNAVAILABLE,
        "currentPunches": card.get("current_punches", 0),
        "totalPunches": program["required_punches"],
        "status": card["status"],
        "createdAt": card.get("created_at"),
        "lastPunchAt": card.get("last_punch_at"),
        "styles": styles if styles is not None else dict(DEFAULT_STYLE),
    }


def bundle_program_to_dto(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "merchantId": row["merchant_id"],
        "name": row["name"],
        "itemName": row["item_name"],
        "description": row.get("description"),
        "quantityPresets": row.get("quantity_presets") or [],
        "isActive": bool(row.get("is_active", True)),
        "createdAt": row.get("created_at"),
    }


def bundle_to_dto(bundle: Dict[str, Any], program: Dict[str, Any], merchant: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": bundle["id"],
        "userId": bundle["user_id"],
        "bundleProgram": {
            "id": program["id"],
            "name": program["name"],
            "itemName": program["item_name"],
            "description": program.get("description"),
            "merchantName": merchant.get("name"),
        },
        "originalQuantity": bundle["original_quantity"],
        "remainingQuantity": bundle["remaining_quantity"],
        "expiresAt": bundle.get("expires_at"),
        "createdAt": bundle.get("created_at"),
        "lastUsedAt": bundle.get("last_used_at"),
    }


def benefit_card_to_dto(
    card: Dict[str, Any], merchant: Dict[str, Any], styles: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    return {
        "id": card["id"],
        "userId": card["user_id"],
        "merchant": merchant_to_dto(merchant),
        "itemName": card["item_name"],
        "expiresAt": card.get("expires_at"),
        "createdAt": card.get("created_at"),
        "styles": styles if styles is not None else dict(DEFAULT_STYLE),
    }
