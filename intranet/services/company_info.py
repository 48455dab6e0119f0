"""Company vision, mission and core values for the About page.

There is at most one ``company_info`` row. Image fields fall back to the
bundled defaults so the home slideshow always has something to show.
"""

from __future__ import annotations

from ..app import db
from ..models import CompanyInfo
from ..shared.constants import COMPANY_IMAGE_DEFAULTS, COMPANY_IMAGE_FIELDS

PLACEHOLDER_VISION = "Our Vision"
PLACEHOLDER_MISSION = "Our Mission"


def get_company_info() -> CompanyInfo | None:
    return CompanyInfo.query.order_by(CompanyInfo.id).first()


def get_company_images() -> dict:
    info = get_company_info()
    if info is None:
        return dict(COMPANY_IMAGE_DEFAULTS)
    return info.images()


def _apply_images(info: CompanyInfo, images: dict) -> None:
    # blank values keep the current image
    for field in COMPANY_IMAGE_FIELDS:
        if images.get(field):
            setattr(info, field, images[field])


def upsert_company_info(cleaned: dict, admin=None) -> CompanyInfo:
    info = get_company_info()
    if info is None:
        info = CompanyInfo()
        db.session.add(info)
    info.vision = cleaned["vision"]
    info.mission = cleaned["mission"]
    info.core_values = list(cleaned.get("core_values") or [])
    _apply_images(info, cleaned)
    info.updated_by_id = admin.id if admin else None
    db.session.commit()
    return info


def update_company_images(images: dict, admin=None) -> CompanyInfo:
    """Replace slideshow images only, creating a placeholder row if needed."""

    info = get_company_info()
    if info is None:
        info = CompanyInfo(
            vision=PLACEHOLDER_VISION, mission=PLACEHOLDER_MISSION, core_values=[]
        )
        db.session.add(info)
    _apply_images(info, images)
    info.updated_by_id = admin.id if admin else None
    db.session.commit()
    return info
