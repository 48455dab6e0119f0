import re

GHANA_PHONE_RE = re.compile(r"^\+233[2-5]\d{8}$")
_STRIP_RE = re.compile(r"[\s\-()]")


def format_ghana_phone(raw: str | None) -> str:
    """Map local (0XX...) and international forms onto +233XXXXXXXXX."""
    phone = _STRIP_RE.sub("", raw or "")
    if phone.startswith("+233"):
        return phone
    if phone.startswith("233"):
        return "+" + phone
    if phone.startswith("0"):
        return "+233" + phone[1:]
    return phone


def is_valid_ghana_phone(raw: str | None) -> bool:
    return bool(GHANA_PHONE_RE.match(format_ghana_phone(raw)))


def mask_phone(phone: str | None) -> str:
    if not phone or len(phone) < 7:
        return phone or ""
    return f"{phone[:4]}****{phone[-3:]}"
