import logging
import os

import requests

logger = logging.getLogger("intranet.sms")

DEFAULT_BASE_URL = "https://api.smsonlinegh.com/v5/message/sms/send"
REQUEST_TIMEOUT = 15
REJECTED_SENDER_LABEL = "DS_REJECTED_SENDER_UNREGISTERED"

OTP_TEMPLATE = (
    "Your ARL Intranet verification code is: {code}. "
    "Valid for 5 minutes. Do not share this code."
)


def _sms_config() -> dict:
    return {
        "api_key": os.getenv("SMS_API_KEY"),
        "sender": os.getenv("SMS_SENDER_ID", "ARL"),
        "base_url": os.getenv("SMS_BASE_URL", DEFAULT_BASE_URL),
    }


def _rejected_destinations(payload: dict) -> list[str]:
    data = (payload or {}).get("data") or {}
    rejected = []
    for dest in data.get("destinations") or []:
        status = dest.get("status") or {}
        if status.get("label") == REJECTED_SENDER_LABEL:
            rejected.append(dest.get("to") or "")
    return rejected


def send_sms(phone: str, message: str) -> dict:
    """Send a text through the gateway. Returns ``{"success", "error"}``."""

    cfg = _sms_config()
    if not cfg["api_key"]:
        logger.info("[SMS-OUT] mode=stub to=%s result=stub", phone)
        logger.info("[SMS-STUB-BODY] %s", message)
        return {"success": True, "error": None}

    body = {
        "sender": cfg["sender"],
        "type": 0,
        "destinations": [phone],
        "text": message,
    }
    headers = {
        "Authorization": f"key {cfg['api_key']}",
        "Accept": "application/json",
    }
    try:
        response = requests.post(
            cfg["base_url"],
            json=body,
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.warning("[SMS-OUT] mode=real to=%s result=error detail=%s", phone, e)
        return {"success": False, "error": str(e)}

    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if _rejected_destinations(payload):
        logger.warning("[SMS-OUT] mode=real to=%s result=sender_unregistered", phone)
        return {"success": False, "error": "Failed to send SMS: Unregistered sender"}

    if not response.ok:
        logger.warning(
            "[SMS-OUT] mode=real to=%s result=http_%s", phone, response.status_code
        )
        return {"success": False, "error": payload.get("message") or "Failed to send SMS"}

    logger.info("[SMS-OUT] mode=real to=%s result=sent", phone)
    return {"success": True, "error": None}


def send_otp_sms(phone: str, code: str) -> dict:
    return send_sms(phone, OTP_TEMPLATE.format(code=code))
