import json
import logging
import os
import smtplib
import sys
from email.message import EmailMessage
from typing import Sequence

from flask import render_template

from .shared.mail_utils import normalize_recipients

logger = logging.getLogger("intranet.mailer")
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)

OTP_EXPIRY_MINUTES = 5


def _stringify_envelope(recipients: Sequence[str]) -> str:
    return json.dumps(list(recipients))


def _smtp_config() -> dict:
    return {
        "host": os.getenv("SMTP_HOST"),
        "port": os.getenv("SMTP_PORT"),
        "user": os.getenv("SMTP_USER"),
        "password": os.getenv("SMTP_PASS"),
        "from_addr": os.getenv("SMTP_FROM_DEFAULT"),
        "from_name": os.getenv("SMTP_FROM_NAME", "ARL Intranet"),
    }


def is_configured() -> bool:
    cfg = _smtp_config()
    return bool(cfg["host"] and cfg["port"] and cfg["from_addr"])


def send(
    recipients: Sequence[str] | str | None,
    subject: str,
    body: str,
    html: str | None = None,
):
    cfg = _smtp_config()
    host = cfg["host"]
    port = cfg["port"]
    from_addr = cfg["from_addr"]
    from_name = cfg["from_name"]

    envelope, header = normalize_recipients(recipients)
    mode = "real"
    if not host or not port or not from_addr:
        mode = "stub"
        logger.info(
            "[MAIL-OUT] mode=%s to_header=%s envelope=%s subject=\"%s\" host=%s result=stub",
            mode,
            header,
            _stringify_envelope(envelope),
            subject,
            host,
        )
        logger.info("[MAIL-STUB-BODY] %s", body)
        return {"ok": False, "detail": "stub: missing config"}

    if not envelope:
        logger.warning(
            "[MAIL-NO-RECIPIENTS] subject=\"%s\" host=%s", subject, host
        )
        return {"ok": False, "detail": "no valid recipients"}

    try:
        port_int = int(port)
        if port_int == 465:
            server = smtplib.SMTP_SSL(host, port_int)
        else:
            server = smtplib.SMTP(host, port_int)
            if port_int == 587:
                server.starttls()
        if cfg["user"] and cfg["password"]:
            server.login(cfg["user"], cfg["password"])
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["To"] = header
        msg["From"] = f"{from_name} <{from_addr}>" if from_name else from_addr
        msg.set_content(body)
        if html:
            msg.add_alternative(html, subtype="html")
        server.sendmail(from_addr, envelope, msg.as_string())
        server.quit()
        logger.info(
            "[MAIL-OUT] mode=%s to_header=%s envelope=%s subject=\"%s\" host=%s result=sent",
            mode,
            header,
            _stringify_envelope(envelope),
            subject,
            host,
        )
        return {"ok": True, "detail": "sent"}
    except Exception as e:
        logger.info(
            "[MAIL-OUT] mode=%s to_header=%s envelope=%s subject=\"%s\" host=%s result=%s",
            mode,
            header,
            _stringify_envelope(envelope),
            subject,
            host,
            e,
        )
        return {"ok": False, "detail": str(e)}


def send_otp_email(email: str, code: str) -> dict:
    """Send a login code; stub mode counts as delivered so dev logins work."""

    context = {"code": code, "expiry_minutes": OTP_EXPIRY_MINUTES}
    body = render_template("email/otp.txt", **context)
    html = render_template("email/otp.html", **context)
    result = send(email, "Your ARL Intranet login code", body, html=html)
    if not result["ok"] and result["detail"].startswith("stub"):
        return {"ok": True, "detail": "stub"}
    return result


def send_password_reset_email(email: str, reset_url: str) -> dict:
    body = render_template("email/password_reset.txt", reset_url=reset_url)
    return send(email, "Reset your ARL Intranet admin password", body)
