"""Media uploads to Cloudinary through its REST API.

Every upload lands under the ``ARL Intranet/<subdir>`` folder. Callers get
``{"success", "url", "type", "thumbnail", "error"}`` back and never an
exception for an expected failure (bad type, too large, transport error).
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
import time

import requests

logger = logging.getLogger("intranet.upload")

API_BASE = "https://api.cloudinary.com/v1_1"
ROOT_FOLDER = "ARL Intranet"
REQUEST_TIMEOUT = 120

MB = 1024 * 1024
MAX_IMAGE_SIZE = 5 * MB
MAX_VIDEO_SIZE = 100 * MB
MAX_AUDIO_SIZE = 20 * MB
MAX_PDF_SIZE = 20 * MB
MAX_DOCUMENT_SIZE = 50 * MB

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
ALLOWED_VIDEO_TYPES = ("video/mp4", "video/webm", "video/ogg", "video/quicktime")
ALLOWED_AUDIO_TYPES = ("audio/mpeg", "audio/mp3", "audio/wav", "audio/ogg", "audio/webm")
ALLOWED_DOCUMENT_TYPES = ("application/pdf",)

_PUBLIC_ID_RE = re.compile(r"/upload/(?:v\d+/)?(.+)\.[^.]+$")
_UNSAFE_NAME_RE = re.compile(r"[^a-zA-Z0-9_-]")
_EXTENSION_RE = re.compile(r"\.[^/.]+$")


def _config() -> dict:
    return {
        "cloud_name": os.getenv("CLOUDINARY_CLOUD_NAME"),
        "api_key": os.getenv("CLOUDINARY_API_KEY"),
        "api_secret": os.getenv("CLOUDINARY_API_SECRET"),
    }


def is_configured() -> bool:
    cfg = _config()
    return all(cfg.values())


def sign_params(params: dict, secret: str) -> str:
    """SHA-1 of ``k=v`` pairs sorted by key, joined with ``&``, plus the secret."""
    to_sign = "&".join(
        f"{key}={params[key]}" for key in sorted(params) if params[key] not in (None, "")
    )
    return hashlib.sha1(f"{to_sign}{secret}".encode("utf-8")).hexdigest()


def make_public_id(filename: str, now_ms: int | None = None) -> str:
    base = (filename or "file").split(".")[0]
    base = _UNSAFE_NAME_RE.sub("_", base) or "file"
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{base}_{stamp}"


def video_thumbnail(url: str) -> str:
    return _EXTENSION_RE.sub(".jpg", url)


def _failure(error: str) -> dict:
    return {"success": False, "url": None, "type": None, "thumbnail": None, "error": error}


def _read(file) -> bytes:
    data = file.read()
    try:
        file.seek(0)
    except (AttributeError, OSError):
        pass
    return data


def _size_label(limit: int) -> str:
    return f"{limit // MB}MB"


def upload_bytes(data: bytes, filename: str, subdir: str, resource_type: str) -> dict:
    """Signed upload of raw bytes. ``resource_type`` is image, video or raw."""

    cfg = _config()
    if not all(cfg.values()):
        logger.warning("[UPLOAD-FAIL] reason=not_configured file=%s", filename)
        return _failure("File uploads are not configured")

    folder = f"{ROOT_FOLDER}/{subdir}" if subdir else ROOT_FOLDER
    params = {
        "folder": folder,
        "overwrite": "true",
        "public_id": make_public_id(filename),
        "timestamp": str(int(time.time())),
    }
    params["signature"] = sign_params(params, cfg["api_secret"])
    params["api_key"] = cfg["api_key"]
    endpoint = f"{API_BASE}/{cfg['cloud_name']}/{resource_type}/upload"
    try:
        response = requests.post(
            endpoint,
            data=params,
            files={"file": (filename, data)},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.warning("[UPLOAD-FAIL] file=%s detail=%s", filename, e)
        return _failure(str(e))

    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if not response.ok or not payload.get("secure_url"):
        detail = (payload.get("error") or {}).get("message") or f"HTTP {response.status_code}"
        logger.warning("[UPLOAD-FAIL] file=%s detail=%s", filename, detail)
        return _failure(detail)

    url = payload["secure_url"]
    kind = "raw"
    if payload.get("resource_type") == "image":
        kind = "image"
    elif payload.get("resource_type") == "video":
        kind = "video"
    logger.info("[UPLOAD] file=%s type=%s public_id=%s", filename, kind, payload.get("public_id"))
    return {
        "success": True,
        "url": url,
        "public_id": payload.get("public_id"),
        "type": kind,
        "thumbnail": video_thumbnail(url) if kind == "video" else None,
        "error": None,
    }


def _checked_upload(file, allowed, limit, label) -> tuple[dict | None, bytes]:
    mimetype = getattr(file, "mimetype", None) or ""
    if mimetype not in allowed:
        return _failure(f"Invalid {label} type. Allowed: {', '.join(allowed)}"), b""
    data = _read(file)
    if len(data) > limit:
        return _failure(f"{label.capitalize()} too large. Maximum size: {_size_label(limit)}"), b""
    return None, data


def upload_image(file, subdir: str = "photos") -> dict:
    error, data = _checked_upload(file, ALLOWED_IMAGE_TYPES, MAX_IMAGE_SIZE, "image")
    if error:
        return error
    result = upload_bytes(data, file.filename, subdir, "image")
    if result["success"]:
        result["type"] = "image"
    return result


def upload_video(file, subdir: str = "videos") -> dict:
    error, data = _checked_upload(file, ALLOWED_VIDEO_TYPES, MAX_VIDEO_SIZE, "video")
    if error:
        return error
    result = upload_bytes(data, file.filename, subdir, "video")
    if result["success"]:
        result["type"] = "video"
    return result


def upload_audio(file, subdir: str = "audio") -> dict:
    # Cloudinary keeps audio under the video resource type
    error, data = _checked_upload(file, ALLOWED_AUDIO_TYPES, MAX_AUDIO_SIZE, "audio")
    if error:
        return error
    result = upload_bytes(data, file.filename, subdir, "video")
    if result["success"]:
        result["type"] = "audio"
        result["thumbnail"] = None
    return result


def upload_pdf(file, subdir: str = "policies") -> dict:
    mimetype = getattr(file, "mimetype", None) or ""
    if mimetype not in ALLOWED_DOCUMENT_TYPES:
        return _failure("Invalid file type. Only PDF files are allowed.")
    data = _read(file)
    if len(data) > MAX_PDF_SIZE:
        return _failure(f"File too large. Maximum size: {_size_label(MAX_PDF_SIZE)}")
    result = upload_bytes(data, file.filename, subdir, "raw")
    if result["success"]:
        result["type"] = "pdf"
    return result


def upload_document(file, subdir: str = "documents") -> dict:
    """PDF with the larger document allowance, for safety documents."""
    mimetype = getattr(file, "mimetype", None) or ""
    if mimetype not in ALLOWED_DOCUMENT_TYPES:
        return _failure("Invalid file type. Only PDF files are allowed.")
    data = _read(file)
    if len(data) > MAX_DOCUMENT_SIZE:
        return _failure(f"File too large. Maximum size: {_size_label(MAX_DOCUMENT_SIZE)}")
    result = upload_bytes(data, file.filename, subdir, "raw")
    if result["success"]:
        result["type"] = "pdf"
    return result


def get_media_type(mimetype: str | None) -> str | None:
    if mimetype in ALLOWED_IMAGE_TYPES:
        return "image"
    if mimetype in ALLOWED_VIDEO_TYPES:
        return "video"
    if mimetype in ALLOWED_AUDIO_TYPES:
        return "audio"
    if mimetype in ALLOWED_DOCUMENT_TYPES:
        return "pdf"
    return None


def upload_media(file, subdir: str | None = None) -> dict:
    """Dispatch on the file's MIME type."""
    kind = get_media_type(getattr(file, "mimetype", None))
    if kind == "image":
        return upload_image(file, subdir or "photos")
    if kind == "video":
        return upload_video(file, subdir or "videos")
    if kind == "audio":
        return upload_audio(file, subdir or "audio")
    if kind == "pdf":
        return upload_document(file, subdir or "documents")
    return _failure("Unsupported file type")


def _destroy(public_id: str, resource_type: str) -> bool:
    cfg = _config()
    if not all(cfg.values()):
        logger.warning("[UPLOAD-FAIL] reason=not_configured delete=%s", public_id)
        return False
    params = {"public_id": public_id, "timestamp": str(int(time.time()))}
    params["signature"] = sign_params(params, cfg["api_secret"])
    params["api_key"] = cfg["api_key"]
    endpoint = f"{API_BASE}/{cfg['cloud_name']}/{resource_type}/destroy"
    try:
        response = requests.post(endpoint, data=params, timeout=REQUEST_TIMEOUT)
        payload = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning("[UPLOAD-FAIL] delete=%s detail=%s", public_id, e)
        return False
    ok = payload.get("result") == "ok"
    logger.info("[UPLOAD] delete=%s type=%s result=%s", public_id, resource_type, payload.get("result"))
    return ok


def delete_by_url(url: str | None) -> bool:
    """Remove a Cloudinary asset by its delivery URL.

    URLs that are not on Cloudinary count as deleted so callers can drop
    local references without special cases.
    """

    if not url:
        return True
    if "cloudinary.com" not in url:
        logger.info("[UPLOAD] delete skipped non_cloudinary url=%s", url)
        return True
    match = _PUBLIC_ID_RE.search(url)
    if not match:
        logger.warning("[UPLOAD-FAIL] delete unparseable url=%s", url)
        return False
    resource_type = "image"
    if "/video/upload/" in url:
        resource_type = "video"
    elif "/raw/upload/" in url:
        resource_type = "raw"
    return _destroy(match.group(1), resource_type)


def delete_file(url: str | None) -> bool:
    return delete_by_url(url)
