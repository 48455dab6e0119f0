from __future__ import annotations

from sqlalchemy import func

from ..app import db
from ..models import ExecutiveMessage


def _ordered(query):
    return query.order_by(ExecutiveMessage.order, ExecutiveMessage.created_at.desc())


def get_active_messages() -> list[ExecutiveMessage]:
    return _ordered(
        ExecutiveMessage.query.filter(ExecutiveMessage.is_active.is_(True))
    ).all()


def list_messages() -> list[ExecutiveMessage]:
    return _ordered(ExecutiveMessage.query).all()


def next_order() -> int:
    highest = db.session.query(func.max(ExecutiveMessage.order)).scalar()
    return 0 if highest is None else highest + 1


def apply_message_data(message: ExecutiveMessage, cleaned: dict) -> ExecutiveMessage:
    message.name = cleaned["name"]
    message.title = cleaned["title"]
    if cleaned.get("photo"):
        message.photo = cleaned["photo"]
    message.message = cleaned["message"]
    message.is_active = cleaned.get("is_active", True)
    if cleaned.get("order") is not None:
        message.order = cleaned["order"]
    return message


def reorder_messages(ordered_ids: list[int]) -> None:
    for index, message_id in enumerate(ordered_ids):
        ExecutiveMessage.query.filter(ExecutiveMessage.id == message_id).update(
            {"order": index}, synchronize_session=False
        )
    db.session.commit()
