from __future__ import annotations

from flask import (
    Blueprint,
    abort,
    flash,
    redirect,
    render_template,
    request,
    session as flask_session,
    url_for,
)

from ..app import db
from ..models import News
from ..forms.content_forms import validate_news_form
from ..shared.constants import CONTENT_STATUSES, DEFAULT_PAGE_SIZE, NEWS_CATEGORY_LABELS
from ..shared.rbac import admin_required
from ..services.activity import log_activity
from ..services.news import apply_news_data, get_news_stats, toggle_news_status
from ..services.uploads import delete_file

bp = Blueprint("admin_news", __name__, url_prefix="/admin/news")


def _get_or_404(news_id: int) -> News:
    item = db.session.get(News, news_id)
    if not item:
        abort(404)
    return item


@bp.get("/")
@admin_required
def list_news(current_user):
    status = request.args.get("status") or None
    category = request.args.get("category") or None
    search = (request.args.get("q") or "").strip()
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    query = News.query
    if status in CONTENT_STATUSES:
        query = query.filter(News.status == status)
    if category in NEWS_CATEGORY_LABELS:
        query = query.filter(News.category == category)
    if search:
        query = query.filter(News.title.ilike(f"%{search}%"))
    pagination = query.order_by(News.created_at.desc()).paginate(
        page=page, per_page=DEFAULT_PAGE_SIZE, error_out=False
    )
    return render_template(
        "admin/news/list.html",
        pagination=pagination,
        items=pagination.items,
        stats=get_news_stats(),
        categories=NEWS_CATEGORY_LABELS,
        statuses=CONTENT_STATUSES,
        status=status,
        category=category,
        search=search,
    )


@bp.get("/new")
@admin_required
def new_news(current_user):
    return render_template(
        "admin/news/form.html",
        item=None,
        categories=NEWS_CATEGORY_LABELS,
        statuses=CONTENT_STATUSES,
    )


@bp.post("/new")
@admin_required
def create_news(current_user):
    errors, cleaned = validate_news_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_news.new_news"))
    item = News(author_id=current_user.id, author_name=current_user.name)
    apply_news_data(item, cleaned)
    db.session.add(item)
    db.session.commit()
    log_activity(current_user, "create", "news", item.id, {"title": item.title})
    flash("News created", "success")
    return redirect(url_for("admin_news.list_news"))


@bp.get("/<int:news_id>/edit")
@admin_required
def edit_news(news_id: int, current_user):
    item = _get_or_404(news_id)
    return render_template(
        "admin/news/form.html",
        item=item,
        categories=NEWS_CATEGORY_LABELS,
        statuses=CONTENT_STATUSES,
    )


@bp.post("/<int:news_id>/edit")
@admin_required
def update_news(news_id: int, current_user):
    item = _get_or_404(news_id)
    errors, cleaned = validate_news_form(request.form)
    if errors:
        for err in errors:
            flash(err, "error")
        return redirect(url_for("admin_news.edit_news", news_id=news_id))
    old_image = item.featured_image
    apply_news_data(item, cleaned)
    db.session.commit()
    if old_image and old_image != item.featured_image:
        delete_file(old_image)
    log_activity(current_user, "update", "news", item.id, {"title": item.title})
    flash("News updated", "success")
    return redirect(url_for("admin_news.list_news"))


@bp.post("/<int:news_id>/toggle-status")
@admin_required
def toggle_status(news_id: int, current_user):
    item = _get_or_404(news_id)
    status = toggle_news_status(item)
    log_activity(current_user, "status_change", "news", item.id, {"status": status})
    flash("News published" if status == "published" else "News moved to draft", "success")
    return redirect(url_for("admin_news.list_news"))


@bp.post("/<int:news_id>/toggle-featured")
@admin_required
def toggle_featured(news_id: int, current_user):
    item = _get_or_404(news_id)
    item.is_featured = not item.is_featured
    db.session.commit()
    log_activity(current_user, "update", "news", item.id, {"featured": item.is_featured})
    flash("News featured" if item.is_featured else "News unfeatured", "success")
    return redirect(url_for("admin_news.list_news"))


@bp.post("/<int:news_id>/delete")
@admin_required
def delete_news(news_id: int, current_user):
    if request.form.get("csrf_token") != flask_session.get("_csrf_token"):
        abort(400)
    item = _get_or_404(news_id)
    title = item.title
    image = item.featured_image
    db.session.delete(item)
    db.session.commit()
    if image:
        delete_file(image)
    log_activity(current_user, "delete", "news", news_id, {"title": title})
    flash("News deleted", "success")
    return redirect(url_for("admin_news.list_news"))
