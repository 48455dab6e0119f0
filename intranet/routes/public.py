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
from ..models import Alert
from ..shared.constants import LOCATION_LABELS, NEWS_CATEGORIES, NEWS_CATEGORY_LABELS
from ..shared.rbac import user_required
from ..services import alerts as alert_service
from ..services import (
    app_links,
    company_info,
    directory,
    executive_messages,
    it_tips,
    news,
    policies,
    suggestions,
    toolbox_talks,
)

bp = Blueprint("public", __name__)

SUGGESTION_STAMPS_KEY = "suggestion_stamps"


def _page() -> int:
    return max(request.args.get("page", 1, type=int) or 1, 1)


@bp.get("/")
def index():
    recent = news.get_recent_news(5)
    featured = news.get_featured_news(5, exclude_ids=[item.id for item in recent])
    return render_template(
        "public/index.html",
        recent_news=recent,
        featured_news=featured,
        alerts=alert_service.get_current_alerts(limit=3),
        talk=toolbox_talks.get_this_weeks_talk(),
        top_apps=app_links.get_top_apps(),
        executive_messages=executive_messages.get_active_messages(),
        it_tips=it_tips.get_active_tips(),
        company_images=company_info.get_company_images(),
    )


@bp.get("/about")
def about():
    return render_template("public/about.html", info=company_info.get_company_info())


@bp.get("/news")
def news_list():
    category = request.args.get("category") or None
    if category not in NEWS_CATEGORIES:
        category = None
    search = (request.args.get("q") or "").strip()
    pagination = news.list_published_news(category=category, search=search, page=_page())
    return render_template(
        "public/news_list.html",
        pagination=pagination,
        items=pagination.items,
        category=category,
        categories=NEWS_CATEGORY_LABELS,
        search=search,
    )


@bp.get("/news/<slug>")
def news_detail(slug: str):
    item = news.get_published_by_slug(slug)
    if item is None:
        abort(404)
    news.record_view(item)
    return render_template(
        "public/news_detail.html",
        item=item,
        related=news.get_related_news(item),
    )


@bp.get("/directory", endpoint="directory")
def directory_page():
    search = (request.args.get("q") or "").strip()
    department_id = request.args.get("department", type=int)
    location = request.args.get("location") or None
    result = directory.search_directory(
        search=search, department_id=department_id, location=location
    )
    return render_template(
        "public/directory.html",
        result=result,
        departments=directory.get_departments(active_only=True),
        locations=LOCATION_LABELS,
        search=search,
        department_id=department_id,
        location=location,
    )


@bp.get("/apps")
def apps():
    return render_template("public/apps.html", apps=app_links.get_active_apps())


@bp.get("/apps/<int:app_id>/go")
def app_go(app_id: int):
    link = app_links.record_click(app_id)
    if link is None:
        abort(404)
    return redirect(link.url)


@bp.get("/safety")
def safety():
    talk = toolbox_talks.get_this_weeks_talk()
    return render_template(
        "public/safety.html",
        alerts=alert_service.get_current_alerts(),
        talk=talk,
        recent_talks=toolbox_talks.get_recent_talks(5, exclude_id=talk.id if talk else None),
        week_info=toolbox_talks.get_current_week_info(),
    )


@bp.get("/alerts")
def alerts():
    return render_template("public/alerts.html", alerts=alert_service.get_current_alerts())


@bp.get("/alerts/<int:alert_id>")
def alert_detail(alert_id: int):
    alert = db.session.get(Alert, alert_id)
    if alert is None:
        abort(404)
    return render_template("public/alert_detail.html", alert=alert)


@bp.get("/toolbox-talk")
def toolbox_talk():
    year = request.args.get("year", type=int)
    month = request.args.get("month", type=int)
    search = (request.args.get("q") or "").strip()
    pagination = toolbox_talks.list_talks(
        status="published", year=year, month=month, search=search, page=_page()
    )
    return render_template(
        "public/toolbox_talk.html",
        talk=toolbox_talks.get_this_weeks_talk(),
        week_info=toolbox_talks.get_current_week_info(),
        pagination=pagination,
        archive=toolbox_talks.get_archive_months(),
        year=year,
        month=month,
        search=search,
    )


@bp.get("/toolbox-talk/<slug>")
def talk_detail(slug: str):
    talk = toolbox_talks.get_published_talk(slug)
    if talk is None:
        abort(404)
    toolbox_talks.record_talk_view(talk)
    return render_template(
        "public/talk_detail.html",
        talk=talk,
        adjacent=toolbox_talks.get_adjacent_talks(talk.scheduled_date),
    )


@bp.get("/policies", endpoint="policies")
def policies_page():
    category_slug = request.args.get("category") or None
    search = (request.args.get("q") or "").strip()
    pagination = policies.list_policies(
        status="published", category_slug=category_slug, search=search, page=_page()
    )
    return render_template(
        "public/policies.html",
        categories=policies.get_categories_with_counts(),
        featured=policies.get_featured_policies(),
        pagination=pagination,
        category_slug=category_slug,
        search=search,
    )


@bp.get("/policies/<slug>")
def policy_detail(slug: str):
    policy = policies.get_published_policy(slug)
    if policy is None:
        abort(404)
    policies.record_policy_view(policy)
    return render_template("public/policy_detail.html", policy=policy)


@bp.route("/suggestions", methods=["GET", "POST"], endpoint="suggestions")
def suggestions_page():
    if request.method == "POST":
        result = suggestions.submit_suggestion(
            request.form.get("content"),
            request.form.get("category_id"),
            flask_session.get(SUGGESTION_STAMPS_KEY),
        )
        flask_session[SUGGESTION_STAMPS_KEY] = result["stamps"]
        flash(result["message"], "success" if result["success"] else "error")
        return redirect(url_for("public.suggestions"))
    return render_template(
        "public/suggestions.html",
        categories=suggestions.get_active_categories(),
    )


@bp.get("/account")
@user_required
def account(current_user):
    return render_template("public/account.html", user=current_user)
