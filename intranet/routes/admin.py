from __future__ import annotations

from flask import Blueprint, render_template, request

from ..shared.rbac import admin_required
from ..services import dashboard
from ..services.app_links import get_app_link_stats
from ..services.news import get_news_stats
from ..services.policies import get_policy_stats
from ..services.toolbox_talks import get_talk_stats

bp = Blueprint("admin", __name__, url_prefix="/admin")


@bp.get("/", endpoint="dashboard")
@admin_required
def dashboard_view(current_user):
    return render_template(
        "admin/dashboard.html",
        counts=dashboard.get_dashboard_counts(),
        timeline=dashboard.get_activity_timeline(),
        distribution=dashboard.get_content_distribution(),
        recent_activity=dashboard.get_recent_activity(),
        news_stats=get_news_stats(),
        policy_stats=get_policy_stats(),
        talk_stats=get_talk_stats(),
        app_stats=get_app_link_stats(),
    )


@bp.get("/activity")
@admin_required
def activity(current_user):
    action = request.args.get("action") or None
    page = max(request.args.get("page", 1, type=int) or 1, 1)
    pagination = dashboard.list_activity(action=action, page=page)
    return render_template(
        "admin/activity.html",
        pagination=pagination,
        entries=pagination.items,
        actions=dashboard.get_activity_actions(),
        action=action,
    )
