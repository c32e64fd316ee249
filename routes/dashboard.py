"""
Dashboard routes: overview, summary history, summary detail and transcript upload.
"""

import logging

from flask import Blueprint, current_app, flash, jsonify, redirect, render_template, request, url_for

from models import DashboardData, SummaryDetail, SummaryPage, SummaryStatus
from services import token_store
from services.backend_client import get_backend_client
from services.errors import BackendError
from services.summary_poller import SummaryPoller
from utils.auth import api_token_required

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


def _page_arg():
    try:
        return max(int(request.args.get("page", 1)), 1)
    except (TypeError, ValueError):
        return 1


@dashboard_bp.route("")
@api_token_required
def index():
    try:
        data = DashboardData.from_api(get_backend_client().get_dashboard())
    except BackendError as e:
        logger.error(f"Failed to fetch dashboard data: {e}")
        return render_template("dashboard/index.html", dashboard=None, error=e.message)

    token_store.update_credits(data.user.credits)
    return render_template(
        "dashboard/index.html",
        dashboard=data,
        profile=data.user,
        credit_stats=data.credit_stats,
        error=None,
    )


@dashboard_bp.route("/summaries")
@api_token_required
def summaries():
    page = _page_arg()
    limit = current_app.config.get("SUMMARY_PAGE_SIZE", 10)
    offset = (page - 1) * limit
    try:
        history = SummaryPage.from_api(get_backend_client().get_history(limit=limit, offset=offset), limit, offset)
    except BackendError as e:
        logger.error(f"Failed to fetch summary history: {e}")
        return render_template("dashboard/summaries.html", history=None, error=e.message)
    return render_template("dashboard/summaries.html", history=history, error=None)


@dashboard_bp.route("/summaries/<summary_id>")
@api_token_required
def summary_detail(summary_id):
    try:
        summary = SummaryDetail.from_api(get_backend_client().get_summary(summary_id))
    except BackendError as e:
        logger.error(f"Failed to fetch summary {summary_id}: {e}")
        if e.status_code == 404:
            return render_template("dashboard/summary_detail.html", summary=None, error="Summary not found"), 404
        return render_template("dashboard/summary_detail.html", summary=None, error=e.message)

    return render_template(
        "dashboard/summary_detail.html",
        summary=summary,
        error=None,
        poll_interval_ms=int(current_app.config["SUMMARY_POLL_INTERVAL"] * 1000),
    )


@dashboard_bp.route("/summaries/<summary_id>/status")
@api_token_required
def summary_status(summary_id):
    """JSON status for the polling script; ``wait=1`` long-polls until settled."""
    wait = request.args.get("wait") in ("1", "true")
    client = get_backend_client()
    poller = SummaryPoller(
        client.get_summary,
        interval=current_app.config["SUMMARY_POLL_INTERVAL"],
        timeout=current_app.config["SUMMARY_LONG_POLL_TIMEOUT"] if wait else 0,
    )
    try:
        summary = poller.wait(summary_id)
    except BackendError as e:
        status_code = e.status_code if e.status_code and e.status_code >= 400 else 502
        return jsonify({"success": False, "error": e.message}), status_code

    return jsonify({
        "success": True,
        "id": summary.id or summary_id,
        "status": summary.status,
        "has_summary": summary.has_summary,
        "settled": summary.is_settled,
    })


@dashboard_bp.route("/summaries/<summary_id>/generate", methods=["POST"])
@api_token_required
def generate_summary(summary_id):
    custom_prompt = request.form.get("custom_prompt", "").strip() or None
    try:
        get_backend_client().create_summary(summary_id, custom_prompt=custom_prompt)
    except BackendError as e:
        logger.warning(f"Summary request for {summary_id} failed: {e}")
        flash(e.message, "error")
    else:
        flash("Summary requested. It will appear here as soon as it is ready.", "success")
    return redirect(url_for("dashboard.summary_detail", summary_id=summary_id))


@dashboard_bp.route("/meetings/new", methods=["GET", "POST"])
@api_token_required
def new_meeting():
    if request.method == "POST":
        title = request.form.get("title", "").strip()
        transcript_text = request.form.get("transcript_text", "").strip()
        should_summarize = request.form.get("should_summarize") == "on"
        duration_raw = request.form.get("duration_minutes", "").strip()

        if not transcript_text:
            flash("Transcript text is required", "error")
            return render_template("dashboard/new_meeting.html", title=title)

        duration = None
        if duration_raw:
            try:
                duration = float(duration_raw)
            except ValueError:
                flash("Duration must be a number of minutes", "error")
                return render_template("dashboard/new_meeting.html", title=title, transcript_text=transcript_text)

        metadata = {"meeting_title": title} if title else None
        if duration is not None:
            metadata = dict(metadata or {}, duration_minutes=duration)

        try:
            created = get_backend_client().process_transcript(
                transcript_text,
                title=title or None,
                meeting_metadata=metadata,
                meeting_duration_minutes=duration,
                should_summarize=should_summarize,
            )
        except BackendError as e:
            logger.error(f"Transcript upload failed: {e}")
            flash(e.message, "error")
            return render_template("dashboard/new_meeting.html", title=title, transcript_text=transcript_text)

        created = created if isinstance(created, dict) else {}
        new_id = created.get("id") or created.get("transcript_id") or created.get("summary_id")
        if should_summarize:
            flash("Meeting uploaded. Your summary is being generated.", "success")
        else:
            flash("Meeting uploaded.", "success")
        if new_id:
            return redirect(url_for("dashboard.summary_detail", summary_id=new_id))
        return redirect(url_for("dashboard.summaries"))

    return render_template("dashboard/new_meeting.html")


@dashboard_bp.app_template_global()
def summary_badge_class(status):
    return {
        SummaryStatus.COMPLETED: "badge-success",
        SummaryStatus.FAILED: "badge-danger",
        SummaryStatus.NOT_REQUESTED: "badge-muted",
    }.get(status, "badge-warning")
