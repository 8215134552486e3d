import logging
import os
from datetime import datetime
from typing import Any, List, Mapping, Optional

from flask import Flask, jsonify, render_template, request

from warranty_tracker.alerts import ALERT_KEYS, DEFAULT_URGENT_DAYS, DEFAULT_WINDOW_DAYS, find_alerts, urgent_alerts
from warranty_tracker.data_models import Report, WarrantyBasis
from warranty_tracker.engine import compute_all, summarize
from warranty_tracker.reports import basis_for_report, count_active_warranties, parse_reports
from warranty_tracker.utils import parse_date
from warranty_tracker_web.alert_store import AlertLogStore, create_store_from_env

logger = logging.getLogger(__name__)

PERIOD_TITLES = {
    "manufacturing": "Manufacturing defect warranty",
    "replacement": "Replacement warranty",
    "maintenance1": "Maintenance cycle 1",
    "maintenance2": "Maintenance cycle 2",
}


def _parse_now(value: Optional[str]):
    """Evaluation instant from a request value, or the system clock when absent."""
    if value:
        return parse_date(str(value))
    return datetime.now()


def _basis_from_payload(payload: Mapping[str, Any]) -> WarrantyBasis:
    now = _parse_now(payload.get("now"))
    if payload.get("report") is not None:
        return basis_for_report(Report.from_dict(payload["report"]), now)
    inspection_date = payload.get("inspection_date")
    if not inspection_date:
        raise ValueError("Either 'report' or 'inspection_date' is required")
    return WarrantyBasis.create(parse_date(str(inspection_date)), now)


def _reports_from_payload(payload: Mapping[str, Any]) -> List[Report]:
    raw_reports = payload.get("reports")
    if raw_reports is None:
        return []
    if not isinstance(raw_reports, list):
        raise ValueError("'reports' must be a list of report objects")
    return parse_reports(raw_reports)


def _window_days(value: Any, default: int) -> int:
    if value is None:
        return default
    # bool is an int subclass but never a meaningful window
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"'window_days' must be an integer; got {value!r}")
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"'window_days' must be an integer; got {value!r}") from exc


def _int_setting(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return int(raw)


def create_app(database_url: Optional[str] = None, store: Optional[AlertLogStore] = None) -> Flask:
    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    app.config["ALERT_WINDOW_DAYS"] = _int_setting("WARRANTY_ALERT_WINDOW_DAYS", DEFAULT_WINDOW_DAYS)
    app.config["URGENT_DAYS"] = _int_setting("WARRANTY_URGENT_DAYS", DEFAULT_URGENT_DAYS)
    alert_store = store or create_store_from_env(database_url or os.environ.get("WARRANTY_DATABASE_URL"))

    @app.route("/", methods=["GET", "POST"])
    def index():
        schedule = None
        summary = None
        error = None
        inspection_date = ""
        now_value = ""

        if request.method == "POST":
            inspection_date = request.form.get("inspection_date", "").strip()
            now_value = request.form.get("now", "").strip()
            try:
                basis = _basis_from_payload({"inspection_date": inspection_date, "now": now_value})
                schedule = compute_all(basis)
                summary = summarize(schedule)
            except ValueError as exc:
                error = str(exc)

        return render_template(
            "index.html",
            schedule=schedule,
            summary=summary,
            error=error,
            inspection_date=inspection_date,
            now_value=now_value,
            period_titles=PERIOD_TITLES,
        )

    @app.post("/api/warranty")
    def warranty_api():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400
        try:
            schedule = compute_all(_basis_from_payload(payload))
        except ValueError as exc:
            logger.info("Rejected warranty request: %s", exc)
            return jsonify({"error": str(exc)}), 400
        return jsonify({"periods": schedule.to_dict(), "summary": summarize(schedule)})

    @app.post("/api/alerts")
    def alerts_api():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400
        try:
            reports = _reports_from_payload(payload)
            now = _parse_now(payload.get("now"))
            window_days = _window_days(payload.get("window_days"), app.config["ALERT_WINDOW_DAYS"])
            sent = alert_store.sent_keys(r.id for r in reports)
            found = find_alerts(reports, now, window_days, sent=sent)
        except ValueError as exc:
            logger.info("Rejected alerts request: %s", exc)
            return jsonify({"error": str(exc)}), 400
        if payload.get("urgent"):
            found = urgent_alerts(found, app.config["URGENT_DAYS"])
        return jsonify({"alerts": [a.to_dict() for a in found]})

    @app.post("/api/warranty/active-count")
    def active_count_api():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400
        try:
            reports = _reports_from_payload(payload)
            now = _parse_now(payload.get("now"))
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        return jsonify({"active_warranties": count_active_warranties(reports, now), "reports": len(reports)})

    @app.get("/api/alerts/<report_id>/<alert_key>")
    def alert_status(report_id: str, alert_key: str):
        if alert_key not in ALERT_KEYS.values():
            return jsonify({"error": f"Unknown alert key: {alert_key}"}), 400
        return jsonify({"report_id": report_id, "alert_key": alert_key, "is_sent": alert_store.is_sent(report_id, alert_key)})

    @app.post("/api/alerts/<report_id>/<alert_key>/sent")
    def mark_alert_sent(report_id: str, alert_key: str):
        if alert_key not in ALERT_KEYS.values():
            return jsonify({"error": f"Unknown alert key: {alert_key}"}), 400
        sent_at = alert_store.mark_sent(report_id, alert_key)
        return jsonify({"report_id": report_id, "alert_key": alert_key, "sent_at": sent_at.isoformat()})

    @app.delete("/api/alerts/<report_id>")
    def clear_alerts(report_id: str):
        # a re-inspected report starts new maintenance cycles, so its reminders are due again
        alert_store.clear(report_id)
        return jsonify({"report_id": report_id, "cleared": True})

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting Warranty Tracker web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
