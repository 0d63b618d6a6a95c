import io
import logging
from uuid import uuid4

import click
from flask import Flask, Response, current_app, redirect, render_template, request, session, url_for

from amort_calc.advisor import AdvisorError, PaymentAdvisor
from amort_calc.config import Settings, configure_logging
from amort_calc.data_models import validate_config
from amort_calc.engine import build_schedule
from amort_calc.formatter import format_currency
from amort_calc.main import build_config_from_options
from amort_calc.serialization import ScheduleFormatError, load_and_rebuild, write_schedule_csv
from amort_calc.summary import page_count, paginate, summarize, yearly_balance_points
from amort_calc_web.scenario_store import create_store_from_env

logger = logging.getLogger(__name__)

DEFAULT_FORM = {
    "principal": "100000",
    "rate": "5",
    "term": "30",
    "start_date": "",
    "extra_payment": "0",
    "modifications": "",
    "one_time_payments": "",
}


# Balance chart geometry, in SVG user units
CHART_HEIGHT = 160
BAR_WIDTH = 14
BAR_GAP = 4


class FormError(ValueError):
    """Raised when submitted form values cannot produce a schedule."""


def parse_form_list(value: str) -> list[str]:
    """Parse a comma or newline separated list of entries from a form field.

    Returns a list of trimmed strings, skipping any empty entries.
    """
    if not value:
        return []
    parts = [p.strip() for p in value.replace("\n", ",").split(",")]
    return [p for p in parts if p]


def _form_values(form) -> dict:
    return {key: form.get(key, default) for key, default in DEFAULT_FORM.items()}


def _config_to_form(config) -> dict:
    return {
        "principal": f"{config.principal:g}",
        "rate": f"{config.annual_interest_rate_percent:g}",
        "term": f"{config.term_years:g}",
        "start_date": config.start_date.isoformat() if config.start_date else "",
        "extra_payment": f"{config.recurring_extra_payment:g}",
        "modifications": "\n".join(
            f"{p.start_month}:{p.end_month}:{p.amount:g}" for p in config.modification_periods
        ),
        "one_time_payments": "",
    }


def _form_to_config(form):
    try:
        rate = float(form.get("rate", 0.0))
        term = float(form.get("term", 0))
        config = build_config_from_options(
            form.get("principal", "").strip(),
            rate,
            term,
            form.get("start_date", "").strip() or None,
            form.get("extra_payment", "").strip() or None,
            tuple(parse_form_list(form.get("modifications", ""))),
            tuple(parse_form_list(form.get("one_time_payments", ""))),
        )
    except (ValueError, click.ClickException) as exc:
        raise FormError(str(exc)) from exc
    errors = validate_config(config)
    if errors:
        raise FormError("; ".join(errors))
    return config


def _run_schedule(config):
    schedule = build_schedule(config)
    if not schedule:
        raise FormError("Could not generate schedule. Please check your inputs.")
    return schedule, summarize(config, schedule)


def _render(form_values, schedule=None, summary=None, error=None, suggestion=None, page=1):
    user_token = _ensure_user_token()
    store = _store()
    size = Settings.SCHEDULE_PAGE_SIZE
    pages = page_count(schedule or [], size)
    page = min(max(page, 1), pages) if pages else 1
    chart_width, balance_bars = _balance_bars(schedule or [])
    return render_template(
        "index.html",
        form=form_values,
        summary=summary,
        rows=paginate(schedule or [], page, size),
        page=page,
        pages=pages,
        balance_bars=balance_bars,
        chart_width=chart_width,
        chart_height=CHART_HEIGHT,
        breakdown=_breakdown(summary),
        error=error,
        suggestion=suggestion,
        saved_scenarios=store.list_scenarios(user_token),
        currency=format_currency,
    )


def _balance_bars(schedule):
    """Lay out one SVG bar per loan year, scaled to the largest balance."""
    points = yearly_balance_points(schedule)
    top = max((balance for _, balance in points), default=0.0) or 1.0
    bars = []
    for index, (year, balance) in enumerate(points):
        height = round(CHART_HEIGHT * balance / top, 1)
        bars.append(
            {
                "year": year,
                "balance": balance,
                "x": index * (BAR_WIDTH + BAR_GAP),
                "y": round(CHART_HEIGHT - height, 1),
                "width": BAR_WIDTH,
                "height": height,
            }
        )
    return len(points) * (BAR_WIDTH + BAR_GAP), bars


def _breakdown(summary):
    """Principal vs. interest shares of everything paid."""
    if summary is None:
        return None
    total = summary.total_principal + summary.total_interest
    principal_pct = round(100 * summary.total_principal / total, 1) if total else 0.0
    return {
        "principal": summary.total_principal,
        "interest": summary.total_interest,
        "principal_pct": principal_pct,
        "interest_pct": round(100 - principal_pct, 1) if total else 0.0,
    }


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _store():
    return current_app.extensions["scenario_store"]


def _advisor():
    return current_app.extensions["payment_advisor"]


def index():
    if request.method == "GET":
        return _render(dict(DEFAULT_FORM))

    form_values = _form_values(request.form)
    action = request.form.get("action", "run")
    page = request.form.get("page", "1")
    page = int(page) if page.isdigit() else 1
    try:
        config = _form_to_config(request.form)
        if action == "suggest":
            try:
                suggestion = _advisor().suggest(config)
            except AdvisorError as exc:
                logger.warning("Suggestion failed: %s", exc)
                return _render(form_values, error=f"Suggestion failed: {exc}")
            return _render(form_values, suggestion=suggestion)
        schedule, summary = _run_schedule(config)
    except FormError as exc:
        return _render(form_values, error=str(exc))

    if action == "save":
        name = request.form.get("scenario_name", "").strip() or "Scenario"
        _store().save_scenario(_ensure_user_token(), uuid4().hex, name, config, summary.to_dict())
    return _render(form_values, schedule, summary, page=page)


def export_csv():
    try:
        config = _form_to_config(request.form)
        schedule, _ = _run_schedule(config)
    except FormError as exc:
        return _render(_form_values(request.form), error=str(exc))
    buffer = io.StringIO()
    write_schedule_csv(buffer, config, schedule)
    return Response(
        buffer.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=amortization_schedule.csv"},
    )


def import_csv():
    upload = request.files.get("schedule_file")
    if upload is None or not upload.filename:
        return _render(dict(DEFAULT_FORM), error="Choose a CSV file to import.")
    try:
        text = upload.read().decode("utf-8")
        config, schedule = load_and_rebuild(io.StringIO(text, newline=""))
    except (UnicodeDecodeError, ScheduleFormatError) as exc:
        return _render(dict(DEFAULT_FORM), error=f"Could not import file: {exc}")
    form_values = _config_to_form(config)
    if not schedule:
        return _render(form_values, error="Could not generate schedule. Please check your inputs.")
    return _render(form_values, schedule, summarize(config, schedule))


def load_scenario(scenario_id: str):
    config = _store().load_config(session.get("user_token"), scenario_id)
    if config is None:
        return _render(dict(DEFAULT_FORM), error="Saved scenario not found.")
    form_values = _config_to_form(config)
    try:
        schedule, summary = _run_schedule(config)
    except FormError as exc:
        return _render(form_values, error=str(exc))
    return _render(form_values, schedule, summary)


def remove_scenario(scenario_id: str):
    _store().remove_scenario(session.get("user_token"), scenario_id)
    return redirect(url_for("index"))


def clear_scenarios():
    _store().clear_scenarios(session.get("user_token"))
    return redirect(url_for("index"))


def create_app(store=None, advisor=None) -> Flask:
    configure_logging()
    app = Flask(__name__)
    app.secret_key = Settings.FLASK_SECRET_KEY
    app.extensions["scenario_store"] = store or create_store_from_env(Settings.SCENARIO_DATABASE_URL)
    app.extensions["payment_advisor"] = advisor or PaymentAdvisor()

    app.add_url_rule("/", "index", index, methods=["GET", "POST"])
    app.add_url_rule("/export.csv", "export_csv", export_csv, methods=["POST"])
    app.add_url_rule("/import", "import_csv", import_csv, methods=["POST"])
    app.add_url_rule("/scenarios/<scenario_id>/load", "load_scenario", load_scenario, methods=["POST"])
    app.add_url_rule("/scenarios/<scenario_id>/delete", "remove_scenario", remove_scenario, methods=["POST"])
    app.add_url_rule("/scenarios/clear", "clear_scenarios", clear_scenarios, methods=["POST"])
    return app


if __name__ == "__main__":
    print("Starting amortization planner web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
