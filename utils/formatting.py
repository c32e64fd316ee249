"""Jinja filters for dates, prices and credit changes."""

from datetime import date, datetime

from services.stripe_service import format_price


def _parse_iso(value):
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def format_date(value):
    """'2025-01-05T10:00:00Z' -> 'Jan 5, 2025'."""
    if value is None or value == "":
        return ""
    if isinstance(value, (datetime, date)):
        parsed = value
    else:
        try:
            parsed = _parse_iso(str(value))
        except ValueError:
            return str(value)
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def signed(value):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return str(value)
    return f"+{number}" if number >= 0 else str(number)


def register_filters(app):
    app.add_template_filter(format_date, "format_date")
    app.add_template_filter(signed, "signed")

    @app.template_filter("format_price")
    def _format_price(cents, currency=None):
        return format_price(cents, currency or app.config.get("CREDIT_CURRENCY", "CAD"))
