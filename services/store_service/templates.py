"""
Order notification templates (email and WhatsApp).

Every builder takes the order payload produced by
``notifications.build_order_payload``: plain values only, so jobs can be
rendered in the worker without a database session.
"""

from dataclasses import dataclass
from html import escape

from libs.common.config import get_settings
from libs.common.currency import format_cents


@dataclass(frozen=True)
class BuiltEmail:
    subject: str
    body: str
    html_body: str


def _is_collection(payload: dict) -> bool:
    return payload.get("fulfilment_type") == "COLLECTION"


def tracking_link(token: str) -> str:
    return f"{get_settings().BASE_URL}/track/{token}"


def _wrap_html(inner: str, footer: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: system-ui, -apple-system, 'Segoe UI', sans-serif; color: #0f172a; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 24px; background: #ffffff; border-radius: 12px; }}
        .code-box {{ padding: 12px 14px; background: #0f172a; border-radius: 10px; color: #e5e7eb; text-align: center; }}
        .code {{ font-size: 26px; letter-spacing: 0.3em; font-weight: 700; }}
        .muted {{ font-size: 12px; color: #64748b; }}
        .footer {{ margin-top: 20px; font-size: 11px; color: #94a3b8; }}
    </style>
</head>
<body>
    <div class="container">
        {inner}
        <p class="footer">{footer}</p>
    </div>
</body>
</html>
"""


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------


def build_order_confirmation_email(payload: dict) -> BuiltEmail:
    """Sent after checkout: items, total, code and tracking link."""
    brand = get_settings().BRAND_NAME
    short_ref = payload["short_ref"]
    customer_name = payload.get("customer_name") or "there"
    store_name = payload["store_name"]
    link = tracking_link(payload["tracking_token"])

    if _is_collection(payload):
        subject = f"Your {brand} collection order #{short_ref}"
        how_to = (
            "You chose collection. When you arrive, give them the code below "
            "to confirm your order."
        )
    else:
        subject = f"Your {brand} delivery order #{short_ref}"
        how_to = (
            "You chose delivery. When the driver arrives, they will ask for "
            "the code below to confirm your order."
        )

    items = payload.get("items", [])
    items_text = "\n".join(
        f"  - {item['quantity']} x {item['name']} - {format_cents(item['total_cents'])}"
        for item in items
    )
    items_html = "".join(
        f"<li>{item['quantity']} &times; {escape(item['name'])} "
        f"<strong>{format_cents(item['total_cents'])}</strong></li>"
        for item in items
    )
    total = format_cents(payload["total_cents"])

    body = f"""Hi {customer_name},

Your order at {store_name} has been received.
Order reference: #{short_ref}

Your code: {payload['pickup_code']}
{how_to}

Items:
{items_text}

Total: {total}

Track your order: {link}

{brand} - This email is for confirmation only. Please do not reply.
"""

    inner = f"""
        <h1>Thank you for your order, {escape(customer_name)}</h1>
        <p>Your order at <strong>{escape(store_name)}</strong> has been received.</p>
        <p class="muted">Order reference: #{short_ref}</p>
        <div class="code-box">
            <p class="muted">Your code</p>
            <p class="code">{escape(payload['pickup_code'])}</p>
            <p>{how_to}</p>
        </div>
        <p><a href="{escape(link)}">Track your order</a></p>
        <ul>{items_html}</ul>
        <p>Total: <strong>{total}</strong></p>
"""
    html_body = _wrap_html(
        inner, f"{escape(brand)} · This email is for confirmation only."
    )
    return BuiltEmail(subject=subject, body=body, html_body=html_body)


def build_order_ready_email(payload: dict) -> BuiltEmail:
    short_ref = payload["short_ref"]
    customer_name = payload.get("customer_name") or "there"
    store_name = payload["store_name"]

    if _is_collection(payload):
        subject = f"Your order #{short_ref} is ready for collection"
        message = (
            f"Your order at {store_name} is ready for collection. When you arrive "
            "at the store, give them this code to confirm your order:"
        )
    else:
        subject = f"Your order #{short_ref} is out for delivery"
        message = (
            f"Your order at {store_name} is on its way. When the driver arrives, "
            "they will ask for this code to confirm your order:"
        )

    body = f"""Hi {customer_name},

{message}

{payload['pickup_code']}

Order reference: #{short_ref}
"""
    inner = f"""
        <h1>Hi {escape(customer_name)}, your order is ready</h1>
        <p>{escape(message)}</p>
        <div class="code-box"><p class="code">{escape(payload['pickup_code'])}</p></div>
        <p class="muted">Order reference: #{short_ref}</p>
"""
    html_body = _wrap_html(
        inner, f"{escape(get_settings().BRAND_NAME)} · For information only."
    )
    return BuiltEmail(subject=subject, body=body, html_body=html_body)


# ---------------------------------------------------------------------------
# WhatsApp
# ---------------------------------------------------------------------------


def build_order_ready_whatsapp(payload: dict) -> str:
    brand = get_settings().BRAND_NAME
    lines = [f"Hi {payload.get('customer_name') or 'there'},"]

    if payload.get("status") == "OUT_FOR_DELIVERY":
        lines.append(
            f"Your order {payload['short_ref']} from {payload['store_name']} "
            "is *out for delivery*."
        )
    else:
        lines.append(
            f"Your order {payload['short_ref']} at {payload['store_name']} "
            "is now *ready for collection*."
        )
        if _is_collection(payload):
            lines.append(f"Your pickup code is: *{payload['pickup_code']}*.")

    lines.append("")
    lines.append(f"Thank you for ordering with {brand}.")
    return "\n".join(lines)


def build_order_confirmation_whatsapp(payload: dict) -> str:
    brand = get_settings().BRAND_NAME
    lines = [
        f"Hi {payload.get('customer_name') or 'there'},",
        f"We received your order {payload['short_ref']} at {payload['store_name']}.",
        f"Total: {format_cents(payload['total_cents'])}",
        f"Your code: *{payload['pickup_code']}*",
        f"Track it here: {tracking_link(payload['tracking_token'])}",
        "",
        f"Thank you for ordering with {brand}.",
    ]
    return "\n".join(lines)
