# app/utils/email_service.py

from html import escape
from typing import Any
import logging

import resend

from app.core.config import get_settings

log = logging.getLogger(__name__)


def send_order_confirmation_email(
    to_email: str,
    customer_name: str,
    items_summary: list[dict[str, Any]],
    order_id: str,
    order_total: float = 0.00,
) -> dict[str, Any]:
    """
    Send the buyer a confirmation once their payment has completed.

    Args:
        to_email: Buyer's e-mail address
        customer_name: Buyer's display name
        items_summary: List of dicts with 'name', 'qty', 'price' and 'total' keys
        order_id: Order ID for reference
        order_total: Amount charged

    Returns:
        dict with 'success' (bool) and 'message' (str)
    """
    settings = get_settings()

    if not settings.resend_api_key:
        return {"success": False, "message": "RESEND API key not configured"}

    if not settings.from_email:
        return {"success": False, "message": "From email not configured"}

    if not to_email:
        return {"success": False, "message": "Customer email is missing"}

    html_content = _build_order_email_html(
        customer_name=customer_name,
        items_summary=items_summary,
        order_id=order_id,
        order_total=order_total,
    )

    try:
        # Set API key (this is a global setting in resend library)
        resend.api_key = settings.resend_api_key

        params = {
            "from": settings.from_email,
            "to": [to_email],
            "subject": f"Your order #{order_id[:8]} is confirmed",
            "html": html_content,
        }
        response = resend.Emails.send(params)
        log.info("order email sent: order=%s to=%s", order_id, to_email)
        return {"success": True, "message": f"Email sent (id: {response.get('id', 'unknown')})"}

    except Exception as e:
        log.warning("order email failed: order=%s error=%s", order_id, e)
        return {"success": False, "message": f"Failed to send email: {e}"}


def _build_order_email_html(
    customer_name: str,
    items_summary: list[dict[str, Any]],
    order_id: str,
    order_total: float,
) -> str:
    rows = "".join(
        f"<tr><td>{escape(item['name'])}</td><td>{item['qty']}</td>"
        f"<td>${item['price']:.2f}</td><td>${item['total']:.2f}</td></tr>"
        for item in items_summary
    )
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px;">
      <h2>Thanks for your order, {escape(customer_name)}!</h2>
      <p>Order reference: <strong>{order_id}</strong></p>
      <table style="width: 100%; border-collapse: collapse;">
        <thead><tr><th>Item</th><th>Qty</th><th>Price</th><th>Total</th></tr></thead>
        <tbody>{rows}</tbody>
      </table>
      <p style="font-size: 18px;"><strong>Total paid: ${order_total:.2f}</strong></p>
    </div>
    """
