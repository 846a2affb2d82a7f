"""
Order emails sent once a payment is confirmed.

Item lines use the name and unit price captured when the order was created,
so an email still renders after a product left the catalog.
"""
from dataclasses import dataclass
from html import escape


@dataclass(frozen=True)
class EmailContent:
    subject: str
    html: str


def format_amount(value: float) -> str:
    return f"{value:.2f} €"


def render_item_lines(order) -> str:
    return "\n".join(
        f"{item.name} (x{item.quantity}): {format_amount(item.unit_price * item.quantity)}"
        for item in order.items
    )


def render_address(order) -> str:
    return "\n".join([
        order.shipping_name,
        order.shipping_street,
        f"{order.shipping_postal_code} {order.shipping_city}",
        order.shipping_country,
    ])


def render_customer_confirmation(order, transaction_id: str, shop_name: str) -> EmailContent:
    html = f"""
<h2>Thank you for your order!</h2>
<p>Your order <strong>#{escape(order.id)}</strong> has been placed successfully.</p>
<h3>Order summary</h3>
<pre>{escape(render_item_lines(order))}</pre>
<p><strong>Total: {format_amount(order.total)}</strong></p>
<h3>Shipping address</h3>
<pre>{escape(render_address(order))}</pre>
<p>Payment status: paid (PaymentIntent: {escape(transaction_id)})</p>
<p>We will let you know as soon as your order ships.</p>
<p>Kind regards,<br>{escape(shop_name)}</p>
"""
    return EmailContent(subject=f"Order confirmation #{order.id}", html=html)


def render_office_notification(order, transaction_id: str) -> EmailContent:
    html = f"""
<h2>New order received</h2>
<p>Order number: <strong>#{escape(order.id)}</strong></p>
<p>Customer: {escape(order.shipping_name)} ({escape(order.customer_email)})</p>
<h3>Order summary</h3>
<pre>{escape(render_item_lines(order))}</pre>
<p><strong>Total: {format_amount(order.total)}</strong></p>
<h3>Shipping address</h3>
<pre>{escape(render_address(order))}</pre>
<p>Payment status: paid (PaymentIntent: {escape(transaction_id)})</p>
"""
    return EmailContent(subject=f"New order #{order.id}", html=html)
