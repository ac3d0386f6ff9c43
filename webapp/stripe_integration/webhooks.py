"""
Stripe Webhook Handlers
"""

import logging

import stripe

from models import Product, WebhookEvent
from .config import get_webhook_secret

logger = logging.getLogger(__name__)


def process_webhook(payload, sig_header):
    """
    Process incoming Stripe webhook with signature verification.

    Args:
        payload: Raw request body
        sig_header: Stripe-Signature header value

    Returns:
        Tuple of (success: bool, message: str)
    """
    webhook_secret = get_webhook_secret()

    if not webhook_secret:
        logger.error("Webhook secret not configured")
        return False, "Webhook secret not configured"

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        return False, "Invalid payload"
    except stripe.SignatureVerificationError as e:
        logger.error(f"Invalid webhook signature: {e}")
        return False, "Invalid signature"

    logger.info(f"Stripe webhook received: {event.id} type={event.type} livemode={event.livemode}")

    if WebhookEvent.exists(event.id):
        logger.info(f"Duplicate webhook event {event.id}, skipping")
        return True, "Already processed"

    event_data = event.to_dict()
    webhook_event = WebhookEvent(
        stripe_event_id=event.id,
        event_type=event.type,
        payload=event_data
    )
    webhook_event.save()

    handler = WEBHOOK_HANDLERS.get(event.type)
    if handler:
        try:
            handler(event_data['data']['object'])
            webhook_event.mark_processed()
            logger.info(f"Successfully processed webhook {event.type}: {event.id}")
            return True, "Processed"
        except Exception as e:
            error_msg = str(e)
            webhook_event.mark_error(error_msg)
            logger.error(f"Webhook handler error for {event.type}: {e}")
            return False, error_msg

    webhook_event.mark_processed()
    logger.debug(f"No handler for event type {event.type}")
    return True, "No handler needed"


def handle_checkout_completed(session):
    """Log a completed checkout against the product behind the payment link"""
    payment_link_id = session.get('payment_link')
    logger.info(
        f"Checkout completed: session={session.get('id')} link={payment_link_id} "
        f"customer={session.get('customer')} payment_intent={session.get('payment_intent')}"
    )

    if not payment_link_id:
        return

    product = Product.get_by_payment_link_id(payment_link_id)
    if not product:
        logger.warning(f"Product not found for payment link {payment_link_id}")
        return

    logger.info(f"Product purchased: {product.id} ({product.title})")


def handle_payment_succeeded(payment_intent):
    metadata = payment_intent.get('metadata') or {}
    logger.info(
        f"Payment succeeded: {payment_intent.get('amount')} {payment_intent.get('currency')} "
        f"local_product_id={metadata.get('local_product_id', '-')}"
    )


def handle_payment_failed(payment_intent):
    last_error = payment_intent.get('last_payment_error') or {}
    logger.warning(
        f"Payment failed: {payment_intent.get('amount')} {payment_intent.get('currency')} "
        f"error={last_error.get('message', '-')}"
    )


def handle_price_event(price):
    logger.info(
        f"Price event: product={price.get('product')} "
        f"amount={price.get('unit_amount')} {price.get('currency')}"
    )


def handle_product_event(product):
    metadata = product.get('metadata') or {}
    logger.info(
        f"Product event: {product.get('id')} active={product.get('active')} "
        f"local_product_id={metadata.get('local_product_id', '-')}"
    )


WEBHOOK_HANDLERS = {
    'checkout.session.completed': handle_checkout_completed,
    'payment_intent.succeeded': handle_payment_succeeded,
    'payment_intent.payment_failed': handle_payment_failed,
    'price.created': handle_price_event,
    'price.updated': handle_price_event,
    'product.created': handle_product_event,
    'product.updated': handle_product_event,
}
