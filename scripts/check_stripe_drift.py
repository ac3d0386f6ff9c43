#!/usr/bin/env python3
"""
Stripe Drift Report

Compares the Stripe product IDs stored on local products with the products
that exist in the Stripe account and prints the differences. Read-only:
nothing is created, archived or written back.

Usage:
    python3 check_stripe_drift.py [--include-inactive]
"""

import os
import sys
import argparse
import logging

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'webapp'))

from dotenv import load_dotenv
load_dotenv(os.getenv('MYSHOP_ENV_FILE', '.env'))

import stripe
from models import Product
from stripe_integration.config import get_secret_key, StripeConfigError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def fetch_remote_products(include_inactive=False):
    """All Stripe products created by the admin, keyed by Stripe ID"""
    params = {'limit': 100}
    if not include_inactive:
        params['active'] = True

    remote = {}
    for product in stripe.Product.list(**params).auto_paging_iter():
        metadata = product.metadata or {}
        if 'local_product_id' in metadata:
            remote[product.id] = metadata['local_product_id']
    return remote


def compare(local_products, remote):
    """
    Split products into drift categories.

    Returns:
        dict: 'missing_remote' (local rows pointing at unknown Stripe IDs),
              'untracked_remote' (Stripe products no local row points at),
              'never_synced' (local rows without a Stripe product)
    """
    local_ids = {}
    never_synced = []
    for product in local_products:
        if product.stripe_product_id:
            local_ids[product.stripe_product_id] = product.id
        else:
            never_synced.append(product.id)

    return {
        'missing_remote': sorted(
            (stripe_id, local_id) for stripe_id, local_id in local_ids.items()
            if stripe_id not in remote
        ),
        'untracked_remote': sorted(
            (stripe_id, local_id) for stripe_id, local_id in remote.items()
            if stripe_id not in local_ids
        ),
        'never_synced': sorted(never_synced),
    }


def main():
    parser = argparse.ArgumentParser(description='Report drift between local products and Stripe')
    parser.add_argument('--include-inactive', action='store_true',
                        help='Also consider archived Stripe products')
    args = parser.parse_args()

    try:
        stripe.api_key = get_secret_key()
    except StripeConfigError as e:
        logger.error(str(e))
        sys.exit(1)

    report = compare(Product.get_all(), fetch_remote_products(args.include_inactive))

    for stripe_id, local_id in report['missing_remote']:
        logger.warning(f"Local product {local_id} points at missing Stripe product {stripe_id}")
    for stripe_id, local_id in report['untracked_remote']:
        logger.warning(f"Stripe product {stripe_id} (local id {local_id}) has no local row")
    for local_id in report['never_synced']:
        logger.info(f"Local product {local_id} was never synced")

    drift = len(report['missing_remote']) + len(report['untracked_remote'])
    logger.info(f"Drift check complete: {drift} mismatch(es)")
    sys.exit(1 if drift else 0)


if __name__ == '__main__':
    main()
