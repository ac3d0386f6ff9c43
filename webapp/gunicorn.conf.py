"""
Gunicorn configuration for MyShop Admin
Every setting can be overridden through a GUNICORN_* environment variable.

    gunicorn -c gunicorn.conf.py app:app
"""

import os
import multiprocessing

bind = os.getenv('GUNICORN_BIND', '127.0.0.1:5000')

# Requests mostly wait on Stripe
workers = int(os.getenv('GUNICORN_WORKERS', min(multiprocessing.cpu_count() * 2 + 1, 4)))
worker_class = os.getenv('GUNICORN_WORKER_CLASS', 'gthread')
threads = int(os.getenv('GUNICORN_THREADS', '4'))

# A product sync makes three sequential Stripe calls, each allowed STRIPE_TIMEOUT seconds
_stripe_timeout = int(float(os.getenv('STRIPE_TIMEOUT', '30')))
timeout = int(os.getenv('GUNICORN_TIMEOUT', 3 * _stripe_timeout + 30))
graceful_timeout = int(os.getenv('GUNICORN_GRACEFUL_TIMEOUT', '30'))
keepalive = int(os.getenv('GUNICORN_KEEPALIVE', '2'))

max_requests = int(os.getenv('GUNICORN_MAX_REQUESTS', '1000'))
max_requests_jitter = int(os.getenv('GUNICORN_MAX_REQUESTS_JITTER', '50'))

# db pool and rate limiter state are per worker
preload_app = os.getenv('GUNICORN_PRELOAD', 'false').lower() == 'true'

accesslog = os.getenv('GUNICORN_ACCESS_LOG', '-')
errorlog = os.getenv('GUNICORN_ERROR_LOG', '-')
loglevel = os.getenv('GUNICORN_LOG_LEVEL', 'info')
access_log_format = '%(h)s "%(r)s" %(s)s %(b)s %(D)sus'

proc_name = 'myshop-admin'


def on_starting(server):
    server.log.info(f"Starting {proc_name}: {workers} workers x {threads} threads, timeout {timeout}s")


def worker_abort(worker):
    """Usually a request stuck on Stripe past the worker timeout"""
    worker.log.warning(f"Worker {worker.pid} aborted after {timeout}s")
