"""
MyShop Admin - Database Models
Handles database connections and product, post, subscriber and settings data
"""

import os
import json
import uuid
from datetime import datetime

from mysql.connector import pooling

# Database connection pool
db_pool = None

PRODUCT_CATEGORIES = ('Mindset', 'Skillset', 'Toolset')


def init_db_pool():
    """Initialize database connection pool"""
    global db_pool

    db_password = os.getenv('DB_PASSWORD')
    if not db_password:
        raise RuntimeError(
            "CRITICAL: DB_PASSWORD environment variable is required. "
            "Please set it in the .env file"
        )

    db_config = {
        'host': os.getenv('DB_HOST', 'localhost'),
        'user': os.getenv('DB_USER', 'myshop_app'),
        'password': db_password,
        'database': os.getenv('DB_NAME', 'myshop_db'),
        'pool_name': 'myshop_pool',
        'pool_size': int(os.getenv('DB_POOL_SIZE', '5'))
    }

    db_pool = pooling.MySQLConnectionPool(**db_config)
    return db_pool


def get_db_connection():
    """Get a connection from the pool"""
    global db_pool
    if db_pool is None:
        init_db_pool()
    return db_pool.get_connection()


# =============================================================================
# Product Model
# =============================================================================

class Product:
    """Shop product - the system of record that Stripe mirrors"""

    STRIPE_FIELDS = ('stripe_product_id', 'stripe_price_id', 'stripe_payment_link_id', 'stripe_link')

    def __init__(self, id=None, title=None, description=None, image=None,
                 category=None, price=None, original_price=None,
                 price_cents=None, original_price_cents=None, currency='usd',
                 stripe_product_id=None, stripe_price_id=None,
                 stripe_payment_link_id=None, stripe_link=None,
                 ai_prompt=None, active=True, sort_order=0,
                 created_at=None, updated_at=None):
        self.id = id
        self.title = title
        self.description = description or ''
        self.image = image or ''
        self.category = category or 'Mindset'
        self.price = price
        self.original_price = original_price
        self.price_cents = price_cents
        self.original_price_cents = original_price_cents
        self.currency = (currency or 'usd').lower()
        self.stripe_product_id = stripe_product_id
        self.stripe_price_id = stripe_price_id
        self.stripe_payment_link_id = stripe_payment_link_id
        self.stripe_link = stripe_link
        self.ai_prompt = ai_prompt or ''
        self.active = bool(active)
        self.sort_order = sort_order or 0
        self.created_at = created_at
        self.updated_at = updated_at

    def refresh_display_prices(self):
        """Derive the display strings from the integer amounts"""
        from stripe_integration.money import cents_to_price

        if self.price_cents is not None:
            self.price = cents_to_price(self.price_cents, self.currency)
        if self.original_price_cents is not None:
            self.original_price = cents_to_price(self.original_price_cents, self.currency)

    def save(self):
        """Insert or update product in database"""
        self.refresh_display_prices()
        conn = get_db_connection()
        cursor = conn.cursor()

        try:
            if self.id:
                cursor.execute("""
                    UPDATE products SET
                        title = %s, description = %s, image = %s, category = %s,
                        price = %s, original_price = %s, price_cents = %s,
                        original_price_cents = %s, currency = %s,
                        stripe_product_id = %s, stripe_price_id = %s,
                        stripe_payment_link_id = %s, stripe_link = %s,
                        ai_prompt = %s, active = %s, sort_order = %s,
                        updated_at = NOW()
                    WHERE id = %s
                """, (self.title, self.description, self.image, self.category,
                      self.price, self.original_price, self.price_cents,
                      self.original_price_cents, self.currency,
                      self.stripe_product_id, self.stripe_price_id,
                      self.stripe_payment_link_id, self.stripe_link,
                      self.ai_prompt, self.active, self.sort_order, self.id))
            else:
                self.id = str(uuid.uuid4())
                cursor.execute("""
                    INSERT INTO products
                    (id, title, description, image, category, price, original_price,
                     price_cents, original_price_cents, currency,
                     stripe_product_id, stripe_price_id, stripe_payment_link_id, stripe_link,
                     ai_prompt, active, sort_order, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, NOW(), NOW())
                """, (self.id, self.title, self.description, self.image, self.category,
                      self.price, self.original_price, self.price_cents,
                      self.original_price_cents, self.currency,
                      self.stripe_product_id, self.stripe_price_id,
                      self.stripe_payment_link_id, self.stripe_link,
                      self.ai_prompt, self.active, self.sort_order))

            conn.commit()
            return self.id
        finally:
            cursor.close()
            conn.close()

    def apply_sync_result(self, result):
        """
        Persist the identifiers returned by a successful Stripe sync.

        The local write is the durability boundary: Stripe may already hold
        the new price and link when this fails, and the caller reports it.
        """
        for field in self.STRIPE_FIELDS:
            if result.get(field):
                setattr(self, field, result[field])

        conn = get_db_connection()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE products SET
                    stripe_product_id = %s, stripe_price_id = %s,
                    stripe_payment_link_id = %s, stripe_link = %s,
                    updated_at = NOW()
                WHERE id = %s
            """, (self.stripe_product_id, self.stripe_price_id,
                  self.stripe_payment_link_id, self.stripe_link, self.id))
            conn.commit()
        finally:
            cursor.close()
            conn.close()

    def delete(self):
        """Delete product from database"""
        conn = get_db_connection()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM products WHERE id = %s", (self.id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            cursor.close()
            conn.close()

    def has_stripe_reference(self):
        """True when any remote identifier or link has been stored"""
        return any(getattr(self, field) for field in self.STRIPE_FIELDS)

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'image': self.image,
            'category': self.category,
            'price': self.price or '',
            'original_price': self.original_price or '',
            'price_cents': self.price_cents,
            'original_price_cents': self.original_price_cents,
            'currency': self.currency,
            'stripe_product_id': self.stripe_product_id,
            'stripe_price_id': self.stripe_price_id,
            'stripe_payment_link_id': self.stripe_payment_link_id,
            'stripe_link': self.stripe_link or '',
            'ai_prompt': self.ai_prompt,
            'active': self.active,
            'sort_order': self.sort_order,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    @staticmethod
    def get_by_id(product_id):
        """Get product by ID"""
        conn = get_db_connection()
        cursor = conn.cursor(dictionary=True)

        try:
            cursor.execute("SELECT * FROM products WHERE id = %s", (product_id,))
            row = cursor.fetchone()
            if row:
                return Product(**row)
            return None
        finally:
            cursor.close()
            conn.close()

    @staticmethod
    def get_by_payment_link_id(payment_link_id):
        """Get product by its Stripe payment link ID"""
        conn = get_db_connection()
        cursor = conn.cursor(dictionary=True)

        try:
            cursor.execute(
                "SELECT * FROM products WHERE stripe_payment_link_id = %s",
                (payment_link_id,)
            )
            row = cursor.fetchone()
            if row:
                return Product(**row)
            return None
        finally:
            cursor.close()
            conn.close()

    @staticmethod
    def get_all(active_only=False):
        """Get all products in display order"""
        conn = get_db_connection()
        cursor = conn.cursor(dictionary=True)

        try:
            query = "SELECT * FROM products"
            if active_only:
                query += " WHERE active = TRUE"
            query += " ORDER BY sort_order, created_at DESC"
            cursor.execute(query)
            return [Product(**row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()


# =============================================================================
# Post Model
# =============================================================================

class Post:
    """Blog post"""

    def __init__(self, id=None, title=None, slug=None, description=None,
                 content=None, image=None, category=None, ai_prompt=None,
                 read_time=None, published=True, views=0,
                 created_at=None, updated_at=None):
        self.id = id
        self.title = title
        self.slug = slug
        self.description = description or ''
        self.content = content or ''
        self.image = image or ''
        self.category = category
        self.ai_prompt = ai_prompt or ''
        self.read_time = read_time or '5 min read'
        self.published = bool(published)
        self.views = views or 0
        self.created_at = created_at
        self.updated_at = updated_at

    def save(self):
        """Insert or update post in database"""
        conn = get_db_connection()
        cursor = conn.cursor()

        try:
            if self.id:
                cursor.execute("""
                    UPDATE posts SET
                        title = %s, slug = %s, description = %s, content = %s,
                        image = %s, category = %s, ai_prompt = %s, read_time = %s,
                        published = %s, updated_at = NOW()
                    WHERE id = %s
                """, (self.title, self.slug, self.description, self.content,
                      self.image, self.category, self.ai_prompt, self.read_time,
                      self.published, self.id))
            else:
                self.id = str(uuid.uuid4())
                cursor.execute("""
                    INSERT INTO posts
                    (id, title, slug, description, content, image, category,
                     ai_prompt, read_time, published, views, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, 0, NOW(), NOW())
                """, (self.id, self.title, self.slug, self.description, self.content,
                      self.image, self.category, self.ai_prompt, self.read_time,
                      self.published))

            conn.commit()
            return self.id
        finally:
            cursor.close()
            conn.close()

    def delete(self):
        """Delete post from database"""
        conn = get_db_connection()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM posts WHERE id = %s", (self.id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            cursor.close()
            conn.close()

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'slug': self.slug,
            'description': self.description,
            'content': self.content,
            'image': self.image,
            'category': self.category,
            'ai_prompt': self.ai_prompt,
            'read_time': self.read_time,
            'published': self.published,
            'views': self.views,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    @staticmethod
    def get_by_id(post_id):
        """Get post by ID"""
        conn = get_db_connection()
        cursor = conn.cursor(dictionary=True)

        try:
            cursor.execute("SELECT * FROM posts WHERE id = %s", (post_id,))
            row = cursor.fetchone()
            if row:
                return Post(**row)
            return None
        finally:
            cursor.close()
            conn.close()

    @staticmethod
    def get_by_slug(slug):
        """Get post by slug"""
        conn = get_db_connection()
        cursor = conn.cursor(dictionary=True)

        try:
            cursor.execute("SELECT * FROM posts WHERE slug = %s", (slug,))
            row = cursor.fetchone()
            if row:
                return Post(**row)
            return None
        finally:
            cursor.close()
            conn.close()

    @staticmethod
    def get_all():
        """Get all posts, newest first"""
        conn = get_db_connection()
        cursor = conn.cursor(dictionary=True)

        try:
            cursor.execute("SELECT * FROM posts ORDER BY created_at DESC")
            return [Post(**row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()


# =============================================================================
# Subscriber Model
# =============================================================================

class Subscriber:
    """Newsletter subscriber"""

    def __init__(self, id=None, email=None, name=None, source='website',
                 active=True, subscribed_at=None, unsubscribed_at=None):
        self.id = id
        self.email = email
        self.name = name
        self.source = source or 'website'
        self.active = bool(active)
        self.subscribed_at = subscribed_at
        self.unsubscribed_at = unsubscribed_at

    def delete(self):
        """Delete subscriber from database"""
        conn = get_db_connection()
        cursor = conn.cursor()

        try:
            cursor.execute("DELETE FROM subscribers WHERE id = %s", (self.id,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            cursor.close()
            conn.close()

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'source': self.source,
            'active': self.active,
            'subscribed_at': self.subscribed_at.isoformat() if self.subscribed_at else None,
            'unsubscribed_at': self.unsubscribed_at.isoformat() if self.unsubscribed_at else None
        }

    @staticmethod
    def get_by_id(subscriber_id):
        """Get subscriber by ID"""
        conn = get_db_connection()
        cursor = conn.cursor(dictionary=True)

        try:
            cursor.execute("SELECT * FROM subscribers WHERE id = %s", (subscriber_id,))
            row = cursor.fetchone()
            if row:
                return Subscriber(**row)
            return None
        finally:
            cursor.close()
            conn.close()

    @staticmethod
    def get_all():
        """Get all subscribers, most recent first"""
        conn = get_db_connection()
        cursor = conn.cursor(dictionary=True)

        try:
            cursor.execute("SELECT * FROM subscribers ORDER BY subscribed_at DESC")
            return [Subscriber(**row) for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()

    @staticmethod
    def count_by_month():
        """Active subscribers grouped by the month they joined"""
        conn = get_db_connection()
        cursor = conn.cursor(dictionary=True)

        try:
            cursor.execute("""
                SELECT DATE_FORMAT(subscribed_at, '%Y-%m') AS month, COUNT(*) AS count
                FROM subscribers
                WHERE active = TRUE
                GROUP BY month
                ORDER BY month
            """)
            return [{'month': row['month'], 'count': row['count']} for row in cursor.fetchall()]
        finally:
            cursor.close()
            conn.close()


def get_dashboard_stats():
    """Post, active product and active subscriber counts plus total post views"""
    conn = get_db_connection()
    cursor = conn.cursor()

    try:
        cursor.execute("""
            SELECT
                (SELECT COUNT(*) FROM posts),
                (SELECT COUNT(*) FROM products WHERE active = TRUE),
                (SELECT COUNT(*) FROM subscribers WHERE active = TRUE),
                (SELECT COALESCE(SUM(views), 0) FROM posts)
        """)
        posts, products, subscribers, views = cursor.fetchone()
        return {
            'posts_count': int(posts),
            'products_count': int(products),
            'subscribers_count': int(subscribers),
            'views_count': int(views),
        }
    finally:
        cursor.close()
        conn.close()


# =============================================================================
# Settings Model
# =============================================================================

class Setting:
    """Key/value settings row with a JSON-encoded value"""

    @staticmethod
    def get_all():
        """Get all settings as a dict"""
        conn = get_db_connection()
        cursor = conn.cursor(dictionary=True)

        try:
            cursor.execute("SELECT `key`, `value` FROM settings")
            return {row['key']: json.loads(row['value']) if row['value'] else None
                    for row in cursor.fetchall()}
        finally:
            cursor.close()
            conn.close()

    @staticmethod
    def upsert(key, value):
        """Insert or replace a setting"""
        conn = get_db_connection()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO settings (`key`, `value`, updated_at)
                VALUES (%s, %s, NOW())
                ON DUPLICATE KEY UPDATE `value` = VALUES(`value`), updated_at = NOW()
            """, (key, json.dumps(value)))
            conn.commit()
        finally:
            cursor.close()
            conn.close()


# =============================================================================
# Webhook Event Model
# =============================================================================

class WebhookEvent:
    """Stripe webhook event log, used to skip redelivered events"""

    def __init__(self, id=None, stripe_event_id=None, event_type=None,
                 payload=None, processed=False, error_message=None,
                 created_at=None, processed_at=None):
        self.id = id
        self.stripe_event_id = stripe_event_id
        self.event_type = event_type
        self.payload = payload
        self.processed = processed
        self.error_message = error_message
        self.created_at = created_at or datetime.now()
        self.processed_at = processed_at

    def save(self):
        """Save webhook event to database"""
        conn = get_db_connection()
        cursor = conn.cursor()

        try:
            if self.id is None:
                cursor.execute("""
                    INSERT INTO stripe_webhook_events
                    (stripe_event_id, event_type, payload, processed, error_message, created_at)
                    VALUES (%s, %s, %s, %s, %s, %s)
                """, (
                    self.stripe_event_id, self.event_type,
                    json.dumps(self.payload) if self.payload else None,
                    self.processed, self.error_message, self.created_at
                ))
                self.id = cursor.lastrowid
            else:
                cursor.execute("""
                    UPDATE stripe_webhook_events SET
                        processed = %s, error_message = %s, processed_at = %s
                    WHERE id = %s
                """, (self.processed, self.error_message, self.processed_at, self.id))

            conn.commit()
            return self
        finally:
            cursor.close()
            conn.close()

    @staticmethod
    def exists(stripe_event_id):
        """Check if event was already received"""
        conn = get_db_connection()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "SELECT COUNT(*) FROM stripe_webhook_events WHERE stripe_event_id = %s",
                (stripe_event_id,)
            )
            return cursor.fetchone()[0] > 0
        finally:
            cursor.close()
            conn.close()

    def mark_processed(self):
        """Mark event as processed"""
        self.processed = True
        self.processed_at = datetime.now()
        self.save()

    def mark_error(self, error_message):
        """Mark event as failed with error"""
        self.error_message = error_message[:1000]
        self.processed_at = datetime.now()
        self.save()


def check_database():
    """Run a trivial query; raises on connection failure"""
    conn = get_db_connection()
    cursor = conn.cursor()
    try:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    finally:
        cursor.close()
        conn.close()
