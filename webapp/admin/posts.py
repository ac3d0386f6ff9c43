"""
Admin Post Routes

CRUD for blog posts. Slugs are unique; one is derived from the title when
the caller does not send it.
"""

import logging
import re

from flask import jsonify

from . import admin_bp
from .routes import admin_required, get_json_body, record_action

from models import Post, PRODUCT_CATEGORIES

logger = logging.getLogger(__name__)

TEXT_LIMITS = {
    'title': 200,
    'slug': 200,
    'description': 1000,
    'image': 500,
    'read_time': 50,
    'ai_prompt': 5000,
}

_SLUG_RE = re.compile(r'^[a-z0-9]+(-[a-z0-9]+)*$')


def slugify(text):
    """'Hello, World!' -> 'hello-world'"""
    return re.sub(r'[^a-z0-9]+', '-', (text or '').lower()).strip('-')


def parse_post_payload(data, existing=None):
    """
    Extract post fields from a request body.

    Returns:
        Tuple of (fields: dict, error: str or None)
    """
    fields = {}

    try:
        for key, limit in TEXT_LIMITS.items():
            if key in data:
                value = (data.get(key) or '').strip()
                if len(value) > limit:
                    raise ValueError(f'{key} must be at most {limit} characters')
                fields[key] = value

        if 'content' in data:
            fields['content'] = data.get('content') or ''

        if existing is None and not fields.get('title'):
            raise ValueError('Title is required')
        if 'title' in fields and not fields['title']:
            raise ValueError('Title is required')

        if existing is None and not fields.get('slug'):
            fields['slug'] = slugify(fields['title'])
        if 'slug' in fields and not _SLUG_RE.match(fields['slug']):
            raise ValueError('slug may only contain lowercase letters, digits and hyphens')

        image = fields.get('image')
        if image and not image.startswith(('http://', 'https://', '/')):
            raise ValueError('Invalid image URL')

        if 'category' in data:
            if data['category'] not in PRODUCT_CATEGORIES + (None,):
                raise ValueError(f"category must be one of {', '.join(PRODUCT_CATEGORIES)}")
            fields['category'] = data['category']

        if 'published' in data:
            fields['published'] = bool(data['published'])
    except (TypeError, ValueError) as e:
        return None, str(e)

    return fields, None


def _slug_taken(slug, post_id=None):
    other = Post.get_by_slug(slug)
    return other is not None and other.id != post_id


# =============================================================================
# Routes
# =============================================================================

@admin_bp.route('/api/posts')
@admin_required
def list_posts():
    """All posts, newest first"""
    posts = Post.get_all()
    return jsonify({
        'success': True,
        'posts': [p.to_dict() for p in posts],
        'total': len(posts)
    })


@admin_bp.route('/api/posts/<post_id>')
@admin_required
def get_post(post_id):
    post = Post.get_by_id(post_id)
    if not post:
        return jsonify({'success': False, 'error': 'Post not found'}), 404
    return jsonify({'success': True, 'post': post.to_dict()})


@admin_bp.route('/api/posts', methods=['POST'])
@admin_required
def create_post():
    data = get_json_body()
    fields, error = parse_post_payload(data)
    if error:
        return jsonify({'success': False, 'error': f'Validation error: {error}'}), 400

    if _slug_taken(fields['slug']):
        return jsonify({'success': False, 'error': f"Slug '{fields['slug']}' is already in use"}), 409

    post = Post(**fields)
    post.save()
    record_action('post_create', 'post', post.id, post.title)
    logger.info(f"Post created: {post.id} ({post.slug})")

    return jsonify({'success': True, 'post': post.to_dict()}), 201


@admin_bp.route('/api/posts/<post_id>', methods=['PUT'])
@admin_required
def update_post(post_id):
    post = Post.get_by_id(post_id)
    if not post:
        return jsonify({'success': False, 'error': 'Post not found'}), 404

    data = get_json_body()
    fields, error = parse_post_payload(data, existing=post)
    if error:
        return jsonify({'success': False, 'error': f'Validation error: {error}'}), 400

    if 'slug' in fields and _slug_taken(fields['slug'], post.id):
        return jsonify({'success': False, 'error': f"Slug '{fields['slug']}' is already in use"}), 409

    for key, value in fields.items():
        setattr(post, key, value)
    post.save()
    record_action('post_update', 'post', post.id, ', '.join(sorted(fields)))

    return jsonify({'success': True, 'post': post.to_dict()})


@admin_bp.route('/api/posts/<post_id>', methods=['DELETE'])
@admin_required
def delete_post(post_id):
    post = Post.get_by_id(post_id)
    if not post:
        return jsonify({'success': False, 'error': 'Post not found'}), 404

    post.delete()
    record_action('post_delete', 'post', post.id, post.title)
    logger.info(f"Post deleted: {post.id} ({post.slug})")

    return jsonify({'success': True})
