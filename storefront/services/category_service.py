from storefront.extensions import db
from storefront.exceptions import ServiceError
from storefront.models import Category, Product
from storefront.utils import unique_slug
from datetime import datetime
import logging

logger = logging.getLogger(__name__)

MAX_DEPTH = 3


def active_categories():
    return Category.query.filter_by(is_deleted=False, is_active=True)


def category_to_dict(category: Category):
    return {
        'id': category.id,
        'name': category.name,
        'slug': category.slug,
        'parent_id': category.parent_id,
        'level': category.level,
        'description': category.description,
        'sort_order': category.sort_order,
        'is_active': category.is_active,
    }


def build_tree(categories=None):
    """Nest a flat category list into root -> sub -> child dicts."""
    if categories is None:
        categories = active_categories().order_by(
            Category.sort_order, Category.name).all()

    nodes = {}
    for category in categories:
        node = category_to_dict(category)
        node['children'] = []
        nodes[category.id] = node

    roots = []
    for category in categories:
        node = nodes[category.id]
        parent = nodes.get(category.parent_id)
        if category.parent_id is None:
            roots.append(node)
        elif parent is not None:
            parent['children'].append(node)
    return roots


def descendant_ids(category: Category):
    ids = [category.id]
    frontier = [category.id]
    while frontier:
        children = db.session.query(Category.id).filter(
            Category.parent_id.in_(frontier),
            Category.is_deleted.is_(False),
        ).all()
        frontier = [row[0] for row in children]
        ids.extend(frontier)
    return ids


def breadcrumb(category: Category):
    trail = []
    node = category
    while node is not None:
        trail.append({'id': node.id, 'name': node.name, 'slug': node.slug})
        node = node.parent
    trail.reverse()
    return trail


def _resolve_parent(parent_id, category=None):
    if parent_id in (None, '', 0, '0'):
        return None
    parent = Category.query.filter_by(
        id=int(parent_id), is_deleted=False).first()
    if parent is None:
        raise ServiceError('Parent category not found', 404)
    if parent.level >= MAX_DEPTH:
        raise ServiceError(
            f'Categories can only be nested {MAX_DEPTH} levels deep')
    if category is not None:
        node = parent
        while node is not None:
            if node.id == category.id:
                raise ServiceError(
                    'A category cannot be moved under itself')
            node = node.parent
    return parent


def create_category(data):
    parent = _resolve_parent(data.get('parent_id'))
    category = Category(
        name=data['name'].strip(),
        slug=unique_slug(Category, data.get('slug') or data['name']),
        parent_id=parent.id if parent else None,
        level=parent.level + 1 if parent else 1,
        description=data.get('description'),
        sort_order=int(data.get('sort_order') or 0),
        is_active=bool(data.get('is_active', True)),
    )
    db.session.add(category)
    db.session.commit()
    return category


def _relevel_children(category: Category):
    for child in category.children.filter_by(is_deleted=False):
        child.level = category.level + 1
        if child.level > MAX_DEPTH:
            raise ServiceError(
                f'Categories can only be nested {MAX_DEPTH} levels deep')
        _relevel_children(child)


def update_category(category: Category, data):
    if 'parent_id' in data:
        parent = _resolve_parent(data.get('parent_id'), category)
        category.parent_id = parent.id if parent else None
        category.level = parent.level + 1 if parent else 1
        _relevel_children(category)
    if data.get('name'):
        category.name = data['name'].strip()
    if data.get('slug') or data.get('name'):
        category.slug = unique_slug(
            Category,
            data.get('slug') or category.name,
            exclude_id=category.id)
    for field in ('description', 'sort_order', 'is_active'):
        if field in data:
            setattr(category, field, data[field])
    db.session.commit()
    return category


def delete_category(category: Category, actor_id=None):
    if category.children.filter_by(is_deleted=False).count():
        raise ServiceError('Category has sub categories')
    in_use = Product.query.filter_by(
        category_id=category.id, is_deleted=False).count()
    if in_use:
        raise ServiceError(f'Category is used by {in_use} products')
    category.is_deleted = True
    category.deleted_at = datetime.utcnow()
    category.deleted_by = actor_id
    db.session.commit()
