from __future__ import annotations

from flask import Blueprint, request, jsonify, abort
from sqlalchemy import func, or_

from models import storage
from models.category import Category
from models.product import Product
from models.user import Role
from models.schemas.category import (
    CategoryCreateSchema,
    CategoryUpdateSchema,
    CategoryOutSchema,
    CategoryDetailSchema,
)
from utils.decorators import roles_required
from .listing import parse_pagination, parse_sort, parse_int_param, paginate

bp = Blueprint("categories", __name__)

create_schema = CategoryCreateSchema()
update_schema = CategoryUpdateSchema()
out_schema = CategoryOutSchema()
detail_schema = CategoryDetailSchema()
out_list_schema = CategoryOutSchema(many=True)

SORT_COLUMNS = {
    "name": Category.name,
    "created_at": Category.created_at,
}


def slug_taken(session, slug: str, exclude_id: int | None = None) -> bool:
    # slug is unique across soft-deleted rows as well
    q = session.query(Category).filter(Category.slug == slug)
    if exclude_id:
        q = q.filter(Category.id != exclude_id)
    return session.query(q.exists()).scalar()


def get_live_category(session, category_id: int) -> Category:
    c = session.get(Category, category_id)
    if not c or c.is_deleted:
        abort(404, description="category not found")
    return c


def resolve_parent(session, parent_id, category: Category | None = None):
    """Live parent for parent_id (None clears it); 400 on unknown ids or cycles."""
    if parent_id is None:
        return None
    parent = session.get(Category, parent_id)
    if not parent or parent.is_deleted:
        abort(400, description="parent_id not found")
    if category is not None and (parent.id == category.id or category.id in parent.ancestor_ids()):
        abort(400, description="a category cannot be its own ancestor")
    return parent


@bp.get("/categories")
def list_categories():
    """
    List categories (pagination, sorting, q search, parent filter)
    ---
    tags: [Categories]
    parameters:
      - in: query
        name: page
        type: integer
        default: 1
      - in: query
        name: limit
        type: integer
        default: 20
      - in: query
        name: sort
        type: string
        default: "-created_at"
        description: "Allowed: name, created_at (prefix '-' for desc)"
      - in: query
        name: q
        type: string
        description: "Case-insensitive substring search on name and slug"
      - in: query
        name: parent_id
        type: integer
      - in: query
        name: roots
        type: boolean
        description: "Only top-level categories"
    responses:
      200: { description: OK }
    """
    session = storage.get_session()
    page, limit = parse_pagination()
    order_by = parse_sort(SORT_COLUMNS, default="-created_at")

    query = session.query(Category).filter(Category.deleted_at.is_(None))

    q = request.args.get("q")
    if q:
        qnorm = f"%{q.strip().lower()}%"
        query = query.filter(or_(func.lower(Category.name).like(qnorm), func.lower(Category.slug).like(qnorm)))

    parent_id = parse_int_param("parent_id")
    if parent_id is not None:
        query = query.filter(Category.parent_id == parent_id)
    elif request.args.get("roots", "false").lower() in ("1", "true", "yes"):
        query = query.filter(Category.parent_id.is_(None))

    rows, meta = paginate(query, order_by, page, limit)
    return jsonify({"data": out_list_schema.dump(rows), "meta": meta})


@bp.get("/categories/<slug>")
def get_category(slug: str):
    """
    Get a category by slug, with its direct children
    ---
    tags: [Categories]
    parameters:
      - in: path
        name: slug
        type: string
        required: true
    responses:
      200: { description: OK }
      404: { description: Not found }
    """
    session = storage.get_session()
    c = session.query(Category).filter(Category.slug == slug, Category.deleted_at.is_(None)).first()
    if not c:
        abort(404, description="category not found")
    return jsonify({"data": detail_schema.dump(c)})


@bp.post("/admin/categories")
@roles_required(Role.ADMIN)
def create_category():
    """
    Create a category - admin
    ---
    tags: [Categories]
    security:
      - Bearer: []
    consumes: [application/json]
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string, minLength: 2, maxLength: 100 }
            slug: { type: string, minLength: 2, maxLength: 100 }
            description: { type: string }
            image_url: { type: string }
            parent_id: { type: integer }
    responses:
      201: { description: Created }
      400: { description: Unknown parent }
      409: { description: Slug already exists }
      422: { description: Validation error }
    """
    session = storage.get_session()
    data = create_schema.load(request.get_json(silent=True) or {})
    if slug_taken(session, data["slug"]):
        abort(409, description="Category slug already exists.")
    parent = resolve_parent(session, data.get("parent_id"))
    c = Category(
        name=data["name"],
        slug=data["slug"],
        description=data.get("description") or "",
        image_url=data.get("image_url"),
        parent_id=parent.id if parent else None,
    )
    storage.new(c)
    storage.save()
    return jsonify({"data": out_schema.dump(c)}), 201


@bp.put("/admin/categories/<id:category_id>")
@roles_required(Role.ADMIN)
def update_category(category_id: int):
    """
    Update a category (partial) - admin
    ---
    tags: [Categories]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: category_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string }
            slug: { type: string }
            description: { type: string }
            image_url: { type: string }
            parent_id: { type: integer }
    responses:
      200: { description: OK }
      400: { description: Unknown parent or cycle }
      404: { description: Not found }
      409: { description: Slug already exists }
      422: { description: Validation error }
    """
    session = storage.get_session()
    c = get_live_category(session, category_id)
    data = update_schema.load(request.get_json(silent=True) or {})

    if "slug" in data and data["slug"] != c.slug:
        if slug_taken(session, data["slug"], exclude_id=c.id):
            abort(409, description="Category slug already exists.")
        c.slug = data["slug"]
    if "parent_id" in data:
        parent = resolve_parent(session, data["parent_id"], category=c)
        c.parent_id = parent.id if parent else None
    for field in ["name", "image_url"]:
        if field in data:
            setattr(c, field, data[field])
    if "description" in data:
        c.description = data["description"] or ""

    storage.new(c)
    storage.save()
    return jsonify({"data": out_schema.dump(c)})


@bp.delete("/admin/categories/<id:category_id>")
@roles_required(Role.ADMIN)
def delete_category(category_id: int):
    """
    Soft delete a category - admin
    Children are detached (become top-level); a category that still holds
    products cannot be deleted.
    ---
    tags: [Categories]
    security:
      - Bearer: []
    parameters:
      - in: path
        name: category_id
        type: integer
        required: true
    responses:
      204: { description: Deleted }
      404: { description: Not found }
      409: { description: Category still has products }
    """
    session = storage.get_session()
    c = get_live_category(session, category_id)

    # RESTRICT: do not allow delete while live products reference it
    has_products = (
        session.query(Product.id)
        .filter(Product.category_id == c.id, Product.deleted_at.is_(None))
        .first()
    )
    if has_products:
        abort(409, description="Cannot delete a category that still has products.")

    # SET NULL for children
    for child in c.children:
        child.parent_id = None
        storage.new(child)

    c.delete()  # Soft delete via mixin, commits
    return ("", 204)
