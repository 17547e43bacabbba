from __future__ import annotations

from flask import Blueprint, request, jsonify, abort
from sqlalchemy import func, or_
from sqlalchemy.orm import selectinload

from models import storage
from models.base_model import MAX_DB_INT
from models.category import Category
from models.product import Product, ProductImage, ProductTaste
from models.user import Role
from models.schemas.product import ProductCreateSchema, ProductUpdateSchema, ProductOutSchema
from utils.decorators import roles_required
from .listing import parse_pagination, parse_sort, parse_int_param, paginate

bp = Blueprint("products", __name__)

# Schemas
product_create_schema = ProductCreateSchema()
product_update_schema = ProductUpdateSchema()
product_out_schema = ProductOutSchema()
products_out_schema = ProductOutSchema(many=True)

# Sorting allowlist: API field -> SQLAlchemy column
SORT_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
    "created_at": Product.created_at,
}


def base_query(session, include_inactive: bool = False):
    query = (
        session.query(Product)
        .options(selectinload(Product.images), selectinload(Product.tastes))
        .filter(Product.deleted_at.is_(None))
    )
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query


def apply_filters(query):
    q = request.args.get("q")
    if q:
        qnorm = f"%{q.strip().lower()}%"
        query = query.filter(or_(func.lower(Product.name).like(qnorm), func.lower(Product.slug).like(qnorm)))

    category_id = parse_int_param("category_id")
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)

    price_min = parse_int_param("price_min")
    if price_min is not None:
        query = query.filter(Product.price >= price_min)

    price_max = parse_int_param("price_max")
    if price_max is not None:
        query = query.filter(Product.price <= price_max)

    return query


def list_response(include_inactive: bool):
    session = storage.get_session()
    page, limit = parse_pagination()
    order_by = parse_sort(SORT_COLUMNS, default="-created_at")
    query = apply_filters(base_query(session, include_inactive=include_inactive))
    rows, meta = paginate(query, order_by + [Product.id.desc()], page, limit)
    meta["sort"] = request.args.get("sort", "-created_at")
    return jsonify({"data": products_out_schema.dump(rows), "meta": meta})


def slug_taken(session, slug: str, exclude_id: int | None = None) -> bool:
    q = session.query(Product).filter(Product.slug == slug)
    if exclude_id:
        q = q.filter(Product.id != exclude_id)
    return session.query(q.exists()).scalar()


def require_category(session, category_id: int) -> Category:
    c = session.get(Category, category_id)
    if not c or c.is_deleted:
        abort(400, description="category_id not found")
    return c


def build_images(items):
    return [
        ProductImage(url=i["url"], is_primary=i.get("is_primary", False), sort_order=i.get("sort_order", 0))
        for i in items
    ]


def build_tastes(names):
    return [ProductTaste(name=n.strip()) for n in names if n.strip()]


def get_product_or_404(session, product_id: int) -> Product:
    p = base_query(session, include_inactive=True).filter(Product.id == product_id).first()
    if not p:
        abort(404, description="product not found")
    return p


@bp.get("/products")
def list_products():
    """
    List active products with pagination, sorting, filtering, and search
    ---
    tags:
      - Products
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
        description: "Comma-separated fields; prefix with '-' for desc. Allowed: name, price, created_at"
        default: "-created_at"
      - in: query
        name: q
        type: string
        description: "Case-insensitive substring search on name and slug"
      - in: query
        name: category_id
        type: integer
      - in: query
        name: price_min
        type: integer
      - in: query
        name: price_max
        type: integer
    responses:
      200:
        description: List of products
    """
    return list_response(include_inactive=False)


@bp.get("/products/<ref>")
def get_product(ref: str):
    """
    Get an active product by slug (or numeric id)
    ---
    tags:
      - Products
    parameters:
      - in: path
        name: ref
        type: string
        required: true
    responses:
      200:
        description: Product found
      404:
        description: Not found
    """
    session = storage.get_session()
    query = base_query(session)
    p = query.filter(Product.slug == ref).first()
    if p is None and ref.isascii() and ref.isdigit() and int(ref) <= MAX_DB_INT:
        p = query.filter(Product.id == int(ref)).first()
    if not p:
        abort(404, description="product not found")
    return jsonify({"data": product_out_schema.dump(p)})


@bp.get("/admin/products")
@roles_required(Role.ADMIN)
def admin_list_products():
    """
    List all products, including inactive ones - admin
    ---
    tags:
      - Products
    security:
      - Bearer: []
    responses:
      200:
        description: List of products
    """
    return list_response(include_inactive=True)


@bp.get("/admin/products/<id:product_id>")
@roles_required(Role.ADMIN)
def admin_get_product(product_id: int):
    """
    Get any product by id - admin
    ---
    tags:
      - Products
    security:
      - Bearer: []
    parameters:
      - in: path
        name: product_id
        type: integer
        required: true
    responses:
      200:
        description: Product found
      404:
        description: Not found
    """
    session = storage.get_session()
    return jsonify({"data": product_out_schema.dump(get_product_or_404(session, product_id))})


@bp.post("/admin/products")
@roles_required(Role.ADMIN)
def create_product():
    """
    Create a new product - admin
    ---
    tags:
      - Products
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string, minLength: 2, maxLength: 100 }
            slug: { type: string, minLength: 2, maxLength: 100 }
            description: { type: string, maxLength: 5000 }
            price: { type: integer, minimum: 1 }
            stock: { type: integer, minimum: 0, default: 0 }
            is_active: { type: boolean, default: true }
            category_id: { type: integer }
            tastes:
              type: array
              items: { type: string }
            images:
              type: array
              items:
                type: object
                properties:
                  url: { type: string }
                  is_primary: { type: boolean }
                  sort_order: { type: integer }
    responses:
      201:
        description: Created
      400:
        description: Unknown category
      409:
        description: Slug already exists
      422:
        description: Validation error
    """
    session = storage.get_session()
    data = product_create_schema.load(request.get_json(silent=True) or {})

    if slug_taken(session, data["slug"]):
        abort(409, description="A product with this slug already exists.")
    require_category(session, data["category_id"])

    p = Product(
        name=data["name"],
        slug=data["slug"],
        description=data["description"],
        price=data["price"],
        stock=data.get("stock", 0),
        is_active=data.get("is_active", True),
        category_id=data["category_id"],
    )
    p.images = build_images(data.get("images") or [])
    p.tastes = build_tastes(data.get("tastes") or [])

    storage.new(p)
    storage.save()
    return jsonify({"data": product_out_schema.dump(p)}), 201


@bp.put("/admin/products/<id:product_id>")
@roles_required(Role.ADMIN)
def update_product(product_id: int):
    """
    Update a product (partial); images and tastes, when given, replace the current ones - admin
    ---
    tags:
      - Products
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: path
        name: product_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
    responses:
      200:
        description: Updated
      400:
        description: Unknown category
      404:
        description: Not found
      409:
        description: Slug already exists
      422:
        description: Validation error
    """
    session = storage.get_session()
    p = get_product_or_404(session, product_id)
    data = product_update_schema.load(request.get_json(silent=True) or {})

    if "slug" in data and data["slug"] != p.slug:
        if slug_taken(session, data["slug"], exclude_id=p.id):
            abort(409, description="A product with this slug already exists.")
        p.slug = data["slug"]

    if "category_id" in data:
        require_category(session, data["category_id"])
        p.category_id = data["category_id"]

    # Simple fields
    for field in ["name", "description", "price", "stock", "is_active"]:
        if field in data:
            setattr(p, field, data[field])

    # Relationships: if provided, replace
    if "images" in data:
        p.images = build_images(data["images"])
    if "tastes" in data:
        p.tastes = build_tastes(data["tastes"])

    storage.new(p)
    storage.save()
    return jsonify({"data": product_out_schema.dump(p)})


@bp.delete("/admin/products/<id:product_id>")
@roles_required(Role.ADMIN)
def delete_product(product_id: int):
    """
    Soft delete a product - admin
    ---
    tags:
      - Products
    security:
      - Bearer: []
    parameters:
      - in: path
        name: product_id
        type: integer
        required: true
    responses:
      204:
        description: Deleted
      404:
        description: Not found
    """
    session = storage.get_session()
    p = get_product_or_404(session, product_id)
    p.delete()  # Soft delete via mixin, commits
    return ("", 204)
