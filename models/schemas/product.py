from marshmallow import Schema, fields, pre_load, validate, validates, ValidationError

from models.base_model import MAX_DB_INT
from models.schemas.common import SLUG_VALIDATOR, strip_fields


class ProductImageInSchema(Schema):
    url = fields.Url(required=True, validate=validate.Length(max=500))
    is_primary = fields.Boolean(load_default=False)
    sort_order = fields.Integer(load_default=0, strict=True, validate=validate.Range(min=0, max=MAX_DB_INT))


class ProductCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=2, max=100))
    slug = fields.String(required=True, validate=[validate.Length(min=2, max=100), SLUG_VALIDATOR])
    description = fields.String(required=True, validate=validate.Length(max=5000))
    price = fields.Integer(required=True, strict=True, validate=validate.Range(min=1, max=MAX_DB_INT))
    stock = fields.Integer(load_default=0, strict=True, validate=validate.Range(min=0, max=MAX_DB_INT))
    is_active = fields.Boolean(load_default=True)
    category_id = fields.Integer(required=True, strict=True, validate=validate.Range(min=1, max=MAX_DB_INT))
    tastes = fields.List(fields.String(validate=validate.Length(min=1, max=100)), load_default=list)
    images = fields.List(fields.Nested(ProductImageInSchema), load_default=list)

    @pre_load
    def _strip(self, data, **kwargs):
        return strip_fields(data, "name", "slug")

    @validates("images")
    def _validate_images(self, value, **kwargs):
        if sum(1 for img in value if img.get("is_primary")) > 1:
            raise ValidationError("At most one image can be primary.")


class ProductUpdateSchema(Schema):
    # All optional; lists replace the current set when present
    name = fields.String(validate=validate.Length(min=2, max=100))
    slug = fields.String(validate=[validate.Length(min=2, max=100), SLUG_VALIDATOR])
    description = fields.String(validate=validate.Length(max=5000))
    price = fields.Integer(strict=True, validate=validate.Range(min=1, max=MAX_DB_INT))
    stock = fields.Integer(strict=True, validate=validate.Range(min=0, max=MAX_DB_INT))
    is_active = fields.Boolean()
    category_id = fields.Integer(strict=True, validate=validate.Range(min=1, max=MAX_DB_INT))
    tastes = fields.List(fields.String(validate=validate.Length(min=1, max=100)))
    images = fields.List(fields.Nested(ProductImageInSchema))

    @pre_load
    def _strip(self, data, **kwargs):
        return strip_fields(data, "name", "slug")

    @validates("images")
    def _validate_images(self, value, **kwargs):
        if sum(1 for img in value if img.get("is_primary")) > 1:
            raise ValidationError("At most one image can be primary.")


class ProductImageOutSchema(Schema):
    id = fields.Integer()
    url = fields.String()
    is_primary = fields.Boolean()
    sort_order = fields.Integer()


class ProductOutSchema(Schema):
    id = fields.Integer()
    name = fields.String()
    slug = fields.String()
    description = fields.String()
    price = fields.Integer()
    stock = fields.Integer()
    is_active = fields.Boolean()
    category_id = fields.Integer()
    images = fields.List(fields.Nested(ProductImageOutSchema))
    tastes = fields.Method("get_tastes")
    created_at = fields.DateTime()
    updated_at = fields.DateTime()

    def get_tastes(self, obj):
        return [t.name for t in obj.tastes]
