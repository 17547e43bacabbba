from marshmallow import Schema, fields, pre_load, validate

from models.base_model import MAX_DB_INT
from models.schemas.common import SLUG_VALIDATOR, strip_fields


class CategoryCreateSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=2, max=100))
    slug = fields.String(required=True, validate=[validate.Length(min=2, max=100), SLUG_VALIDATOR])
    description = fields.String(load_default="", allow_none=True)
    image_url = fields.Url(allow_none=True, load_default=None)
    parent_id = fields.Integer(allow_none=True, load_default=None, strict=True, validate=validate.Range(min=1, max=MAX_DB_INT))

    @pre_load
    def _strip(self, data, **kwargs):
        return strip_fields(data, "name", "slug")


class CategoryUpdateSchema(Schema):
    # All optional, but validate if present
    name = fields.String(validate=validate.Length(min=2, max=100))
    slug = fields.String(validate=[validate.Length(min=2, max=100), SLUG_VALIDATOR])
    description = fields.String(allow_none=True)
    image_url = fields.Url(allow_none=True)
    parent_id = fields.Integer(allow_none=True, strict=True, validate=validate.Range(min=1, max=MAX_DB_INT))

    @pre_load
    def _strip(self, data, **kwargs):
        return strip_fields(data, "name", "slug")


class CategoryOutSchema(Schema):
    id = fields.Integer()
    name = fields.String()
    slug = fields.String()
    description = fields.String(allow_none=True)
    image_url = fields.String(allow_none=True)
    parent_id = fields.Integer(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class CategoryDetailSchema(CategoryOutSchema):
    children = fields.Method("get_children")

    def get_children(self, obj):
        live = [c for c in obj.children if c.deleted_at is None]
        return CategoryOutSchema(many=True).dump(sorted(live, key=lambda c: c.name))
