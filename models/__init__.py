"""
Persistence layer: SQLAlchemy models and the DBStorage singleton.

Delete policy, per relationship (child -> parent):
- refresh_tokens -> users         CASCADE   (a user's sessions die with the user)
- categories     -> categories    SET NULL  (children of a removed category become roots)
- products       -> categories    RESTRICT  (a category with products cannot be removed)
- product_images -> products      CASCADE
- product_tastes -> products      CASCADE

Categories and products are soft-deleted by the API, so the RESTRICT and SET NULL
rules are also enforced in api/categories.py before deleted_at is set.
"""
from models.db_storage import DBStorage

storage = DBStorage()
storage.reload()
