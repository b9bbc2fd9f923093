# --- category/routes.py ---
from . import bp
from ..model import Category, Product
from ..utils.taxonomy import register_taxonomy_routes

register_taxonomy_routes(bp, Category, Product.category_id, "category")
