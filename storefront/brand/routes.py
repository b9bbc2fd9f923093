# --- brand/routes.py ---
from . import bp
from ..model import Brand, Product
from ..utils.taxonomy import register_taxonomy_routes

register_taxonomy_routes(bp, Brand, Product.brand_id, "brand")
