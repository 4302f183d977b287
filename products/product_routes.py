from products.brand import Brand
from products.product import Product
from products.unit import Unit
from src.base_crud import BaseCrud, crud_blueprint

bp = crud_blueprint("products", BaseCrud(Product, "Product"))
unit_bp = crud_blueprint("units", BaseCrud(Unit, "Unit"))
brand_bp = crud_blueprint("brands", BaseCrud(Brand, "Brand"))
