from category.category import Category
from src.base_crud import BaseCrud, crud_blueprint

bp = crud_blueprint("categories", BaseCrud(Category, "Category"))
