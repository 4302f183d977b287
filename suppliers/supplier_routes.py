from suppliers.supplier import Supplier
from src.base_crud import BaseCrud, crud_blueprint

bp = crud_blueprint("suppliers", BaseCrud(Supplier, "Supplier"))
