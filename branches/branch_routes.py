from branches.branch import Branch
from src.base_crud import BaseCrud, crud_blueprint

bp = crud_blueprint("branches", BaseCrud(Branch, "Branch"))
