from addresses.address import Address
from src.base_crud import BaseCrud, crud_blueprint

bp = crud_blueprint("addresses", BaseCrud(Address, "Address"))
