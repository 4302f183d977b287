from customers.customer import Customer
from src.base_crud import BaseCrud, crud_blueprint

bp = crud_blueprint("customers", BaseCrud(Customer, "Customer"))
