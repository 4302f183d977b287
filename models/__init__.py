from src.extensions import db

# Import all models so create_all and migrations can detect them
from addresses.address import Address
from branches.branch import Branch
from category.category import Category
from customers.customer import Customer
from products.brand import Brand
from products.unit import Unit
from products.product import Product
from stock.stock import Stock
from suppliers.supplier import Supplier
from bills.bill import Bill
from bills.bill_item import BillItem
from payments.payment import Payment
from purchases.purchase_order import PurchaseOrder, POItem
from accounts.account import Account
from user.user import User


__all__ = [
    "db",
    "Address",
    "Branch",
    "Category",
    "Customer",
    "Brand",
    "Unit",
    "Product",
    "Stock",
    "Supplier",
    "Bill",
    "BillItem",
    "Payment",
    "PurchaseOrder",
    "POItem",
    "Account",
    "User",
]
