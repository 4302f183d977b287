from user.user_routes import auth_bp, bp as user_bp
from customers.customer_routes import bp as customer_bp
from suppliers.supplier_routes import bp as supplier_bp
from products.product_routes import bp as product_bp, unit_bp, brand_bp
from category.category_routes import bp as category_bp
from branches.branch_routes import bp as branch_bp
from addresses.address_routes import bp as address_bp
from stock.stock_routes import bp as stock_bp
from bills.bill_routes import bp as bill_bp
from purchases.purchase_order_routes import bp as purchase_order_bp
from accounts.account_routes import bp as account_bp


def register_routes(app):
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(user_bp, url_prefix="/users")
    app.register_blueprint(customer_bp, url_prefix="/customers")
    app.register_blueprint(supplier_bp, url_prefix="/suppliers")
    app.register_blueprint(product_bp, url_prefix="/products")
    app.register_blueprint(unit_bp, url_prefix="/units")
    app.register_blueprint(brand_bp, url_prefix="/brands")
    app.register_blueprint(category_bp, url_prefix="/categories")
    app.register_blueprint(branch_bp, url_prefix="/branches")
    app.register_blueprint(address_bp, url_prefix="/addresses")
    app.register_blueprint(stock_bp, url_prefix="/stock")
    app.register_blueprint(bill_bp, url_prefix="/bills")
    app.register_blueprint(purchase_order_bp, url_prefix="/pos")
    app.register_blueprint(account_bp, url_prefix="/accounts")
