# nursery/models/__init__.py
from nursery.models.user_models import User
from nursery.models.activity_models import UserActivity
from nursery.models.product_models import Product, StockTransaction
from nursery.models.merchant_models import Merchant
from nursery.models.quotation_models import Quotation, QuotationStatus
from nursery.models.order_models import Order, OrderItem, GuestUser
from nursery.models.cart_models import CartItem, WishlistItem
