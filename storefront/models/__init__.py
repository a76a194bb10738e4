from storefront.models.user import User
from storefront.models.product import Product
from storefront.models.coupon import Coupon, DiscountType
from storefront.models.order_item import OrderItem
from storefront.models.order import Order, OrderStatus
from storefront.models.site_setting import SiteSetting

# add ALL models here
