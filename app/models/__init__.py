from .base import Base
from .user import User
from .address import Address
from .catalog import Category, Product
from .cart import Cart, CartItem
from .order import Order, OrderItem, OrderStatus, PaymentStatus
from .reservation import Table, Reservation, ReservationStatus
