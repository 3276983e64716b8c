from . import admin
from . import cart
from . import orders
from . import shop
