"""
Top-level models import shim for the Orders app.

Lets callers write
    from apps.orders.models import Order
while the actual models live in separate modules.
"""

from .order import *          # Order
from .item import *           # OrderItem
from .timeline import *       # OrderTimeline
