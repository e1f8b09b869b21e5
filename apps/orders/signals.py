# apps/orders/signals.py
from django.dispatch import Signal

# Sent once per successful pending/failed -> paid edge, after commit.
# kwargs: order
order_paid = Signal()

# Sent after an admin status change commits.
# kwargs: order, old_status, new_status
order_status_changed = Signal()
