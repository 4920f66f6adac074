from orderdesk.models.order import Order, OrderNumberSequence
from orderdesk.models.custom_order import CustomOrder
from orderdesk.models.contact import ContactSubmission
from orderdesk.models.cart import CartItem
from orderdesk.models.donation import Donation
from orderdesk.models.processed_event import ProcessedEvent
