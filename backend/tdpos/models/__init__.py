from .catalog import Branch, Product, TireProduct, BaleProduct, product_branches
from .employees import Employee
from .orders import Order, OrderLine, OrderRecord, OrderLineRecord

__all__ = [
    'Branch', 'Product', 'TireProduct', 'BaleProduct', 'product_branches',
    'Employee',
    'Order', 'OrderLine', 'OrderRecord', 'OrderLineRecord',
]
