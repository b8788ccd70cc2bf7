from .auth import User, SessionToken
from .parties import RetailerProfile, RetailerCredit, WholesalerProfile, ConsumerProfile, Branch, Loan, NfcCard
from .inventory import Product, Supplier, SupplierPayment
from .sales import Sale, SaleItem
from .orders import Order, OrderItem
from .credit import CreditRequest

__all__ = [
    'User', 'SessionToken',
    'RetailerProfile', 'RetailerCredit', 'WholesalerProfile', 'ConsumerProfile',
    'Branch', 'Loan', 'NfcCard',
    'Product', 'Supplier', 'SupplierPayment',
    'Sale', 'SaleItem',
    'Order', 'OrderItem',
    'CreditRequest',
]
