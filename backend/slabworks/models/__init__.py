from .tenancy import Company
from .auth import User, SessionToken
from .customers import Customer
from .inventory import Stone, SlabInventory, SinkType, Sink, FaucetType, Faucet
from .sales import (
    Sale, SaleEvent,
    SALE_STATUS_ACTIVE, SALE_STATUS_PARTIALLY_CUT, SALE_STATUS_CUT, SALE_STATUS_CANCELED,
)
from .deals import DealList, Deal

__all__ = [
    'Company',
    'User', 'SessionToken',
    'Customer',
    'Stone', 'SlabInventory', 'SinkType', 'Sink', 'FaucetType', 'Faucet',
    'Sale', 'SaleEvent',
    'SALE_STATUS_ACTIVE', 'SALE_STATUS_PARTIALLY_CUT', 'SALE_STATUS_CUT', 'SALE_STATUS_CANCELED',
    'DealList', 'Deal',
]
