from .accounts import User, Package
from .assets import Asset, AssetRequest, EmployeeMembership
from .billing import Payment

__all__ = [
    'User', 'Package',
    'Asset', 'AssetRequest', 'EmployeeMembership',
    'Payment',
]
