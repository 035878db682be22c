# Imports every model so Base.metadata and relationship strings resolve.
from sharelyst.db.session import Base
from sharelyst.models.group import Group
from sharelyst.models.user import User
from sharelyst.models.transaction import Transaction
from sharelyst.models.payment import Payment

__all__ = ["Base", "Group", "User", "Transaction", "Payment"]
