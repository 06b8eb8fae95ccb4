"""Sample dependency types and code under test.

These plain classes are the type descriptions the tests substitute:

- loading: the data set loader scenario (CleanInsertLoader and the
  database operations it delegates to)
- samples: types covering properties, static and class methods, async
  protocols, container dunders, nested and self-referential fields
"""

from .loading import (
    CleanInsertLoader,
    DatabaseConnection,
    DatabaseOperation,
    DataSet,
    DeleteAllOperation,
    InsertOperation,
    LoadError,
)
from .samples import (
    Account,
    Address,
    Clock,
    Customer,
    Empty,
    Inventory,
    Notifier,
    Order,
    OrderRepository,
    SealedGateway,
    Sink,
    SpecialInventory,
    Tier,
    TreeNode,
    Uncopyable,
)

__all__ = [
    "Account",
    "Address",
    "CleanInsertLoader",
    "Clock",
    "Customer",
    "DataSet",
    "DatabaseConnection",
    "DatabaseOperation",
    "DeleteAllOperation",
    "Empty",
    "InsertOperation",
    "Inventory",
    "LoadError",
    "Notifier",
    "Order",
    "OrderRepository",
    "SealedGateway",
    "Sink",
    "SpecialInventory",
    "Tier",
    "TreeNode",
    "Uncopyable",
]
