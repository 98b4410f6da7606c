"""Identity entity package.

- Identity: registered user with a password credential
- IdentityTable: database persistence model
- IdentityRepository: data access layer
"""

from .entity import Identity
from .repository import IdentityRepository
from .table import IdentityTable

__all__ = ["Identity", "IdentityTable", "IdentityRepository"]
