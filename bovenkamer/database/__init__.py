from .dbm import DBM
from .repository import SqlRepositories

__all__ = ["DBM", "SqlRepositories"]
