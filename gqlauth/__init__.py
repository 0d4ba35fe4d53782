"""Token lifecycle engine for GraphQL API authentication"""

__version__ = "0.1.0"
