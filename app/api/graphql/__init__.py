"""
GraphQL API surface.

- type_defs.py: Schema definition language
- resolvers.py: Root and object resolvers (Access Guard applied here)
- schema.py: Executable schema and default field resolver
- router.py: FastAPI route serving POST /graphql
"""

from .router import router as router
from .schema import schema as schema
