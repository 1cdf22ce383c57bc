# Router imports
from . import (
    catalog_routes,
    admin_routes,
)
