"""Stockkeeping bounded context — locations, movements, stock levels and transfers.

Keeps the bookkeeping invariants of physical stock across warehouses:
location codes and occupancy, the append-only movement ledger, threshold
based stock alerts and the cross-warehouse transfer lifecycle.
"""

from protean.domain import Domain

from stockkeeping.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging()

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
stockkeeping = Domain(name="stockkeeping")
