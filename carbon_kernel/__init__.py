"""
Carbon Kernel - marketplace state machine

Transactional business logic for a carbon-credit marketplace running on a
versioned key-value world state:
- Project proposals, approval and one-time credit issuance
- Timed auctions of government credit pools
- Secondary-market sales between credit holders
- Optimistic concurrency with read-set validation
"""

__version__ = "0.1.0"
