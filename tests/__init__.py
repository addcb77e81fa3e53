"""
Instance Ledger Test Suite

Tests are organized by area:
- test_registration.py / test_adjustment.py / test_transfer.py / test_scrap.py:
  single ledger operations
- test_conversion.py: slitting and conservation
- test_concurrency.py: version conflicts and code races
- test_inventory_routes.py: JSON API
"""
