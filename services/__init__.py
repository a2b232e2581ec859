"""Land registry services: land lifecycle, transactions, statistics and auth."""
