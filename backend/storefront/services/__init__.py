"""
Storefront Backend — Services Layer
=====================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Services are stateless; every method receives the AsyncSession of the
       current request. Routes never build queries themselves.

Service Inventory:
    - UserService:     registration, login, profile, password
    - CatalogService:  categories and products, keeps the uploads tree in step
    - FileService:     product image validation, storage and cleanup
    - AddressService:  per-user address book with a single default
    - ContactService:  contact form submissions
    - OrderService:    checkout (stock checks, price snapshots), cancel, status
    - StatusReporter:  the /api/status snapshot
    - bootstrap:       startup preparation of the uploads tree
"""
