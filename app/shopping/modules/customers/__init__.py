"""
Customers module.

Scope:
- Customers CRUD (list + detail + create + edit + delete with confirmation)
- Free-text search on first/last name and click-to-toggle column sorting
- Optimistic concurrency on edit via customers.version
"""
