"""
Customers module (JSON API).

Layers, in dependency order:
- repository: one method per query shape against the `customers` table
- service: email-uniqueness and existence checks before mutating
- api: blueprint mapping HTTP verbs/paths to service calls
"""
