"""
Storefront Backend — Handler Groups
=====================================

What:  Route modules, each exposing an `APIRouter` WITHOUT a prefix. Prefixes
       and guards are assigned by the route table (storefront.routing) so the
       whole public/guarded layout is visible in one place.

Group Inventory:
    - status.py:      GET /api/status, GET / (HTML page)           public
    - products.py:    reads (public) + management router (admin)
    - categories.py:  reads (public) + management router (admin)
    - auth.py:        POST /login, POST /register                  public carve-out
    - users.py:       /me, /me/password, admin listing             guarded
    - address.py:     address book CRUD                            guarded
    - contact.py:     contact form                                 guarded
    - orders.py:      checkout, history, cancel, admin status      guarded

Design Principle:
    Routes are THIN: extract input, call a service, shape the response.
"""
