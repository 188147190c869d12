# Routes package init
"""
VIA Backend — API Routes Package
==================================

Route Inventory:
    - routes.py:  POST /api/v1/routes                 (create from GPS trace)
                  GET  /api/v1/routes                 (feed: tags filter + sort)
                  GET  /api/v1/routes/{id}            (detail with route_points)
                  POST /api/v1/routes/{id}/vote       (up/down vote)
                  POST /api/v1/routes/{id}/comments   (comment)
    - users.py:   GET  /api/v1/users/me               (profile + stats)
                  POST /api/v1/users/friends/request  (friend request)
    - auth.py:    POST /api/v1/auth/verify-school-email
    - health.py:  GET  /  and  GET /health

Handlers stay thin: pull data off the request, call a service, return a
response model. Business rules live in services so they are testable
without HTTP.
"""
