# Services package init
"""
VIA Backend — Services Layer
==============================

What:  Business rules between the HTTP handlers and the repositories.

Service Inventory:
    - geo:            Haversine distance between fixes and along a trace
    - normalizer:     raw GPS points → ordered, validated trace
    - votes:          up/down tallies and the rounded net rating
    - route_service:  create / feed / detail / vote / comment workflows
    - user_service:   profile stats and friend requests
    - email_domains:  school email allow-list

Pure modules (geo, normalizer, votes, email_domains) never touch storage.
The two services receive their repository through the constructor, so
tests hand them an in-memory or mocked one.

Nothing is imported here; route_repository depends on normalizer, and an
eager import would close that loop.
"""
