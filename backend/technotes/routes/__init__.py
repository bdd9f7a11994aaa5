# Routes package init
"""
TechNotes Backend - API Routes Package
=======================================

Route Inventory:
    - users.py:   GET/POST /users, GET/PATCH/DELETE /users/{user_id}
    - notes.py:   GET/POST /users/{user_id}/notes,
                  PATCH/DELETE /users/{user_id}/notes/{note_id}
    - health.py:  GET /health
    - root.py:    GET / (landing page) and the negotiated 404 fallback

Routes are thin: they read the request, call a service, and return one of
the helpers from technotes.responses.
"""
