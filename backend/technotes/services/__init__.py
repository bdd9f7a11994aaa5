# Services package init
"""
TechNotes Backend - Services Layer
===================================

What:  Business logic between routes (HTTP) and repositories (persistence).
How:   Services validate input, call repositories, and raise application
       exceptions; they never build HTTP responses.

Service Inventory:
    - UserService:     user validation, uniqueness, password hashing, deletion rule
    - NoteService:     note validation, scoped to an existing user
    - PasswordHasher:  bcrypt hashing off the event loop
"""
