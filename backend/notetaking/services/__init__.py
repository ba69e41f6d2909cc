"""
Note Taking API — Services Layer
==================================

Service Inventory:
    - TagReconciler:    find-or-create tags, rewrite note_tags
    - NoteQueryService: owner-scoped fetch and filtered pagination
    - NoteService:      create / update / soft-delete orchestration
    - TagService:       tag listing with per-user counts
    - AuthService:      register / login / refresh
    - TokenService:     JWT issue and verification
    - password_hasher:  argon2id hash / verify

Every method that touches storage takes the request's AsyncSession as its
first argument; no service owns a session or commits.
"""
