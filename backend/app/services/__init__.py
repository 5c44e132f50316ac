# Services package init
"""
Flock Backend — Services Layer
================================

Service Inventory:
    - SessionService:       issue, decode and clear the `jwt` session cookie
    - AuthService:          signup and login (credential store)
    - UserService:          lookups, profiles, suggestions, profile updates
    - SocialService:        follow/like toggles and comments
    - PostService:          post creation, deletion and feeds
    - NotificationService:  the notification ledger
    - ImageService:         hosting and releasing images

Services take an AsyncSession from the caller and never commit; the request
dependency owns the transaction.
"""
