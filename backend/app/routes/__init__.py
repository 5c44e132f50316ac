# Routes package init
"""
Flock Backend — API Routes Package
====================================

Route Inventory:
    - auth.py:           /api/auth/signup, /login, /logout, /me
    - users.py:          /api/users/profile/{username}, /suggested,
                         /follow/{id}, /update
    - posts.py:          /api/posts/all, /following, /user/{username},
                         /likes/{id}, /create, /like/{id}, /comment/{id},
                         DELETE /api/posts/{id}
    - notifications.py:  GET/DELETE /api/notifications
    - files.py:          GET /api/files/{path}
    - health.py:         GET /health

Routes stay thin: read the request, call a service, shape the response.
Everything but signup, login, logout, files and health sits behind the
session gate (app.dependencies.get_current_user).
"""
