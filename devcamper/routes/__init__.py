# Routes package init
"""
DevCamper API — API Routes Package
===================================

Route Inventory:
    - auth.py:       /api/v1/auth       (register, login, logout, me, password reset)
    - bootcamps.py:  /api/v1/bootcamps  (CRUD, radius search, photo upload)
    - courses.py:    /api/v1/courses, /api/v1/bootcamps/{id}/courses
    - reviews.py:    /api/v1/reviews, /api/v1/bootcamps/{id}/reviews
    - users.py:      /api/v1/users      (admin only)
    - health.py:     GET /health

Routes stay thin: parse the request, call a service, wrap the result in the
{"success": true, ...} envelope.
"""
