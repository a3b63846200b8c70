"""
auth — User authentication module.

Provides:
  • Access / refresh JWT issuing & verification (``TokenIssuer``)
  • Password hashing (bcrypt)
  • Registration / login / refresh / check API routes
  • ``get_current_user`` FastAPI dependency
"""
