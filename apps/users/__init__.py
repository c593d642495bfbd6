"""Users app package.

Defines the e-mail based custom user with customer and administrator
roles, JWT authentication endpoints and the shared permission classes.
Use ``apps.users.models.CustomUser`` as the AUTH_USER_MODEL throughout
the project.
"""
