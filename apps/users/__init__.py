"""Users app package.

Identity and authorization for the booking core: a custom email-based user
model with platform roles and the authorizer consulted by the booking
lifecycle before approve, reject, cancel and status changes. Use
``apps.users.models.CustomUser`` as the AUTH_USER_MODEL throughout
the project.
"""
