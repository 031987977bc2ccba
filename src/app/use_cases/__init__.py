"""
Use Cases

Organized into domain folders:
- auth/: Login, SSO login, logout, refresh, validation
- clients/: Client registry administration
- propagation/: Cookie directive acknowledgement, retry, delivery
- users/: Session revocation
- audit/: Audit logs
- maintenance/: Background cleanup

Import from subdirectories for better organization.
"""
