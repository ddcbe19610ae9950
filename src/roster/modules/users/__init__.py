"""Users module - admin user management, profile and settings."""

# Module metadata
__module_info__ = {
    "name": "users",
    "version": "1.0.0",
    "description": "Admin user management, profile and settings",
    "dependencies": ["companies", "teams"],
}
