"""Companies module - tenant management for super admins."""

# Module metadata
__module_info__ = {
    "name": "companies",
    "version": "1.0.0",
    "description": "Tenant management for super admins",
    "dependencies": [],
}
