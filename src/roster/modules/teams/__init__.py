"""Teams module - teams and memberships."""

# Module metadata
__module_info__ = {
    "name": "teams",
    "version": "1.0.0",
    "description": "Teams and memberships",
    "dependencies": ["users"],
}
