"""Invitations module - inviting users into a company."""

# Module metadata
__module_info__ = {
    "name": "invitations",
    "version": "1.0.0",
    "description": "Inviting users into a company",
    "dependencies": ["companies", "users"],
}
