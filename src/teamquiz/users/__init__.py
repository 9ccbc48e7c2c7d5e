"""User profiles and admin user management."""
