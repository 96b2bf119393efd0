"""User Posts Gateway service."""
