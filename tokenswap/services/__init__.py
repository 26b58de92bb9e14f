"""Service layer: catalog construction and swap sessions."""
