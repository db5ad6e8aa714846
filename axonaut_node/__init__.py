"""Axonaut CRM/ERP integration node."""
