"""Core application for the HEMS backend.

Models, serializers, services, views and route registrations for the
hospital and emergency management API.
"""
