"""Core application of the hospital backend.

Accounts, the doctor directory, appointment booking and the laboratory
workflow: models, services, serializers, views and route registrations.
"""
