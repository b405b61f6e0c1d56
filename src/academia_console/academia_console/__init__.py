"""Academia de Danza administrative console.

This package is organized by feature modules (people, classes, attendance, billing, ...)
with a thin Flask controller layer over services that talk to the academy REST API.
"""
