"""internship/ -- Internship reference data: streams, directions, technical tests.

Layer rule: internship/ imports from core/, stdlib and third-party libraries.
It does NOT import from api/, auth/, or mail/.
"""
