"""auth/ -- Authentication, authorization and account management for the Judgment Notes API.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or judgments/.
api/ imports from auth/, not the other way around.
"""
