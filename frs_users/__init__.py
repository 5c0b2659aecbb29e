"""
FRS users: profile administration and smart CSV import.
"""
