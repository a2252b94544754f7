"""
Exceptions and address handling shared by every layer.
"""
