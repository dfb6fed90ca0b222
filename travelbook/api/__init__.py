"""
HTTP blueprints for Travelbook.
"""
