"""
Services layer - ticket, notification, aggregation and profile logic.

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Services take the store and their collaborators in the constructor
- Routes reach them through the get_*_service() accessors
"""
