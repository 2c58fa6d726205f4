"""Firestore collection names (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when you first write a document. Use these constants so collection names
stay consistent and act as the single source of truth for the "schema".
"""

COLLECTION_USERS = "users"
COLLECTION_BEATS = "beats"
COLLECTION_PURCHASES = "purchases"
COLLECTION_COMMENTS = "comments"
COLLECTION_MESSAGES = "messages"
COLLECTION_NOTIFICATIONS = "notifications"
COLLECTION_TENANTS = "tenants"
